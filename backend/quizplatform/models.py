from quizplatform import db, bcrypt
from flask_login import UserMixin
import string
import random
import time

ROLES = ('student', 'teacher', 'admin')
GAME_STATUSES = ('waiting', 'active', 'completed')


game_participants = db.Table(
    'game_participant',
    db.Column('game_id', db.Integer, db.ForeignKey('game_instance.id'), primary_key=True),
    db.Column('user_id', db.Integer, db.ForeignKey('user.id'), primary_key=True),
    db.Column('joined_at', db.Float, default=time.time),
)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(128), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='student')
    sound_feedback = db.Column(db.Boolean, nullable=False, default=True)
    haptic_feedback = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def display_name(self):
        return self.name or self.email or 'Unknown User'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'sound_feedback': self.sound_feedback,
            'haptic_feedback': self.haptic_feedback,
            'created_at': self.created_at,
        }


class InviteToken(db.Model):
    __tablename__ = 'invite_token'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    token = db.Column(db.String(64), nullable=False, unique=True)
    expires_at = db.Column(db.Float, nullable=False)
    created_by = db.Column(db.String(64), nullable=False)  # user id, or 'bootstrap'
    used = db.Column(db.Boolean, nullable=False, default=False)
    role = db.Column(db.String(16), nullable=False, default='student')
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'email': self.email,
            'role': self.role,
            'expires_at': self.expires_at,
            'used': self.used,
        }


class PasswordResetToken(db.Model):
    __tablename__ = 'password_reset_token'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    token = db.Column(db.String(64), nullable=False, unique=True)
    expires_at = db.Column(db.Float, nullable=False)
    used = db.Column(db.Boolean, nullable=False, default=False)


def generate_game_code(length=6):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not GameInstance.query.filter_by(code=code).first():
            return code


class GameInstance(db.Model):
    __tablename__ = 'game_instance'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, index=True, nullable=False)
    game_kind = db.Column(db.String(64), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)  # single-player, multiplayer
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, index=True)
    status = db.Column(db.String(16), nullable=False, default='waiting')  # waiting, active, completed
    created_at = db.Column(db.Float, nullable=False, default=time.time)
    started_at = db.Column(db.Float, nullable=True)
    custom_config = db.Column(db.JSON, nullable=True)
    questions = db.Column(db.JSON, nullable=False, default=list)

    creator = db.relationship('User', foreign_keys=[created_by])
    participants = db.relationship('User', secondary=game_participants, lazy='select', order_by='User.id')
    guest_participants = db.relationship(
        'GuestParticipant', back_populates='game', order_by='GuestParticipant.joined_at'
    )

    def __init__(self, **kwargs):
        super(GameInstance, self).__init__(**kwargs)
        if not self.code:
            self.code = generate_game_code()

    @property
    def is_multiplayer(self):
        return self.type == 'multiplayer'

    @property
    def participant_count(self):
        return len(self.participants) + len(self.guest_participants)

    @property
    def time_limit(self):
        """Configured duration in seconds, or None when the kind has none."""
        from quizplatform.catalog import get_game_kind
        cfg = self.custom_config or {}
        if cfg.get('timeLimit'):
            return int(cfg['timeLimit'])
        kind = get_game_kind(self.game_kind)
        return kind['maxTime'] if kind else None

    def to_dict(self):
        creator = self.creator
        return {
            'id': self.id,
            'code': self.code,
            'gameId': self.game_kind,
            'type': self.type,
            'status': self.status,
            'createdBy': self.created_by,
            'creator': {'id': creator.id, 'name': creator.display_name} if creator else None,
            'participants': [u.id for u in self.participants],
            'guestParticipants': [g.to_dict() for g in self.guest_participants],
            'createdAt': self.created_at,
            'gameStartedAt': self.started_at,
            'timeLimit': self.time_limit,
            'totalQuestions': len(self.questions or []),
            'customConfig': public_config(self.custom_config),
        }


def public_config(config):
    """customConfig without the answer key."""
    if not config:
        return None
    return {k: v for k, v in config.items() if k != 'questions'}


class GuestParticipant(db.Model):
    __tablename__ = 'guest_participant'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'name', name='uq_guest_game_name'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game_instance.id'), nullable=False, index=True)
    guest_id = db.Column(db.String(36), nullable=False, unique=True)
    name = db.Column(db.String(64), nullable=False)
    joined_at = db.Column(db.Float, nullable=False, default=time.time)

    game = db.relationship('GameInstance', back_populates='guest_participants')

    @property
    def participant_id(self):
        return f"guest:{self.guest_id}"

    def to_dict(self):
        return {
            'id': self.participant_id,
            'name': self.name,
            'joinedAt': self.joined_at,
        }


class ProgressRecord(db.Model):
    __tablename__ = 'progress_record'
    __table_args__ = (
        db.UniqueConstraint('game_code', 'participant_id', name='uq_progress_game_participant'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(8), nullable=False, index=True)
    participant_id = db.Column(db.String(64), nullable=False)
    participant_name = db.Column(db.String(128), nullable=False)
    participant_type = db.Column(db.String(16), nullable=False)  # authenticated, guest
    questions_answered = db.Column(db.Integer, nullable=False, default=0)
    total_questions = db.Column(db.Integer, nullable=False, default=0)
    score = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    last_updated = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'gameCode': self.game_code,
            'participantId': self.participant_id,
            'participantName': self.participant_name,
            'participantType': self.participant_type,
            'questionsAnswered': self.questions_answered,
            'totalQuestions': self.total_questions,
            'score': self.score,
            'isActive': self.is_active,
            'isCompleted': self.is_completed,
            'lastUpdated': self.last_updated,
        }


class AnswerRecord(db.Model):
    __tablename__ = 'answer_record'
    __table_args__ = (
        db.UniqueConstraint('game_code', 'participant_id', 'question_index', name='uq_answer_once'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(8), nullable=False, index=True)
    participant_id = db.Column(db.String(64), nullable=False)
    question_index = db.Column(db.Integer, nullable=False)
    answer = db.Column(db.JSON, nullable=True)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    submitted_at = db.Column(db.Float, nullable=False, default=time.time)
