import time
import uuid

from flask import current_app
from sqlalchemy import or_

from quizplatform import db
from quizplatform.catalog import get_game_kind
from quizplatform.errors import AlreadyCompleted, DuplicateGuestName, Forbidden, InvalidRequest, NotFound
from quizplatform.models import GameInstance, GuestParticipant, ProgressRecord, User, game_participants
from .questions import generate_questions

MAX_GUEST_NAME_LENGTH = 64


def normalize_code(code: str) -> str:
    return (code or '').strip().upper()


def find_instance(code: str):
    return GameInstance.query.filter_by(code=normalize_code(code)).first()


def get_instance(code: str) -> GameInstance:
    game = find_instance(code)
    if not game:
        raise NotFound('Game not found')
    return game


def _has_completed(game_code: str, participant_id: str) -> bool:
    record = ProgressRecord.query.filter_by(game_code=game_code, participant_id=participant_id).first()
    return bool(record and record.is_completed)


def create_instance(user: User, kind_id: str, custom_config=None) -> GameInstance:
    kind = get_game_kind(kind_id)
    if not kind:
        raise NotFound('Game not found')
    if kind['type'] == 'multiplayer' and user.role == 'student':
        raise Forbidden('Students can only create single-player games')

    questions = generate_questions(kind_id, custom_config)
    game = GameInstance(
        game_kind=kind_id,
        type=kind['type'],
        created_by=user.id,
        status='waiting',
        custom_config=custom_config or None,
        questions=questions,
    )
    if kind['type'] == 'single-player':
        game.participants.append(user)
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(
        f"[create] game={game.code} kind={kind_id} type={game.type} by={user.id} questions={len(questions)}"
    )
    return game


def participants_view(game: GameInstance) -> dict:
    payload = game.to_dict()
    everyone = [
        {
            'id': str(u.id),
            'name': u.display_name,
            'type': 'authenticated',
            'isHost': u.id == game.created_by,
        }
        for u in game.participants
    ]
    everyone.extend(
        {'id': g.participant_id, 'name': g.name, 'type': 'guest', 'isHost': False}
        for g in game.guest_participants
    )
    payload['allParticipants'] = everyone
    return payload


def _check_joinable(game: GameInstance) -> None:
    if not game.is_multiplayer:
        raise InvalidRequest('Cannot join single-player games')
    if game.status == 'completed':
        raise AlreadyCompleted('Game has already completed')


def join_game(user: User, code: str) -> GameInstance:
    game = get_instance(code)
    _check_joinable(game)
    if _has_completed(game.code, str(user.id)):
        raise AlreadyCompleted('You have already completed this game')
    if user in game.participants:
        return game
    game.participants.append(user)
    db.session.commit()
    current_app.logger.info(f"[join] game={game.code} user={user.id} participants={game.participant_count}")
    return game


def join_game_as_guest(code: str, guest_name: str, guest_id: str = None):
    """Register a guest, or re-enter with a previously issued guest id.

    Returns ``(game, guest)``. The generated guest id, not the display name,
    identifies the guest's progress.
    """
    game = get_instance(code)
    _check_joinable(game)

    if guest_id:
        guest = GuestParticipant.query.filter_by(game_id=game.id, guest_id=guest_id).first()
        if not guest:
            raise NotFound('Guest not found in this game')
        if _has_completed(game.code, guest.participant_id):
            raise AlreadyCompleted('You have already completed this game')
        return game, guest

    name = (guest_name or '').strip()
    if not name:
        raise InvalidRequest('Guest name is required')
    if len(name) > MAX_GUEST_NAME_LENGTH:
        raise InvalidRequest(f'Guest name must be at most {MAX_GUEST_NAME_LENGTH} characters')
    if any(g.name == name for g in game.guest_participants):
        raise DuplicateGuestName()

    guest = GuestParticipant(game=game, guest_id=str(uuid.uuid4()), name=name, joined_at=time.time())
    db.session.add(guest)
    db.session.commit()
    current_app.logger.info(f"[join-guest] game={game.code} guest={guest.guest_id} participants={game.participant_count}")
    return game, guest


def start_game(user: User, code: str) -> GameInstance:
    """Move a waiting instance to active. ``started_at`` is written only once."""
    game = get_instance(code)
    if game.created_by != user.id:
        if game.is_multiplayer:
            raise Forbidden('Only the host can start the game')
        raise Forbidden('Only the player who created this game can start it')
    if game.status == 'completed':
        raise AlreadyCompleted('Game has already completed')
    if game.status == 'active':
        return game
    game.status = 'active'
    if game.started_at is None:
        game.started_at = time.time()
    db.session.commit()
    current_app.logger.info(f"[start] game={game.code} type={game.type} started_at={game.started_at}")
    return game


def active_games(user: User):
    joined_ids = db.session.query(game_participants.c.game_id).filter(game_participants.c.user_id == user.id)
    return (
        GameInstance.query
        .filter(or_(GameInstance.id.in_(joined_ids), GameInstance.created_by == user.id))
        .filter(GameInstance.status != 'completed')
        .order_by(GameInstance.created_at.desc())
        .all()
    )
