from flask import current_app

from quizplatform import db
from quizplatform.errors import Forbidden, InvalidRequest, NotFound
from quizplatform.models import ROLES, GameInstance, User, game_participants
from .invites import latest_open_invite, normalize_email, validate_invite

MIN_PASSWORD_LENGTH = 8


def create_user(email: str, password: str, name: str = None, role: str = 'student') -> User:
    email = normalize_email(email)
    if not email or '@' not in email:
        raise InvalidRequest('A valid email is required')
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequest(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    if role not in ROLES:
        raise InvalidRequest(f'Invalid role: {role}')
    if User.query.filter_by(email=email).first():
        raise InvalidRequest('User with this email already exists')
    user = User(email=email, name=(name or '').strip() or email.split('@')[0], role=role)
    user.set_password(password)
    db.session.add(user)
    return user


def register_user(email: str, password: str, name: str = None, token: str = None) -> User:
    """Create an account, taking the role from an invite when there is one."""
    invite = validate_invite(email, token) if token else latest_open_invite(email)
    role = invite.role if invite else 'student'
    user = create_user(email, password, name, role)
    if invite:
        invite.used = True
    db.session.commit()
    current_app.logger.info(f"[register] user={user.id} role={role} invited={bool(invite)}")
    return user


def update_profile(user: User, data: dict) -> User:
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            raise InvalidRequest('Name cannot be empty')
        user.name = name
    for field in ('sound_feedback', 'haptic_feedback'):
        if field in data:
            if not isinstance(data[field], bool):
                raise InvalidRequest(f'{field} must be true or false')
            setattr(user, field, data[field])
    db.session.commit()
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    return user


def update_role(admin: User, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise InvalidRequest(f'Invalid role: {role}')
    user = get_user(user_id)
    if user.id == admin.id and role != 'admin':
        raise Forbidden('You cannot remove your own admin role')
    user.role = role
    db.session.commit()
    current_app.logger.info(f"[role] user={user.id} role={role} by={admin.id}")
    return user


def delete_user(admin: User, user_id: int) -> None:
    """Remove an account. Its progress records and created games stay for history."""
    user = get_user(user_id)
    if user.id == admin.id:
        raise Forbidden('You cannot delete your own account')
    db.session.execute(game_participants.delete().where(game_participants.c.user_id == user.id))
    GameInstance.query.filter_by(created_by=user.id).update({'created_by': None})
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info(f"[delete-user] user={user_id} by={admin.id}")
