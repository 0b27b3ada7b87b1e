from functools import wraps
from typing import List

from flask_login import current_user

from quizplatform.errors import Forbidden, NotAuthenticated
from quizplatform.models import ROLES

ROLE_LEVELS = {'student': 0, 'teacher': 1, 'admin': 2}


def get_authenticated_user():
    """Return the logged-in user or raise NotAuthenticated."""
    if not current_user or not current_user.is_authenticated:
        raise NotAuthenticated()
    return current_user._get_current_object()


def optional_user():
    if current_user and current_user.is_authenticated:
        return current_user._get_current_object()
    return None


def has_role(user, required_role: str) -> bool:
    if user is None:
        return False
    level = ROLE_LEVELS.get(user.role or 'student', 0)
    return level >= ROLE_LEVELS[required_role]


def require_role(required_role: str):
    """Route decorator: the current user must hold ``required_role`` or higher."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = get_authenticated_user()
            if not has_role(user, required_role):
                raise Forbidden(f'Access denied. Required role: {required_role}')
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def invitable_roles(user) -> List[str]:
    if user is None:
        return []
    if user.role == 'admin':
        return list(reversed(ROLES))
    if user.role == 'teacher':
        return ['student']
    return []


def can_invite_role(user, role: str) -> bool:
    return role in invitable_roles(user)
