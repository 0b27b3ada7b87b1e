import time
import uuid
from urllib.parse import urlencode

from flask import current_app

from quizplatform import db
from quizplatform.authorization import can_invite_role
from quizplatform.errors import Forbidden, GameError, InvalidRequest
from quizplatform.models import ROLES, InviteToken, PasswordResetToken, User
from .mailer import send_invite_email, send_password_reset_email


def _link(path: str, email: str, token: str) -> str:
    base = current_app.config.get('APP_DOMAIN', 'http://localhost:3000').rstrip('/')
    return f"{base}{path}?{urlencode({'email': email, 'token': token})}"


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise InvalidRequest(f"Invalid role: {role}")


def create_invite(inviter: User, email: str, role: str) -> InviteToken:
    """Store an invite token and email the sign-up link.

    If the email cannot be sent the token is discarded.
    """
    email = normalize_email(email)
    if not email:
        raise InvalidRequest('Email is required')
    _check_role(role)
    if not can_invite_role(inviter, role):
        raise Forbidden("You don't have permission to invite this role")

    ttl = int(current_app.config.get('INVITE_TTL_SEC', 7 * 24 * 60 * 60))
    invite = InviteToken(
        email=email,
        token=str(uuid.uuid4()),
        expires_at=time.time() + ttl,
        created_by=str(inviter.id),
        used=False,
        role=role,
    )
    db.session.add(invite)
    try:
        send_invite_email(email, _link('/invite', email, invite.token))
    except GameError:
        db.session.rollback()
        raise
    db.session.commit()
    current_app.logger.info(f"[invite] email={email} role={role} by={inviter.id}")
    return invite


def create_bootstrap_invite(email: str, role: str = 'admin') -> InviteToken:
    """First invite of a fresh installation. Refused once an admin exists."""
    _check_role(role)
    if User.query.filter_by(role='admin').first():
        raise Forbidden('Admin user already exists. Use regular invite flow.')
    invite = InviteToken(
        email=normalize_email(email),
        token=str(uuid.uuid4()),
        expires_at=time.time() + int(current_app.config.get('INVITE_TTL_SEC', 7 * 24 * 60 * 60)),
        created_by='bootstrap',
        used=False,
        role=role,
    )
    db.session.add(invite)
    db.session.commit()
    return invite


def validate_invite(email: str, token: str, now: float = None) -> InviteToken:
    now = time.time() if now is None else now
    invite = InviteToken.query.filter_by(email=normalize_email(email), token=token).first()
    if not invite:
        raise InvalidRequest('Invalid invite token')
    if invite.used:
        raise InvalidRequest('Invite token has already been used')
    if now > invite.expires_at:
        raise InvalidRequest('Invite token has expired')
    return invite


def latest_open_invite(email: str, now: float = None):
    now = time.time() if now is None else now
    return (
        InviteToken.query
        .filter_by(email=normalize_email(email), used=False)
        .filter(InviteToken.expires_at >= now)
        .order_by(InviteToken.created_at.desc(), InviteToken.id.desc())
        .first()
    )


def request_password_reset(email: str) -> None:
    """Email a reset link if the account exists. Callers never learn whether it does."""
    email = normalize_email(email)
    user = User.query.filter_by(email=email).first()
    if not user:
        current_app.logger.info(f"[password-reset] no account for email={email}")
        return
    PasswordResetToken.query.filter_by(email=email, used=False).delete()
    reset = PasswordResetToken(
        email=email,
        token=str(uuid.uuid4()),
        expires_at=time.time() + int(current_app.config.get('PASSWORD_RESET_TTL_SEC', 3600)),
        used=False,
    )
    db.session.add(reset)
    try:
        send_password_reset_email(email, _link('/reset-password', email, reset.token))
    except GameError as exc:
        # Same response as for an unknown email
        db.session.rollback()
        current_app.logger.error(f"[password-reset] email failed email={email}: {exc.message}")
        return
    db.session.commit()
    current_app.logger.info(f"[password-reset] token issued email={email}")


def validate_reset_token(email: str, token: str, now: float = None) -> PasswordResetToken:
    now = time.time() if now is None else now
    reset = PasswordResetToken.query.filter_by(email=normalize_email(email), token=token).first()
    if not reset:
        raise InvalidRequest('Invalid reset token')
    if reset.used:
        raise InvalidRequest('Reset token has already been used')
    if now > reset.expires_at:
        raise InvalidRequest('Reset token has expired')
    return reset


def reset_password(email: str, token: str, new_password: str) -> None:
    if not new_password or len(new_password) < 8:
        raise InvalidRequest('Password must be at least 8 characters')
    reset = validate_reset_token(email, token)
    user = User.query.filter_by(email=normalize_email(email)).first()
    if not user:
        raise InvalidRequest('Invalid reset token')
    reset.used = True
    user.set_password(new_password)
    db.session.commit()
    current_app.logger.info(f"[password-reset] password changed user={user.id}")
