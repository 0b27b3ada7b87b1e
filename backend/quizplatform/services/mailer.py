import requests
from flask import current_app

from quizplatform.errors import ExternalServiceError, ServiceUnavailable

RESEND_URL = 'https://api.resend.com/emails'


def send_email(to: str, subject: str, html: str, text: str = None) -> dict:
    """Send one email through Resend. With MAIL_ENABLED off the message is only logged."""
    cfg = current_app.config
    if not cfg.get('MAIL_ENABLED', True):
        current_app.logger.info(f"[mail-skip] to={to} subject={subject!r}")
        return {'id': None, 'skipped': True}

    api_key = cfg.get('RESEND_API_KEY')
    if not api_key:
        current_app.logger.error("[mail] RESEND_API_KEY not configured")
        raise ServiceUnavailable('Email service not configured')

    payload = {'from': cfg.get('FROM_EMAIL'), 'to': [to], 'subject': subject, 'html': html}
    if text:
        payload['text'] = text
    try:
        response = requests.post(
            RESEND_URL,
            json=payload,
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=10,
        )
    except requests.RequestException as exc:
        current_app.logger.error(f"[mail] send failed to={to}: {exc}")
        raise ExternalServiceError(f'Email sending failed: {exc}')
    if response.status_code >= 400:
        current_app.logger.error(f"[mail] resend error status={response.status_code} body={response.text}")
        raise ExternalServiceError(f'Email sending failed: {response.text}')
    current_app.logger.info(f"[mail] sent to={to} subject={subject!r}")
    return response.json()


def _layout(title: str, body_html: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h1 style="color: #4f46e5;">U&amp;I Game Platform</h1>'
        f'<h2>{title}</h2>{body_html}'
        '<p style="color: #6b7280; font-size: 14px;">The U&amp;I Game Platform Team</p>'
        '</div>'
    )


def send_invite_email(to: str, link: str) -> dict:
    html = _layout(
        "You've been invited!",
        '<p>You have been invited to join the U&amp;I Game Platform.</p>'
        f'<p><a href="{link}">Create my account</a></p>'
        '<p>This invitation will expire in 7 days.</p>',
    )
    text = f"You've been invited to join the U&I Game Platform.\nCreate your account: {link}\n"
    return send_email(to, "You're invited to join! - U&I Game Platform", html, text)


def send_password_reset_email(to: str, link: str) -> dict:
    html = _layout(
        'Reset your password',
        '<p>You requested to reset your password.</p>'
        f'<p><a href="{link}">Reset my password</a></p>'
        '<p>This link will expire in 1 hour.</p>',
    )
    text = f"Reset your password: {link}\nThis link will expire in 1 hour.\n"
    return send_email(to, 'Reset your password - U&I Game Platform', html, text)
