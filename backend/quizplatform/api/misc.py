from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required
from markupsafe import escape
from quizplatform.errors import InvalidRequest, ServiceUnavailable, register_error_handlers
from quizplatform.services.ai_mcq import generate_mcq
from quizplatform.services.mailer import send_email

misc = Blueprint('misc', __name__)
register_error_handlers(misc)


def _text_field(data, key):
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise InvalidRequest(f'{key} must be a string')
    return value.strip()


@misc.route('/ai/generate-mcq', methods=['POST'])
@login_required
def generate_mcq_questions():
    data = request.get_json(silent=True) or {}
    questions = generate_mcq(
        data.get('aiPrompt'),
        data.get('difficultyLevel'),
        data.get('questionCount'),
        data.get('language') or 'English',
    )
    return jsonify({'questions': questions})


@misc.route('/feedback', methods=['POST'])
def submit_feedback():
    data = request.get_json(silent=True) or {}
    name = _text_field(data, 'name')
    comment = _text_field(data, 'comment')
    context = _text_field(data, 'context')
    if not name:
        return jsonify({'error': 'Name is required'}), 400
    if not comment:
        return jsonify({'error': 'Comment is required'}), 400

    to = current_app.config.get('FEEDBACK_EMAIL')
    if not to:
        raise ServiceUnavailable('Email service not configured')
    submitted = datetime.now(timezone.utc).isoformat()
    subject = f"Feedback from {name}" + (f" - {context}" if context else "")
    text = f"Feedback Submission\n\nName: {name}\n"
    if context:
        text += f"Context: {context}\n"
    text += f"\nComment:\n{comment}\n\n---\nSubmitted at: {submitted}"
    html = f'<pre style="white-space: pre-wrap;">{escape(text)}</pre>'
    send_email(to, subject, html, text)
    current_app.logger.info(f"[feedback] from={name!r} context={context!r}")
    return jsonify({'success': True, 'message': 'Feedback sent successfully'})
