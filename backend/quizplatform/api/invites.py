from flask import Blueprint, jsonify, request
from flask_login import login_required
from quizplatform.authorization import get_authenticated_user, invitable_roles
from quizplatform.errors import register_error_handlers
from quizplatform.services import invites as invite_service

invites = Blueprint('invites', __name__)
register_error_handlers(invites)


@invites.route('/invites/roles', methods=['GET'])
@login_required
def get_invitable_roles():
    return jsonify(invitable_roles(get_authenticated_user()))


@invites.route('/invites', methods=['POST'])
@login_required
def send_invite():
    data = request.get_json(silent=True) or {}
    if not data.get('email') or not data.get('role'):
        return jsonify({'error': 'Email and role are required'}), 400
    invite = invite_service.create_invite(get_authenticated_user(), data['email'], data['role'])
    return jsonify({
        'success': True,
        'message': 'Invite sent successfully',
        'invite': invite.to_dict(),
    }), 201


@invites.route('/invites/validate', methods=['GET'])
def validate_invite():
    invite = invite_service.validate_invite(request.args.get('email'), request.args.get('token'))
    return jsonify({'valid': True, 'email': invite.email, 'role': invite.role})


@invites.route('/password-reset/request', methods=['POST'])
def request_password_reset():
    data = request.get_json(silent=True) or {}
    if not data.get('email'):
        return jsonify({'error': 'Email is required'}), 400
    invite_service.request_password_reset(data['email'])
    return jsonify({'success': True, 'message': 'Password reset email sent if account exists'})


@invites.route('/password-reset/validate', methods=['GET'])
def validate_password_reset():
    invite_service.validate_reset_token(request.args.get('email'), request.args.get('token'))
    return jsonify({'valid': True})


@invites.route('/password-reset', methods=['POST'])
def reset_password():
    data = request.get_json(silent=True) or {}
    if not all([data.get('email'), data.get('token'), data.get('new_password')]):
        return jsonify({'error': 'Email, token and new_password are required'}), 400
    invite_service.reset_password(data['email'], data['token'], data['new_password'])
    return jsonify({'success': True, 'message': 'Password reset successfully'})
