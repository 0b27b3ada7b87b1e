from flask import Blueprint, jsonify, request
from flask_login import login_required
from quizplatform.authorization import get_authenticated_user, optional_user, require_role
from quizplatform.errors import register_error_handlers
from quizplatform.models import User
from quizplatform.services import accounts

users = Blueprint('users', __name__)
register_error_handlers(users)


@users.route('/me', methods=['GET'])
def get_current_user():
    user = optional_user()
    return jsonify(user.to_dict() if user else None)


@users.route('/me', methods=['PATCH'])
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}
    user = accounts.update_profile(get_authenticated_user(), data)
    return jsonify(user.to_dict())


@users.route('', methods=['GET'])
@require_role('admin')
def list_users():
    return jsonify([u.to_dict() for u in User.query.order_by(User.created_at).all()])


@users.route('/<int:user_id>/role', methods=['PATCH'])
@require_role('admin')
def update_user_role(user_id):
    data = request.get_json(silent=True) or {}
    if not data.get('role'):
        return jsonify({'error': 'role is required'}), 400
    user = accounts.update_role(get_authenticated_user(), user_id, data['role'])
    return jsonify(user.to_dict())


@users.route('/<int:user_id>', methods=['DELETE'])
@require_role('admin')
def delete_user(user_id):
    accounts.delete_user(get_authenticated_user(), user_id)
    return jsonify({'success': True})
