from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from quizplatform.errors import register_error_handlers
from quizplatform.models import User
from quizplatform.services.accounts import register_user
from quizplatform.services.invites import normalize_email

main = Blueprint('main', __name__)
register_error_handlers(main)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the U&I game platform!'})


@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(email=normalize_email(data.get('email'))).first()
    if user and data.get('password') and user.check_password(data['password']):
        login_user(user, remember=True)
        return jsonify({"success": True, "user": user.to_dict()})
    return jsonify({"success": False, "error": "Invalid email or password"}), 401


@main.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    if not data.get('email') or not data.get('password'):
        return jsonify({"success": False, "error": "Email and password are required"}), 400
    user = register_user(data['email'], data['password'], data.get('name'), data.get('token'))
    login_user(user)
    return jsonify({"success": True, "user": user.to_dict()}), 201


@main.route('/check_login', methods=['GET', 'OPTIONS'])
def check_login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200

    @login_required
    def protected_check():
        return jsonify({"success": True, "user": current_user.to_dict()})

    return protected_check()


@main.route('/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})
