# controllers/auth_controller.py

from flask import Blueprint, request, jsonify, g

from services.auth_service import AuthService, login_required

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/auth/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    user = AuthService.register(data.get('username'), data.get('password'))
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@auth_bp.route('/auth/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user, token = AuthService.login(data.get('username'), data.get('password'))
    return jsonify({'success': True, 'token': token, 'user': user.to_dict()}), 200


@auth_bp.route('/auth/logout', methods=['POST'])
@login_required
def logout():
    AuthService.logout(g.auth_token)
    return jsonify({'success': True, 'message': 'Logged out'}), 200


@auth_bp.route('/auth/create-admin', methods=['POST'])
def create_admin():
    data = request.get_json(silent=True) or {}
    user = AuthService.create_admin(data.get('username'), data.get('password'), data.get('setup_key'))
    return jsonify({'success': True, 'user': user.to_dict()}), 201
