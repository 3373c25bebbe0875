from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from egghunt.services.hunt import admin as admin_controls

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Easter egg hunt server!'})

@main.route('/admin/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    account = admin_controls.authenticate(data.get('username'), data.get('password'))
    if account:
        login_user(account, remember=True)
        return jsonify({'success': True, 'admin': account.to_dict()})
    return jsonify({'success': False, 'error': 'Invalid username or password'}), 401

@main.route('/admin/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})

@main.route('/admin/whoami')
@login_required
def whoami():
    return jsonify({'success': True, 'admin': current_user.to_dict()})
