from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError
from egghunt import db
from egghunt.errors import HuntError, InvalidInput
from egghunt.services.hunt import admin as admin_controls


admin = Blueprint('admin', __name__)


@admin.errorhandler(HuntError)
def handle_hunt_error(exc):
    current_app.logger.warning(f"[admin-error] {request.path} reason={exc.reason}")
    return jsonify({'success': False, 'error': exc.message, 'reason': exc.reason}), exc.status_code


@admin.errorhandler(SQLAlchemyError)
def handle_store_error(exc):
    db.session.rollback()
    current_app.logger.error(f"[admin-store-error] {request.path}: {exc!r}")
    return jsonify({'success': False, 'error': 'Admin operation failed', 'reason': 'store_error'}), 500


@admin.route('/overview', methods=['GET'])
@login_required
def overview():
    return jsonify(admin_controls.overview())


@admin.route('/reset-game', methods=['POST'])
@login_required
def reset_game():
    deleted = admin_controls.reset_game()
    return jsonify({'success': True, 'message': 'Game reset successfully', 'deleted': deleted})


@admin.route('/reset-all', methods=['POST'])
@login_required
def reset_all():
    deleted = admin_controls.reset_all()
    return jsonify({'success': True, 'message': 'All users and progress reset successfully', 'deleted': deleted})


@admin.route('/update-code', methods=['POST'])
@login_required
def update_code():
    data = request.get_json(silent=True) or {}
    code_id = data.get('id')
    new_code = data.get('code')
    if not code_id or not new_code:
        raise InvalidInput('Missing id or code')
    # bool is an int subclass
    if not isinstance(code_id, int) or isinstance(code_id, bool):
        raise InvalidInput('id must be an integer')
    code = admin_controls.edit_code(code_id, new_code)
    return jsonify({'success': True, 'message': 'Code updated successfully', 'code': code.to_dict()})


@admin.route('/seed', methods=['POST'])
@login_required
def seed():
    data = request.get_json(silent=True) or {}
    codes = data.get('codes')
    if codes is not None and not isinstance(codes, list):
        raise InvalidInput('codes must be a list')
    seeded = admin_controls.reseed(codes)
    return jsonify({
        'success': True,
        'message': 'Database seeded successfully',
        'codes': [c.to_dict() for c in seeded],
    }), 201
