from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from egghunt import db
from egghunt.errors import HuntError
from egghunt.services.hunt import catalog, ledger, registry, rules


hunt = Blueprint('hunt', __name__)


@hunt.errorhandler(HuntError)
def handle_hunt_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@hunt.errorhandler(SQLAlchemyError)
def handle_store_error(exc):
    db.session.rollback()
    current_app.logger.error(f"[hunt-store-error] {request.path}: {exc!r}")
    return jsonify({'error': 'An error occurred', 'reason': 'store_error'}), 500


@hunt.route('/participants', methods=['POST'])
def register_participant():
    data = request.get_json(silent=True) or {}
    participant = registry.register(data.get('username'))
    return jsonify(participant.to_dict()), 201


@hunt.route('/participants/<string:username>', methods=['GET'])
def get_participant(username):
    participant = registry.lookup(username)
    payload = participant.to_dict()
    payload['standing'] = rules.standing_of(participant).to_dict()
    payload['found_codes'] = ledger.found_codes(participant.id)
    return jsonify(payload)


@hunt.route('/participants/<string:username>/submissions', methods=['POST'])
def submit_code(username):
    data = request.get_json(silent=True) or {}
    result = rules.submit_code(username, data.get('code'))
    if result.accepted:
        return jsonify(result.to_dict()), 201
    status = result.error.status_code if result.error else 400
    return jsonify(result.to_dict()), status


@hunt.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify(rules.leaderboard())


@hunt.route('/codes/count', methods=['GET'])
def get_code_count():
    total = catalog.count()
    current_app.logger.debug(f"[codes-count] total={total}")
    return jsonify({'total_codes': total})
