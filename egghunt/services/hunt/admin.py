"""Privileged operations behind /admin.

Callers must have checked that an Admin is logged in; the HTTP layer does
this with ``login_required``.
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError

from egghunt import db
from egghunt.errors import InvalidInput
from egghunt.models import Admin, FoundRecord, Participant
from .store import transaction
from . import catalog, ledger, registry, sync


def create_admin(username, password) -> Admin:
    if not isinstance(username, str) or not username.strip():
        raise InvalidInput('Username cannot be empty')
    if not password:
        raise InvalidInput('Password cannot be empty')
    account = Admin(username=username.strip())
    account.set_password(password)
    try:
        with transaction('create-admin'):
            db.session.add(account)
    except IntegrityError as exc:
        raise InvalidInput('Admin already exists') from exc
    current_app.logger.info(f"[admin-created] admin={account.username}")
    return account


def authenticate(username, password):
    """Return the Admin for valid credentials, else None."""
    if not username or not password:
        return None
    account = Admin.query.filter_by(username=username).first()
    if account and account.check_password(password):
        return account
    return None


def edit_code(code_id, new_value):
    return catalog.replace(code_id, new_value)


def reset_game() -> int:
    """Wipe all progress; participants and codes stay."""
    deleted = ledger.clear_all()
    current_app.logger.info(f"[reset-game] deleted={deleted}")
    return deleted


def reset_all():
    """Wipe progress and participants. Codes stay."""
    with transaction('reset-all'):
        # Children first: found records reference participants
        records = FoundRecord.query.delete()
        participants = Participant.query.delete()
    current_app.logger.info(f"[reset-all] records={records} participants={participants}")
    sync.publish('found_records', 'delete', bulk=True)
    sync.publish('participants', 'delete', bulk=True)
    return {'found_records': records, 'participants': participants}


def reseed(codes=None):
    return catalog.reseed(codes if codes else current_app.config['DEFAULT_CODES'])


def overview():
    codes = catalog.list_all()
    total_codes = len(codes)
    standings = ledger.standings_for(registry.list_participants(), total_codes)
    return {
        'codes': [c.to_dict() for c in codes],
        'progress': [s.to_dict() for s in standings],
        'total_codes': total_codes,
    }
