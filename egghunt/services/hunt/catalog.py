"""The fixed set of secret codes for the current round.

Codes are stored in canonical form (trimmed, upper case) and every entry
point runs input through ``normalize_code`` before touching the table,
so matching is case-insensitive everywhere.
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError

from egghunt import db
from egghunt.errors import DuplicateCode, InvalidInput, NotFound
from egghunt.models import FoundRecord, SecretCode
from .store import read_with_retry, transaction
from . import sync


def normalize_code(value) -> str:
    if not isinstance(value, str):
        return ''
    return value.strip().upper()


def clean_code(value) -> str:
    """Normalize a code for storage, rejecting blank or overlong values."""
    code = normalize_code(value)
    if not code:
        raise InvalidInput('Code cannot be empty')
    max_length = int(current_app.config.get('CODE_MAX_LENGTH', 64))
    if len(code) > max_length:
        raise InvalidInput(f'Code must be at most {max_length} characters')
    return code


@read_with_retry
def list_all():
    return SecretCode.query.order_by(SecretCode.created_at, SecretCode.id).all()


@read_with_retry
def count() -> int:
    return SecretCode.query.count()


@read_with_retry
def get(code_id) -> SecretCode:
    code = db.session.get(SecretCode, code_id) if code_id is not None else None
    if not code:
        raise NotFound('Code not found')
    return code


@read_with_retry
def find_by_value(candidate) -> SecretCode:
    value = normalize_code(candidate)
    code = SecretCode.query.filter_by(code=value).first() if value else None
    if not code:
        raise NotFound('Code not found')
    return code


def replace(code_id, new_value) -> SecretCode:
    value = clean_code(new_value)
    code = get(code_id)
    try:
        with transaction('replace-code'):
            clash = SecretCode.query.filter(SecretCode.code == value, SecretCode.id != code.id).first()
            if clash:
                raise DuplicateCode(f'Code {value} already exists')
            previous = code.code
            code.code = value
    except IntegrityError as exc:
        raise DuplicateCode(f'Code {value} already exists') from exc
    current_app.logger.info(f"[code-replaced] id={code.id} {previous} -> {value}")
    sync.publish('secret_codes', 'update', id=code.id)
    return code


def reseed(values):
    """Replace the whole catalog in one transaction.

    Progress refers to the old codes, so found records are cleared first.
    Duplicates (after normalization) keep their first position.
    """
    cleaned = []
    for raw in values or []:
        value = clean_code(raw)
        if value not in cleaned:
            cleaned.append(value)
    if not cleaned:
        raise InvalidInput('At least one code is required')

    # Detach rows the bulk delete removes so no caller keeps a stale instance
    for obj in list(db.session.identity_map.values()):
        if isinstance(obj, (FoundRecord, SecretCode)):
            db.session.expunge(obj)

    with transaction('reseed'):
        cleared = FoundRecord.query.delete()
        SecretCode.query.delete()
        codes = [SecretCode(code=value) for value in cleaned]
        # Flush one at a time so created_at/id follow the given order
        for code in codes:
            db.session.add(code)
            db.session.flush()

    current_app.logger.info(f"[reseed] codes={len(codes)} cleared_records={cleared}")
    sync.publish('found_records', 'delete', bulk=True)
    sync.publish('secret_codes', 'delete', bulk=True)
    sync.publish('secret_codes', 'insert', bulk=True)
    return codes
