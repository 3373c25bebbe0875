from flask import current_app
from sqlalchemy.exc import IntegrityError

from egghunt import db
from egghunt.errors import DuplicateUsername, InvalidInput, NotFound
from egghunt.models import Participant
from .store import read_with_retry, transaction
from . import sync


def clean_username(username) -> str:
    """Trim a requested username; case is kept as typed."""
    if not isinstance(username, str) or not username.strip():
        raise InvalidInput('Username cannot be empty')
    username = username.strip()
    max_length = int(current_app.config.get('USERNAME_MAX_LENGTH', 64))
    if len(username) > max_length:
        raise InvalidInput(f'Username must be at most {max_length} characters')
    return username


def register(username) -> Participant:
    username = clean_username(username)
    participant = Participant(username=username)
    try:
        with transaction('register'):
            # The unique index still decides races between two registrations
            if Participant.query.filter_by(username=username).first():
                raise DuplicateUsername(username)
            db.session.add(participant)
    except IntegrityError as exc:
        raise DuplicateUsername(username) from exc
    current_app.logger.info(f"[register] user={username} id={participant.id}")
    sync.publish('participants', 'insert')
    return participant


@read_with_retry
def lookup(username) -> Participant:
    if not isinstance(username, str):
        raise NotFound('User not found')
    participant = Participant.query.filter_by(username=username.strip()).first()
    if not participant:
        raise NotFound('User not found')
    return participant


@read_with_retry
def list_participants():
    return Participant.query.order_by(Participant.created_at, Participant.id).all()
