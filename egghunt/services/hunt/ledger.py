from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from egghunt import db
from egghunt.errors import AlreadyFound, NotFound
from egghunt.models import FoundRecord, Participant, SecretCode
from .store import read_with_retry, transaction
from . import sync


@dataclass
class Standing:
    participant_id: int
    username: str
    codes_found: int
    total_codes: int
    registered_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.total_codes > 0 and self.codes_found == self.total_codes

    def to_dict(self):
        return {
            'participant_id': self.participant_id,
            'username': self.username,
            'codes_found': self.codes_found,
            'total_codes': self.total_codes,
        }


@read_with_retry
def has_found(participant_id, code_id) -> bool:
    return FoundRecord.query.filter_by(participant_id=participant_id, code_id=code_id).first() is not None


def record_found(participant_id, code_id) -> FoundRecord:
    """Credit a participant for a code.

    There is no read-then-write here: the insert itself is the check, and
    the (participant_id, code_id) unique constraint picks exactly one
    winner when two requests race.
    """
    try:
        with transaction('record-found'):
            if db.session.get(Participant, participant_id) is None:
                raise NotFound('User not found')
            if db.session.get(SecretCode, code_id) is None:
                raise NotFound('Code not found')
            record = FoundRecord(participant_id=participant_id, code_id=code_id)
            db.session.add(record)
    except IntegrityError as exc:
        current_app.logger.warning(
            f"[record-conflict] participant={participant_id} code={code_id}"
        )
        raise AlreadyFound() from exc
    sync.publish('found_records', 'insert', participant_id=participant_id)
    return record


@read_with_retry
def found_codes(participant_id) -> List[str]:
    rows = (
        db.session.query(SecretCode.code)
        .join(FoundRecord, FoundRecord.code_id == SecretCode.id)
        .filter(FoundRecord.participant_id == participant_id)
        .order_by(FoundRecord.found_at, FoundRecord.id)
        .all()
    )
    return [row[0] for row in rows]


@read_with_retry
def record_count() -> int:
    return FoundRecord.query.count()


@read_with_retry
def _counts_by_participant(participant_ids):
    if not participant_ids:
        return {}
    rows = (
        db.session.query(FoundRecord.participant_id, func.count(func.distinct(FoundRecord.code_id)))
        .filter(FoundRecord.participant_id.in_(participant_ids))
        .group_by(FoundRecord.participant_id)
        .all()
    )
    return {pid: int(n) for pid, n in rows}


def standings_for(participants, total_codes: int) -> List[Standing]:
    """Progress of every given participant, best first.

    Ties keep registration order (ids are handed out in insertion order)
    so the board does not reshuffle between refreshes.
    """
    participants = list(participants)
    counts = _counts_by_participant([p.id for p in participants])
    ordered = sorted(participants, key=lambda p: (-counts.get(p.id, 0), p.id))
    return [
        Standing(
            participant_id=p.id,
            username=p.username,
            codes_found=counts.get(p.id, 0),
            total_codes=total_codes,
            registered_at=p.created_at,
        )
        for p in ordered
    ]


def clear_all() -> int:
    with transaction('clear-found-records'):
        deleted = FoundRecord.query.delete()
    current_app.logger.info(f"[ledger-cleared] deleted={deleted}")
    sync.publish('found_records', 'delete', bulk=True)
    return deleted
