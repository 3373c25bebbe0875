"""Submission protocol, standings and winner detection.

A submission moves Received -> Normalized -> Validated -> CreditChecked
and ends Recorded or Rejected. Every ``HuntError`` raised on the way is
caught here and becomes a rejected ``SubmissionResult`` with a reason the
client can tell apart (invalid code vs already found vs failure).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from flask import current_app

from egghunt.errors import (
    AlreadyFound, HuntError, InvalidCode, InvalidInput, NotFound, RecordingFailed, StoreUnavailable,
)
from . import catalog, ledger, registry
from .ledger import Standing


class SubmissionState(Enum):
    RECEIVED = 'received'
    NORMALIZED = 'normalized'
    VALIDATED = 'validated'
    CREDIT_CHECKED = 'credit_checked'
    RECORDED = 'recorded'
    REJECTED = 'rejected'


@dataclass
class SubmissionResult:
    username: str
    code: str
    state: SubmissionState = SubmissionState.RECEIVED
    error: Optional[HuntError] = None
    standing: Optional[Standing] = None
    winners: List[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.state is SubmissionState.RECORDED

    def to_dict(self):
        payload = {
            'accepted': self.accepted,
            'state': self.state.value,
            'code': self.code,
        }
        if self.error is not None:
            payload.update(self.error.to_dict())
        if self.standing is not None:
            payload['standing'] = self.standing.to_dict()
        if self.accepted:
            payload['winners'] = self.winners
        return payload


def find_winners(standings, total_codes: int) -> List[str]:
    """Everyone who holds every code. Several finishers may share the win."""
    if total_codes <= 0:
        return []
    return [s.username for s in standings if s.codes_found == total_codes]


def leaderboard():
    total_codes = catalog.count()
    standings = ledger.standings_for(registry.list_participants(), total_codes)
    return {
        'total_codes': total_codes,
        'standings': [s.to_dict() for s in standings],
        'winners': find_winners(standings, total_codes),
    }


def standing_of(participant) -> Standing:
    return ledger.standings_for([participant], catalog.count())[0]


def submit_code(username, raw_code) -> SubmissionResult:
    result = SubmissionResult(username=username if isinstance(username, str) else '', code='')
    try:
        participant = registry.lookup(username)

        result.code = catalog.normalize_code(raw_code)
        if not result.code:
            raise InvalidInput('Code cannot be empty')
        result.state = SubmissionState.NORMALIZED

        try:
            code = catalog.find_by_value(result.code)
        except NotFound:
            raise InvalidCode()
        result.state = SubmissionState.VALIDATED

        if ledger.has_found(participant.id, code.id):
            raise AlreadyFound()
        result.state = SubmissionState.CREDIT_CHECKED

        try:
            ledger.record_found(participant.id, code.id)
        except StoreUnavailable:
            raise
        except HuntError as exc:
            # Most likely a concurrent submission of the same code won the insert
            raise RecordingFailed() from exc
        result.state = SubmissionState.RECORDED

        total_codes = catalog.count()
        standings = ledger.standings_for(registry.list_participants(), total_codes)
        result.winners = find_winners(standings, total_codes)
        result.standing = next(
            (s for s in standings if s.participant_id == participant.id), None
        ) or standing_of(participant)
    except HuntError as exc:
        if result.state is SubmissionState.RECORDED:
            # Credit landed; only the follow-up read failed
            current_app.logger.warning(f"[submit-refresh-failed] user={username} error={exc.reason}")
            return result
        result.state = SubmissionState.REJECTED
        result.error = exc
        current_app.logger.warning(
            f"[submit-rejected] user={username} code={result.code!r} reason={exc.reason}"
        )
        return result

    current_app.logger.info(
        f"[submit-recorded] user={participant.username} code={result.code} "
        f"progress={result.standing.codes_found}/{result.standing.total_codes}"
    )
    if participant.username in result.winners:
        current_app.logger.info(f"[winner] user={participant.username}")
    return result
