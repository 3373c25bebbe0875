import threading
import warnings

import pytest
from sqlalchemy.exc import SAWarning

from egghunt import create_app, db
from egghunt.errors import AlreadyFound, HuntError, NotFound, InvalidInput, DuplicateUsername
from egghunt.models import FoundRecord, Participant
from egghunt.services.hunt import catalog, ledger, registry, rules
from egghunt.services.hunt.ledger import Standing
from egghunt.services.hunt.rules import SubmissionState


def test_normalize_code():
    assert catalog.normalize_code('  code1 ') == 'CODE1'
    assert catalog.normalize_code('') == ''
    assert catalog.normalize_code(None) == ''


def test_register_twice_keeps_one_participant(flask_app):
    registry.register('alice')
    with pytest.raises(DuplicateUsername):
        registry.register('alice')
    assert Participant.query.filter_by(username='alice').count() == 1


def test_register_rejects_overlong_username(flask_app):
    with pytest.raises(InvalidInput):
        registry.register('x' * 65)


def test_record_found_twice(flask_app, seeded):
    alice = registry.register('alice')
    code = seeded[0]
    ledger.record_found(alice.id, code.id)
    with pytest.raises(AlreadyFound):
        ledger.record_found(alice.id, code.id)
    assert FoundRecord.query.filter_by(participant_id=alice.id, code_id=code.id).count() == 1
    assert ledger.has_found(alice.id, code.id)


def test_record_found_dangling_ids(flask_app, seeded):
    alice = registry.register('alice')
    with pytest.raises(NotFound):
        ledger.record_found(alice.id, 9999)
    with pytest.raises(NotFound):
        ledger.record_found(9999, seeded[0].id)
    assert ledger.record_count() == 0


def test_standings_sorted_and_sum_matches_records(flask_app):
    codes = catalog.reseed(['A', 'B', 'C'])
    names = ['ann', 'ben', 'cat', 'dan']
    people = [registry.register(n) for n in names]
    found = {'ann': 1, 'ben': 3, 'cat': 0, 'dan': 2}
    for person in people:
        for code in codes[:found[person.username]]:
            ledger.record_found(person.id, code.id)

    standings = ledger.standings_for(registry.list_participants(), catalog.count())
    counts = [s.codes_found for s in standings]
    assert counts == sorted(counts, reverse=True)
    assert [s.username for s in standings] == ['ben', 'dan', 'ann', 'cat']
    assert sum(counts) == ledger.record_count()
    assert all(s.total_codes == 3 for s in standings)


def test_find_winners():
    complete = Standing(participant_id=1, username='alice', codes_found=3, total_codes=3)
    partial = Standing(participant_id=2, username='bob', codes_found=2, total_codes=3)
    assert rules.find_winners([complete, partial], 3) == ['alice']
    assert rules.find_winners([partial], 3) == []
    assert rules.find_winners([Standing(3, 'nobody', 0, 0)], 0) == []
    assert complete.is_complete and not partial.is_complete


def test_duplicate_credit_does_not_make_a_winner(flask_app):
    codes = catalog.reseed(['A', 'B', 'C'])
    alice = registry.register('alice')
    ledger.record_found(alice.id, codes[0].id)
    ledger.record_found(alice.id, codes[1].id)
    with pytest.raises(AlreadyFound):
        ledger.record_found(alice.id, codes[1].id)
    board = rules.leaderboard()
    assert board['standings'][0]['codes_found'] == 2
    assert board['winners'] == []

    ledger.record_found(alice.id, codes[2].id)
    assert rules.leaderboard()['winners'] == ['alice']


def test_multiple_finishers_all_win(flask_app):
    codes = catalog.reseed(['ONLY'])
    for name in ['alice', 'bob']:
        person = registry.register(name)
        ledger.record_found(person.id, codes[0].id)
    assert rules.leaderboard()['winners'] == ['alice', 'bob']


def test_submit_code_walks_states(flask_app, seeded):
    registry.register('alice')
    result = rules.submit_code('alice', 'code2')
    assert result.accepted
    assert result.state is SubmissionState.RECORDED
    assert result.standing.codes_found == 1

    again = rules.submit_code('alice', 'CODE2')
    assert again.state is SubmissionState.REJECTED
    assert again.error.reason == 'already_found'

    wrong = rules.submit_code('alice', 'nope')
    assert wrong.error.reason == 'invalid_code'


def test_stale_credit_check_loses_at_insert(flask_app, seeded, monkeypatch):
    # Both submissions see "not yet found", as two concurrent requests would
    registry.register('alice')
    monkeypatch.setattr(ledger, 'has_found', lambda participant_id, code_id: False)

    first = rules.submit_code('alice', 'CODE1')
    second = rules.submit_code('alice', 'CODE1')

    assert first.accepted
    assert not second.accepted
    assert second.error.reason == 'recording_failed'
    assert ledger.record_count() == 1


def test_retried_submission_never_double_counts(flask_app, seeded):
    registry.register('alice')
    outcomes = [rules.submit_code('alice', 'code1') for _ in range(3)]
    assert [o.accepted for o in outcomes] == [True, False, False]
    assert ledger.record_count() == 1


@pytest.fixture()
def file_app(tmp_path):
    from conftest import TestConfig

    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.db'}"

    application = create_app(FileConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def test_concurrent_record_found_has_one_winner(file_app):
    codes = catalog.reseed(['CODE1'])
    alice = registry.register('alice')
    participant_id, code_id = alice.id, codes[0].id
    db.session.remove()

    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def attempt():
        with file_app.app_context():
            barrier.wait()
            try:
                ledger.record_found(participant_id, code_id)
                outcome = 'ok'
            except HuntError as exc:
                outcome = exc.reason
            finally:
                db.session.remove()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert len(outcomes) == 2
    assert outcomes.count('ok') == 1
    assert ledger.record_count() == 1


def test_reseed_leaves_no_stale_codes(flask_app, seeded):
    old = seeded[0]
    assert old.code == 'CODE1'
    with warnings.catch_warnings():
        warnings.simplefilter('error', SAWarning)
        fresh = catalog.reseed(['NEW1', 'NEW2'])
    assert old not in db.session
    assert all(code in db.session for code in fresh)
    assert [c.code for c in catalog.list_all()] == ['NEW1', 'NEW2']


def test_reseed_rejects_overlong_code(flask_app, seeded):
    with pytest.raises(InvalidInput):
        catalog.reseed(['OK', 'X' * 65])
    assert [c.code for c in catalog.list_all()] == ['CODE1', 'CODE2']
