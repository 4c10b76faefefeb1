"""Tests for the SQL roll-call and response stores."""

import threading
from datetime import timedelta
from unittest import mock

import pytest

from tests.factories import count_calls
from whosin.models import AttendanceStatus, CallStatus, RollCall, RollCallResponse
from whosin.models.roll_call import utcnow
from whosin.repository import SqlRepository
from whosin.schemas.roll_call import Attendance
from whosin.services import responses as response_service
from whosin.services import roll_calls as roll_call_service
from whosin.services.tokens import token_for_named, token_for_self

CHAT = 100


def _create(session_factory, conversation_id=CHAT, title="beers"):
    with session_factory() as db, db.begin():
        return roll_call_service.create_call(db, conversation_id, title)


class TestCreateCall:
    def test_new_call_is_open_and_loud(self, session_factory):
        call = _create(session_factory)
        assert call.id is not None
        assert call.status == CallStatus.OPEN
        assert call.quiet is False
        assert call.title == "beers"
        assert call.created_at == call.updated_at

    def test_closes_previous_open_call(self, session_factory):
        first = _create(session_factory)
        second = _create(session_factory)

        with session_factory() as db:
            assert db.get(RollCall, first.id).status == CallStatus.CLOSED
            assert db.get(RollCall, second.id).status == CallStatus.OPEN
            assert count_calls(db, CHAT, CallStatus.OPEN) == 1

    def test_other_conversations_are_untouched(self, session_factory):
        other = _create(session_factory, conversation_id=200)
        _create(session_factory)

        with session_factory() as db:
            assert db.get(RollCall, other.id).status == CallStatus.OPEN

    def test_keeps_ten_most_recent_closed_calls(self, session_factory):
        created = [_create(session_factory, title=f"call {n}") for n in range(15)]

        with session_factory() as db:
            assert count_calls(db, CHAT, CallStatus.CLOSED) == 10
            assert count_calls(db, CHAT, CallStatus.OPEN) == 1
            remaining = {row.id for row in db.query(RollCall).filter(RollCall.conversation_id == CHAT)}

        assert remaining == {call.id for call in created[4:]}

    def test_prunes_nothing_below_the_limit(self, session_factory):
        for _ in range(5):
            _create(session_factory)

        with session_factory() as db:
            assert count_calls(db, CHAT) == 5

    def test_pruned_calls_take_their_responses_along(self, session_factory):
        first = _create(session_factory)
        with session_factory() as db, db.begin():
            response_service.upsert_response(
                db, CHAT, token_for_self(1), 1, "David", Attendance(status=AttendanceStatus.IN)
            )

        for _ in range(11):
            _create(session_factory)

        with session_factory() as db:
            assert db.get(RollCall, first.id) is None
            assert db.query(RollCallResponse).filter(RollCallResponse.roll_call_id == first.id).count() == 0


class TestLocateAndMutate:
    def test_close_call(self, session_factory):
        call = _create(session_factory)
        with session_factory() as db, db.begin():
            closed = roll_call_service.close_call(db, CHAT)

        assert closed.id == call.id
        assert closed.status == CallStatus.CLOSED
        assert closed.updated_at >= call.updated_at

    def test_close_without_open_call_returns_none(self, session_factory):
        with session_factory() as db, db.begin():
            assert roll_call_service.close_call(db, CHAT) is None

    def test_close_twice_is_a_no_op(self, session_factory):
        _create(session_factory)
        with session_factory() as db, db.begin():
            roll_call_service.close_call(db, CHAT)
        with session_factory() as db, db.begin():
            assert roll_call_service.close_call(db, CHAT) is None

    def test_update_title_only_touches_title(self, session_factory):
        _create(session_factory)
        with session_factory() as db, db.begin():
            updated = roll_call_service.update_title(db, CHAT, "pizza")

        assert updated.title == "pizza"
        assert updated.status == CallStatus.OPEN
        assert updated.quiet is False

    def test_set_quiet_returns_responses(self, session_factory):
        _create(session_factory)
        with session_factory() as db, db.begin():
            response_service.upsert_response(
                db, CHAT, token_for_named("Albert"), None, "Albert", Attendance(status=AttendanceStatus.MAYBE)
            )
        with session_factory() as db, db.begin():
            call, responses = roll_call_service.set_quiet(db, CHAT, True)

        assert call.quiet is True
        assert [r.user_name for r in responses] == ["Albert"]

    def test_find_current_open_prefers_latest_update(self, session_factory):
        now = utcnow()
        with session_factory() as db, db.begin():
            db.add_all(
                [
                    RollCall(conversation_id=CHAT, status=CallStatus.CLOSED, title="old",
                             created_at=now, updated_at=now + timedelta(hours=1)),
                    RollCall(conversation_id=CHAT, status=CallStatus.OPEN, title="current",
                             created_at=now, updated_at=now),
                ]
            )
        with session_factory() as db:
            assert roll_call_service.find_current_open(db, CHAT).title == "current"

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda db: roll_call_service.close_call(db, CHAT),
            lambda db: roll_call_service.update_title(db, CHAT, "pizza"),
            lambda db: roll_call_service.set_quiet(db, CHAT, True),
        ],
        ids=["close", "title", "quiet"],
    )
    def test_call_closed_after_lookup_is_left_alone(self, file_session_factory, mutate):
        call = _create(file_session_factory)

        with file_session_factory() as db, db.begin():
            lookup = db.scalar

            def lookup_then_close_elsewhere(statement, *args, **kwargs):
                found = lookup(statement, *args, **kwargs)
                with file_session_factory() as other, other.begin():
                    roll_call_service.close_open_calls(other, CHAT)
                return found

            db.scalar = lookup_then_close_elsewhere
            assert mutate(db) is None

        with file_session_factory() as db:
            stored = db.get(RollCall, call.id)
        assert (stored.status, stored.title, stored.quiet) == (CallStatus.CLOSED, "beers", False)


class TestConcurrentCreate:
    def test_postgres_takes_advisory_lock(self):
        db = mock.Mock()
        db.get_bind.return_value.dialect.name = "postgresql"

        roll_call_service.lock_conversation(db, CHAT)

        db.execute.assert_called_once()
        statement, params = db.execute.call_args.args
        assert "pg_advisory_xact_lock" in str(statement)
        assert params == {"key": CHAT}

    def test_sqlite_takes_no_lock(self, session_factory):
        with session_factory() as db, mock.patch.object(db, "execute") as execute:
            roll_call_service.lock_conversation(db, CHAT)
        execute.assert_not_called()

    def test_lock_is_taken_before_closing(self, session_factory, monkeypatch):
        steps = []
        close_open_calls = roll_call_service.close_open_calls

        def record_close(db, conversation_id):
            steps.append("close")
            return close_open_calls(db, conversation_id)

        monkeypatch.setattr(roll_call_service, "lock_conversation", lambda db, conversation_id: steps.append("lock"))
        monkeypatch.setattr(roll_call_service, "close_open_calls", record_close)

        _create(session_factory)
        assert steps == ["lock", "close"]

    def test_parallel_creates_leave_one_open_call(self, file_session_factory):
        repository = SqlRepository(file_session_factory)
        workers = 4
        start = threading.Barrier(workers)
        errors = []

        def create_several(worker):
            start.wait()
            for n in range(5):
                try:
                    repository.create_call(CHAT, f"worker {worker} call {n}")
                except Exception as exc:
                    errors.append(exc)

        threads = [threading.Thread(target=create_several, args=(worker,)) for worker in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        with file_session_factory() as db:
            assert count_calls(db, CHAT, CallStatus.OPEN) == 1
            assert count_calls(db, CHAT, CallStatus.CLOSED) == 10


class TestResponses:
    def test_upsert_without_open_call_is_a_no_op(self, session_factory):
        with session_factory() as db, db.begin():
            result = response_service.upsert_response(
                db, CHAT, token_for_self(1), 1, "David", Attendance(status=AttendanceStatus.IN)
            )
        assert result is None

    def test_upsert_overwrites_same_token(self, session_factory):
        _create(session_factory)
        token = token_for_self(7)
        with session_factory() as db, db.begin():
            response_service.upsert_response(
                db, CHAT, token, 7, "Dave", Attendance(status=AttendanceStatus.IN, reason="early")
            )
        with session_factory() as db, db.begin():
            _, responses = response_service.upsert_response(
                db, CHAT, token, 7, "Dave B", Attendance(status=AttendanceStatus.OUT, reason="sick")
            )

        assert len(responses) == 1
        response = responses[0]
        assert (response.user_name, response.status, response.reason) == ("Dave B", AttendanceStatus.OUT, "sick")
        assert response.user_id == 7
        assert response.updated_at >= response.created_at

    def test_responses_are_most_recently_updated_first(self, session_factory):
        _create(session_factory)
        for name in ("David", "Daniel", "Henry"):
            with session_factory() as db, db.begin():
                response_service.upsert_response(
                    db, CHAT, token_for_named(name), None, name, Attendance(status=AttendanceStatus.IN)
                )
        with session_factory() as db, db.begin():
            _, responses = response_service.upsert_response(
                db, CHAT, token_for_named("David"), None, "David", Attendance(status=AttendanceStatus.OUT)
            )

        assert [r.user_name for r in responses] == ["David", "Henry", "Daniel"]

    def test_snapshot_of_closed_conversation_is_none(self, session_factory):
        _create(session_factory)
        with session_factory() as db, db.begin():
            roll_call_service.close_call(db, CHAT)
        with session_factory() as db:
            assert response_service.get_snapshot(db, CHAT) is None
