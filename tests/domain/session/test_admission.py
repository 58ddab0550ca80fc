"""Tests for AdmissionController join checks."""

from datetime import timedelta

import pytest

from app.domain.session.admission import AdmissionController
from app.schemas import SessionState
from app.utils.app_errors import AppError, AppErrorCode
from tests.domain.session.session_factory import make_record
from tests.fixtures.session_fixtures import FIXED_NOW

admission = AdmissionController()


class TestJoin:
    @pytest.mark.parametrize("status", [SessionState.SCHEDULED, SessionState.LIVE])
    def test_join_joinable_session(self, status):
        session = make_record(status=status)

        later = FIXED_NOW + timedelta(minutes=1)
        participant = admission.join(session, "u.alice", later)

        assert participant.user_id == "u.alice"
        assert participant.joined_at == later
        assert session.updated_at == later
        assert [p.user_id for p in session.participants] == ["u.alice"]

    def test_duplicate_join_rejected(self):
        session = make_record(participant_ids=["u.alice"])

        with pytest.raises(AppError) as exc_info:
            admission.join(session, "u.alice", FIXED_NOW)

        assert exc_info.value.errcode == AppErrorCode.ALREADY_JOINED
        assert len(session.participants) == 1

    def test_full_session_rejected(self):
        session = make_record(max_participants=2, participant_ids=["u.a", "u.b"])

        with pytest.raises(AppError) as exc_info:
            admission.join(session, "u.c", FIXED_NOW)

        assert exc_info.value.errcode == AppErrorCode.SESSION_FULL
        assert len(session.participants) == 2

    @pytest.mark.parametrize("status", [SessionState.COMPLETED, SessionState.CANCELLED])
    def test_terminal_session_not_joinable(self, status):
        session = make_record(status=status)

        with pytest.raises(AppError) as exc_info:
            admission.join(session, "u.alice", FIXED_NOW)

        assert exc_info.value.errcode == AppErrorCode.SESSION_NOT_JOINABLE

    def test_status_checked_before_duplicate(self):
        session = make_record(status=SessionState.CANCELLED, participant_ids=["u.alice"])

        with pytest.raises(AppError) as exc_info:
            admission.join(session, "u.alice", FIXED_NOW)

        assert exc_info.value.errcode == AppErrorCode.SESSION_NOT_JOINABLE

    def test_duplicate_checked_before_capacity(self):
        session = make_record(max_participants=1, participant_ids=["u.alice"])

        with pytest.raises(AppError) as exc_info:
            admission.join(session, "u.alice", FIXED_NOW)

        assert exc_info.value.errcode == AppErrorCode.ALREADY_JOINED
