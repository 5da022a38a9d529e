"""Test the two-phase attendance marking protocol."""
from datetime import timedelta

import pytest

from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.services.marking_service import (
    MarkingService, MarkingState, session_token_payload
)
from qr_attendance.services.session_service import SessionService
from qr_attendance.services.token_service import TokenCodec
from qr_attendance.utils.errors import (
    DuplicateAttendance, ExpiredToken, InvalidToken, SessionClosed,
    SessionNotFound, Unauthorized
)
from qr_attendance.utils.helpers import isoformat


def _token_for(session, ttl_seconds=None):
    ttl = ttl_seconds or int((session.session_end - session.session_start).total_seconds())
    return TokenCodec.from_app().mint(
        session_token_payload(session), ttl, now=session.session_start
    )


@pytest.fixture
def service(app):
    return MarkingService()


def test_preview_does_not_store(service, lecture_session, student):
    now = lecture_session.session_start + timedelta(minutes=10)

    result = service.mark(student, _token_for(lecture_session), now=now)

    assert result.state is MarkingState.AWAITING_CONFIRMATION
    assert not result.committed
    assert result.data['sessionId'] == lecture_session.id
    assert result.data['courseCode'] == 'CSC309'
    assert result.data['expiryTime'] == isoformat(lecture_session.session_end)
    assert result.data['remainingMinutes'] == 20
    assert AttendanceRecord.query.count() == 0


def test_confirm_commits_record(service, lecture_session, student):
    now = lecture_session.session_start + timedelta(minutes=1)

    result = service.mark(student, _token_for(lecture_session), confirm=True, now=now)

    assert result.state is MarkingState.COMMITTED
    assert result.data['matricNumber'] == '2021/12345'
    assert result.data['name'] == 'Alan Turing'
    assert result.data['status'] == 'present'
    assert SessionService.get_report(lecture_session.id)['attendanceRate'] == 2


def test_second_confirm_is_duplicate(service, lecture_session, student):
    token = _token_for(lecture_session)
    now = lecture_session.session_start + timedelta(minutes=1)
    service.mark(student, token, confirm=True, now=now)

    with pytest.raises(DuplicateAttendance):
        service.mark(student, token, confirm=True, now=now)
    with pytest.raises(DuplicateAttendance):
        service.mark(student, token, now=now)
    assert AttendanceRecord.query.count() == 1


def test_students_mark_independently(service, lecture_session, student, other_student):
    token = _token_for(lecture_session)
    now = lecture_session.session_start + timedelta(minutes=1)

    service.mark(student, token, confirm=True, now=now)
    service.mark(other_student, token, confirm=True, now=now)

    assert lecture_session.attendance_count == 2


def test_expired_token(service, lecture_session, student):
    later = lecture_session.session_end + timedelta(minutes=1)

    with pytest.raises(ExpiredToken):
        service.mark(student, _token_for(lecture_session), confirm=True, now=later)
    assert AttendanceRecord.query.count() == 0


def test_expiry_time_checked_independently_of_signature(service, lecture_session, student):
    # signature valid for an hour, but the descriptor says 30 minutes
    token = _token_for(lecture_session, ttl_seconds=3600)
    later = lecture_session.session_end + timedelta(minutes=1)

    with pytest.raises(ExpiredToken):
        service.mark(student, token, now=later)


def test_invalid_token(service, lecture_session, student):
    with pytest.raises(InvalidToken):
        service.mark(student, 'garbage')


def test_token_missing_fields(service, lecture_session, student):
    token = TokenCodec.from_app().mint({'sessionId': lecture_session.id}, 600)
    with pytest.raises(InvalidToken):
        service.mark(student, token)


def test_token_for_deleted_session(service, lecture_session, lecturer, student):
    token = _token_for(lecture_session)
    SessionService.delete_session(lecture_session.id, lecturer.id)

    with pytest.raises(SessionNotFound):
        service.mark(student, token)


def test_lecturer_cannot_mark(service, lecture_session, lecturer):
    with pytest.raises(Unauthorized):
        service.mark(lecturer, _token_for(lecture_session))


def test_anonymous_cannot_mark(service, lecture_session):
    with pytest.raises(Unauthorized):
        service.mark(None, _token_for(lecture_session))


def test_stopped_session_rejects_valid_token(service, lecture_session, lecturer, student):
    token = _token_for(lecture_session)
    stopped_at = lecture_session.session_start + timedelta(minutes=2)
    SessionService.stop_session(lecture_session.id, lecturer.id, now=stopped_at)

    with pytest.raises(SessionClosed):
        service.mark(student, token, confirm=True, now=stopped_at + timedelta(minutes=1))
