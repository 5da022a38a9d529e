"""Two-phase attendance marking: preview a scanned token, then commit it."""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.models.user import Student, User
from qr_attendance.services.session_service import SessionService
from qr_attendance.services.token_service import TokenCodec
from qr_attendance.utils.errors import (
    AttendanceError, DuplicateAttendance, ExpiredToken, InvalidToken,
    SessionClosed, Unauthorized
)
from qr_attendance.utils.helpers import isoformat, utcnow
from qr_attendance.utils.validators import parse_session_id

logger = logging.getLogger(__name__)

TOKEN_FIELDS = (
    'sessionId', 'courseCode', 'courseTitle', 'level',
    'totalCourseStudents', 'expiryTime'
)


class MarkingState(Enum):
    TOKEN_RECEIVED = 'token_received'
    DECODED = 'decoded'
    VALIDATED = 'validated'
    AWAITING_CONFIRMATION = 'awaiting_confirmation'
    COMMITTED = 'committed'
    REJECTED = 'rejected'


@dataclass
class MarkingResult:
    """Terminal outcome of a successful call: a preview or a stored mark."""
    state: MarkingState
    data: Dict

    @property
    def committed(self) -> bool:
        return self.state is MarkingState.COMMITTED


def session_token_payload(session: LectureSession) -> Dict:
    """Descriptor signed into the QR code for ``session``."""
    return {
        'sessionId': session.id,
        'courseCode': session.course_code,
        'courseTitle': session.course_title,
        'level': session.level,
        'totalCourseStudents': session.total_course_students,
        'expiryTime': isoformat(session.session_end)
    }


def _parse_expiry(value) -> datetime:
    try:
        return datetime.fromisoformat(str(value).rstrip('Z'))
    except ValueError:
        raise InvalidToken()


class MarkingService:
    """Drives one marking request through the protocol states.

    Rejections are raised as ``AttendanceError`` subclasses; a returned
    ``MarkingResult`` is either ``AWAITING_CONFIRMATION`` (nothing stored) or
    ``COMMITTED``.
    """

    def __init__(self, codec: Optional[TokenCodec] = None):
        self.codec = codec or TokenCodec.from_app()

    def mark(self, user: Optional[User], token: str, confirm: bool = False,
             now: Optional[datetime] = None) -> MarkingResult:
        now = now or utcnow()
        state = MarkingState.TOKEN_RECEIVED
        try:
            payload = self._decode(token, now)
            state = MarkingState.DECODED

            session = self._validate(user, payload, now)
            state = MarkingState.VALIDATED

            if not confirm:
                return self._preview(user, session, payload, now)
            return self._commit(user, session, now)
        except AttendanceError as e:
            logger.info(
                'Attendance rejected after %s: %s (user %s)',
                state.value, e.reason, getattr(user, 'id', None)
            )
            raise

    def _decode(self, token: str, now: datetime) -> Dict:
        payload = self.codec.verify(token, now=now)
        if any(field not in payload for field in TOKEN_FIELDS):
            raise InvalidToken()
        return payload

    def _validate(self, user: Optional[User], payload: Dict, now: datetime) -> LectureSession:
        # checked again here even though the signature's exp claim covers it
        if now >= _parse_expiry(payload['expiryTime']):
            raise ExpiredToken()

        try:
            session_id = parse_session_id(payload['sessionId'])
        except AttendanceError:
            raise InvalidToken()
        session = SessionService.get_session(session_id)

        if not isinstance(user, Student):
            raise Unauthorized("Only signed-in students can mark attendance")

        if not session.is_open(now):
            raise SessionClosed()
        return session

    def _preview(self, student: Student, session: LectureSession, payload: Dict,
                 now: datetime) -> MarkingResult:
        if SessionService.has_attendance(session.id, student.matric_number):
            raise DuplicateAttendance()

        expiry = _parse_expiry(payload['expiryTime'])
        remaining_minutes = max(0, math.ceil((expiry - now).total_seconds() / 60))
        return MarkingResult(
            state=MarkingState.AWAITING_CONFIRMATION,
            data={
                'sessionId': session.id,
                'courseTitle': session.course_title,
                'courseCode': session.course_code,
                'level': session.level,
                'sessionTime': session.session_start.strftime('%I:%M %p'),
                'expiryTime': payload['expiryTime'],
                'remainingMinutes': remaining_minutes
            }
        )

    def _commit(self, student: Student, session: LectureSession, now: datetime) -> MarkingResult:
        record = SessionService.append_attendance(
            session.id,
            student_id=student.id,
            name=student.name,
            matric_number=student.matric_number,
            now=now
        )
        return MarkingResult(state=MarkingState.COMMITTED, data=record.to_dict())
