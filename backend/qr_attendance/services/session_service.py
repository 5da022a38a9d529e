"""Session registry: lecture sessions and their owned attendance records."""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.models.user import Lecturer, User
from qr_attendance.utils.errors import (
    DuplicateAttendance, Forbidden, SessionClosed, SessionNotFound
)
from qr_attendance.utils.helpers import attendance_rate, utcnow
from qr_attendance.utils.validators import COURSE_LEVELS, Validator, ensure_valid

logger = logging.getLogger(__name__)


class SessionService:
    """Service for creating, closing and reading lecture sessions."""

    @staticmethod
    def create_session(
        lecturer_id: int,
        course_title: str,
        course_code: str,
        level: str,
        total_course_students: int,
        duration_minutes: int,
        now: Optional[datetime] = None
    ) -> LectureSession:
        """Open a session that ends exactly ``duration_minutes`` from now."""
        lecturer = db.session.get(User, lecturer_id)
        if not isinstance(lecturer, Lecturer):
            raise Forbidden("Only lecturers can create attendance sessions")

        data = {
            'courseTitle': course_title,
            'courseCode': course_code,
            'level': level,
            'duration': duration_minutes,
            'totalCourseStudents': total_course_students
        }
        ensure_valid(
            Validator.validate_min_length(data, 'courseTitle', 5),
            Validator.validate_min_length(data, 'courseCode', 5),
            Validator.validate_choice(data, 'level', COURSE_LEVELS),
            Validator.validate_int_range(
                data, 'duration',
                current_app.config['SESSION_MIN_DURATION'],
                current_app.config['SESSION_MAX_DURATION']
            ),
            Validator.validate_int_range(data, 'totalCourseStudents', 0)
        )

        session_start = now or utcnow()
        session = LectureSession(
            course_title=course_title.strip(),
            course_code=course_code.strip().upper(),
            level=str(level),
            total_course_students=total_course_students,
            session_start=session_start,
            session_end=session_start + timedelta(minutes=duration_minutes),
            active=True,
            lecturer_id=lecturer.id
        )
        session.save()

        logger.info(
            'Session %s generated by lecturer %s for %s (%s min)',
            session.id, lecturer.id, session.course_code, duration_minutes
        )
        return session

    @staticmethod
    def get_session(session_id: int) -> LectureSession:
        session = db.session.get(LectureSession, session_id)
        if session is None:
            raise SessionNotFound()
        return session

    @staticmethod
    def get_owned_session(session_id: int, lecturer_id: int) -> LectureSession:
        """Fetch a session, refusing callers other than its lecturer."""
        session = SessionService.get_session(session_id)
        if session.lecturer_id != lecturer_id:
            raise Forbidden("You can only manage your own attendance sessions")
        return session

    @staticmethod
    def stop_session(session_id: int, lecturer_id: int, now: Optional[datetime] = None) -> LectureSession:
        """End a session early; a stopped or expired session is returned as is."""
        session = SessionService.get_owned_session(session_id, lecturer_id)
        now = now or utcnow()
        if not session.is_open(now):
            return session

        session.active = False
        # the scheduled end is overwritten; never earlier than the start
        session.session_end = max(session.session_start, now)
        db.session.commit()

        logger.info('Session %s stopped by lecturer %s', session.id, lecturer_id)
        return session

    @staticmethod
    def delete_session(session_id: int, lecturer_id: int) -> None:
        """Remove a session and all of its attendance records."""
        session = SessionService.get_owned_session(session_id, lecturer_id)
        record_count = session.attendance_count
        session.delete()
        logger.info(
            'Session %s deleted by lecturer %s with %s records',
            session_id, lecturer_id, record_count
        )

    @staticmethod
    def append_attendance(
        session_id: int,
        student_id: Optional[int],
        name: str,
        matric_number: str,
        now: Optional[datetime] = None
    ) -> AttendanceRecord:
        """Add one student's mark; at most one per (session, matric number)."""
        session = SessionService.get_session(session_id)
        now = now or utcnow()

        if not session.is_open(now):
            raise SessionClosed()

        if SessionService.has_attendance(session.id, matric_number):
            raise DuplicateAttendance()

        record = AttendanceRecord(
            session_id=session.id,
            student_id=student_id,
            name=name,
            matric_number=matric_number,
            course_code=session.course_code,
            course_title=session.course_title,
            level=session.level,
            status='present',
            date=now
        )
        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError:
            # a concurrent mark for the same matric number won the insert
            db.session.rollback()
            raise DuplicateAttendance()

        logger.info('Attendance marked: session %s, matric %s', session.id, matric_number)
        return record

    @staticmethod
    def has_attendance(session_id: int, matric_number: str) -> bool:
        return db.session.query(
            AttendanceRecord.query.filter_by(
                session_id=session_id,
                matric_number=matric_number
            ).exists()
        ).scalar()

    @staticmethod
    def list_by_lecturer(lecturer_id: int) -> List[LectureSession]:
        """A lecturer's sessions, most recently created first."""
        return LectureSession.query.filter_by(lecturer_id=lecturer_id).order_by(
            LectureSession.created_at.desc(),
            LectureSession.id.desc()
        ).all()

    @staticmethod
    def get_report(session_id: int) -> Dict:
        session = SessionService.get_session(session_id)
        records = list(session.attendance_records)
        return {
            'records': records,
            'totalCourseStudents': session.total_course_students,
            'attendanceRate': attendance_rate(len(records), session.total_course_students)
        }

    @staticmethod
    def records_for_student(matric_number: str) -> List[AttendanceRecord]:
        """Every attendance record carrying this matric number, newest first."""
        return AttendanceRecord.query.filter_by(matric_number=matric_number).order_by(
            AttendanceRecord.date.desc(),
            AttendanceRecord.id.desc()
        ).all()
