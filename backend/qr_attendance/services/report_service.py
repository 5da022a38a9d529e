"""Attendance reports and trends folded from session state."""
from typing import Dict, List

from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.helpers import attendance_rate, isoformat


class ReportService:
    """Read-only aggregation over the session registry."""

    @staticmethod
    def trend(lecturer_id: int) -> List[Dict]:
        """One point per session owned by the lecturer, oldest first."""
        sessions = LectureSession.query.filter_by(lecturer_id=lecturer_id).order_by(
            LectureSession.session_start.asc(),
            LectureSession.id.asc()
        ).all()

        return [
            {
                'sessionId': session.id,
                'courseCode': session.course_code,
                'sessionDate': isoformat(session.session_start),
                'attendanceCount': session.attendance_count,
                'totalCourseStudents': session.total_course_students,
                'attendanceRate': attendance_rate(
                    session.attendance_count, session.total_course_students
                )
            }
            for session in sessions
        ]

    @staticmethod
    def report(session_id: int, lecturer_id: int) -> Dict:
        """Per-student rows plus a summary for one of the lecturer's sessions."""
        session = SessionService.get_owned_session(session_id, lecturer_id)
        summary = SessionService.get_report(session.id)
        records = summary['records']

        levels = {}
        for record in records:
            levels[record.level] = levels.get(record.level, 0) + 1

        session_data = session.to_dict()
        session_data.update({
            'attendanceCount': len(records),
            'attendanceRate': summary['attendanceRate'],
            'absentCount': max(0, summary['totalCourseStudents'] - len(records)),
            'levelCounts': levels
        })
        return {
            'report': [record.to_dict() for record in records],
            'sessionData': session_data
        }

    @staticmethod
    def student_history(matric_number: str) -> Dict:
        """A student's marks, newest first, with per-course counts."""
        records = SessionService.records_for_student(matric_number)

        courses = {}
        for record in records:
            courses[record.course_code] = courses.get(record.course_code, 0) + 1

        return {
            'records': [record.to_dict() for record in records],
            'totalAttended': len(records),
            'coursesAttended': courses
        }
