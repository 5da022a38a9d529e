"""Test attendance reports and trends."""
from datetime import timedelta

import pytest

from qr_attendance.services.report_service import ReportService
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.errors import Forbidden, SessionNotFound
from qr_attendance.utils.helpers import attendance_rate, utcnow


def _mark(session, student):
    return SessionService.append_attendance(
        session.id, student.id, student.name, student.matric_number
    )


@pytest.mark.parametrize('present, total, expected', [
    (1, 50, 2),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (3, 3, 100),
    (0, 40, 0),
    (0, 0, 0),
    (4, 0, 0),
])
def test_attendance_rate(present, total, expected):
    assert attendance_rate(present, total) == expected


def test_report(lecture_session, lecturer, student, other_student):
    _mark(lecture_session, student)
    _mark(lecture_session, other_student)

    report = ReportService.report(lecture_session.id, lecturer.id)

    assert [row['matricNumber'] for row in report['report']] == ['2021/12345', '2021/54321']
    summary = report['sessionData']
    assert summary['courseCode'] == 'CSC309'
    assert summary['attendanceCount'] == 2
    assert summary['attendanceRate'] == 4
    assert summary['absentCount'] == 48
    assert summary['levelCounts'] == {'300': 2}


def test_report_for_empty_session(lecture_session, lecturer):
    report = ReportService.report(lecture_session.id, lecturer.id)

    assert report['report'] == []
    assert report['sessionData']['attendanceRate'] == 0
    assert report['sessionData']['absentCount'] == 50


def test_report_other_lecturer(lecture_session, other_lecturer):
    with pytest.raises(Forbidden):
        ReportService.report(lecture_session.id, other_lecturer.id)


def test_report_unknown_session(lecturer):
    with pytest.raises(SessionNotFound):
        ReportService.report(12345, lecturer.id)


def test_trend_oldest_first(lecturer, other_lecturer, student):
    now = utcnow()
    later = SessionService.create_session(
        lecturer.id, 'Operating Systems', 'CSC401', '400', 10, 30, now=now
    )
    earlier = SessionService.create_session(
        lecturer.id, 'Compiler Design', 'CSC402', '400', 0, 30, now=now - timedelta(days=1)
    )
    SessionService.create_session(other_lecturer.id, 'Databases', 'CSC305', '300', 40, 10)
    _mark(later, student)

    trend = ReportService.trend(lecturer.id)

    assert [point['sessionId'] for point in trend] == [earlier.id, later.id]
    assert trend[0]['attendanceRate'] == 0
    assert trend[1]['attendanceCount'] == 1
    assert trend[1]['attendanceRate'] == 10
    assert trend[1]['courseCode'] == 'CSC401'


def test_trend_without_sessions(lecturer):
    assert ReportService.trend(lecturer.id) == []


def test_student_history(lecture_session, lecturer, student):
    other = SessionService.create_session(
        lecturer.id, 'Operating Systems', 'CSC401', '400', 10, 30
    )
    _mark(lecture_session, student)
    _mark(other, student)

    history = ReportService.student_history(student.matric_number)

    assert history['totalAttended'] == 2
    assert history['coursesAttended'] == {'CSC309': 1, 'CSC401': 1}
    assert history['records'][0]['courseCode'] == 'CSC401'
