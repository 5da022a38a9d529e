"""Attendance record owned by a lecture session."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.utils.helpers import isoformat, utcnow


class AttendanceRecord(BaseModel):
    """One student's presence mark within a session.

    Rows are only ever created through ``SessionService.append_attendance``;
    the unique constraint makes the duplicate check and the insert a single
    atomic step.
    """

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'matric_number', name='uq_attendance_session_matric'),
    )

    session_id = db.Column(
        db.Integer,
        db.ForeignKey('lecture_sessions.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    # Kept when the student account is deleted
    student_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    matric_number = db.Column(db.String(50), nullable=False, index=True)
    course_code = db.Column(db.String(50), nullable=False)
    course_title = db.Column(db.String(255), nullable=False)
    level = db.Column(db.String(3), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='present')
    date = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            'sessionId': self.session_id,
            'studentId': self.student_id,
            'name': self.name,
            'matricNumber': self.matric_number,
            'courseCode': self.course_code,
            'courseTitle': self.course_title,
            'level': self.level,
            'status': self.status,
            'date': isoformat(self.date)
        }

    def __repr__(self):
        return f'<AttendanceRecord {self.matric_number}-{self.session_id}>'
