"""Lecture session: one QR attendance window owned by a lecturer."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.utils.helpers import attendance_rate, isoformat, utcnow


class LectureSession(BaseModel):
    """Session for tracking attendance with QR codes."""

    __tablename__ = 'lecture_sessions'
    __table_args__ = (
        db.CheckConstraint('session_end >= session_start', name='ck_lecture_sessions_window'),
        db.CheckConstraint('total_course_students >= 0', name='ck_lecture_sessions_total'),
    )

    course_title = db.Column(db.String(255), nullable=False)
    course_code = db.Column(db.String(50), nullable=False, index=True)
    level = db.Column(db.String(3), nullable=False)
    total_course_students = db.Column(db.Integer, nullable=False, default=0)
    session_start = db.Column(db.DateTime, nullable=False)
    session_end = db.Column(db.DateTime, nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Owned, append-only collection in marking order
    attendance_records = db.relationship(
        'AttendanceRecord',
        backref='session',
        cascade='all, delete-orphan',
        order_by='AttendanceRecord.id'
    )

    def is_expired(self, now=None) -> bool:
        """Check if the scheduled end has passed."""
        return (now or utcnow()) >= self.session_end

    def is_open(self, now=None) -> bool:
        """Attendance may be appended only while active and not past its end."""
        return self.active and not self.is_expired(now)

    @property
    def attendance_count(self) -> int:
        return len(self.attendance_records)

    @property
    def attendance_rate(self) -> int:
        return attendance_rate(self.attendance_count, self.total_course_students)

    def course_details(self) -> dict:
        return {
            'courseTitle': self.course_title,
            'courseCode': self.course_code,
            'level': self.level,
            'totalCourseStudents': self.total_course_students
        }

    def to_dict(self, now=None) -> dict:
        """Convert to dictionary."""
        data = {
            'id': self.id,
            'sessionId': self.id,
            'date': isoformat(self.session_start),
            'sessionStart': isoformat(self.session_start),
            'sessionEnd': isoformat(self.session_end),
            'active': self.is_open(now),
            'attendanceCount': self.attendance_count,
            'attendanceRate': self.attendance_rate,
            'lecturerId': self.lecturer_id,
            'createdAt': isoformat(self.created_at)
        }
        data.update(self.course_details())
        return data

    def __repr__(self):
        return f'<LectureSession {self.course_code} {self.id}>'
