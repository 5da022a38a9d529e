"""User accounts: a closed set of two roles sharing one table."""
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.utils.helpers import isoformat, utcnow


class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    LECTURER = 'lecturer'


class User(BaseModel):
    """Credential record common to students and lecturers.

    Never instantiated directly; ``role`` selects the ``Student`` or
    ``Lecturer`` mapper when rows are loaded.
    """

    __tablename__ = 'users'
    __table_args__ = (
        db.CheckConstraint(
            "(role = 'student' AND matric_number IS NOT NULL) OR "
            "(role = 'lecturer' AND matric_number IS NULL)",
            name='ck_users_matric_number_role'
        ),
    )

    # Basic Information
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    pending_email = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    matric_number = db.Column(db.String(50), unique=True, nullable=True, index=True)
    department = db.Column(db.String(255), nullable=False)
    profile_picture = db.Column(db.String(512), nullable=False, default='default.jpg')

    # Security and Authentication
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    login_attempts = db.Column(db.Integer, default=0, nullable=False)
    lock_until = db.Column(db.DateTime, nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)

    __mapper_args__ = {'polymorphic_on': role}

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    def is_locked(self, now=None) -> bool:
        now = now or utcnow()
        return self.lock_until is not None and self.lock_until > now

    def register_failed_login(self, max_attempts: int, lock_for, now=None) -> None:
        """Count a failed login; lock the account once the limit is reached."""
        now = now or utcnow()
        self.login_attempts = (self.login_attempts or 0) + 1
        if self.login_attempts >= max_attempts:
            self.lock_until = now + lock_for
            self.login_attempts = 0

    def register_successful_login(self, now=None) -> None:
        self.login_attempts = 0
        self.lock_until = None
        self.last_login = now or utcnow()

    def to_dict(self) -> dict:
        """Convert to dictionary excluding sensitive data."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'matricNumber': self.matric_number,
            'department': self.department,
            'profilePicture': self.profile_picture,
            'isVerified': self.is_verified,
            'createdAt': isoformat(self.created_at)
        }

    def __repr__(self) -> str:
        return f'<User {self.email}>'


class Student(User):
    """A student; the only role that may mark attendance."""

    __mapper_args__ = {'polymorphic_identity': UserRole.STUDENT.value}

    attendance_records = db.relationship('AttendanceRecord', backref='student')


class Lecturer(User):
    """A lecturer; the only role that may open attendance sessions."""

    __mapper_args__ = {'polymorphic_identity': UserRole.LECTURER.value}

    sessions = db.relationship(
        'LectureSession',
        backref='lecturer',
        cascade='all, delete-orphan',
        order_by='LectureSession.created_at.desc()'
    )
