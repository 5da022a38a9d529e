"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole, Student, Lecturer
from .lecture_session import LectureSession
from .attendance import AttendanceRecord
from .feedback import Feedback

__all__ = [
    'BaseModel', 'User', 'UserRole', 'Student', 'Lecturer',
    'LectureSession', 'AttendanceRecord', 'Feedback'
]
