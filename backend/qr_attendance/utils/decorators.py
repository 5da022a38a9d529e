"""Custom decorators for role-based authorization.

Both decorators expect to run under ``@jwt_required()`` so that
``current_user`` has already been resolved from the login token.
"""
from functools import wraps
from flask_jwt_extended import current_user
from qr_attendance.models.user import Lecturer, Student
from qr_attendance.utils.errors import Forbidden


def lecturer_required(f):
    """Decorator to require a lecturer account."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not isinstance(current_user, Lecturer):
            raise Forbidden("Lecturer access required")
        return f(*args, **kwargs)
    return decorated_function


def student_required(f):
    """Decorator to require a student account."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not isinstance(current_user, Student):
            raise Forbidden("Student access required")
        return f(*args, **kwargs)
    return decorated_function
