"""Validation utilities for the application."""
import re
from typing import Dict, List, Any

from qr_attendance.utils.errors import ValidationError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
CREDENTIAL_PATTERN = re.compile(r'^[A-Za-z0-9/]+$')
COURSE_LEVELS = ('100', '200', '300', '400', '500')


class Validator:
    """Validation helper class.

    Each ``validate_*`` method returns a list of error messages; an empty
    list means the value is acceptable.
    """

    @staticmethod
    def validate_email(email: str) -> List[str]:
        if not email or not isinstance(email, str):
            return ["Email is required"]
        if not EMAIL_PATTERN.match(email):
            return ["Invalid email address"]
        return []

    @staticmethod
    def validate_password(password: str) -> List[str]:
        if not password or not isinstance(password, str):
            return ["Password is required"]
        if len(password) < 6:
            return ["Password must be at least 6 characters long"]
        if len(password) > 128:
            return ["Password is too long"]
        if not CREDENTIAL_PATTERN.match(password):
            return ["Password can only contain letters and numbers"]
        return []

    @staticmethod
    def validate_name(name: str) -> List[str]:
        if not isinstance(name, str) or not name.strip():
            return ["Name is required"]
        if len(re.sub(r'\s+', '', name)) < 5:
            return ["Name must be at least 5 characters long"]
        if len(name.strip()) > 100:
            return ["Name is too long"]
        return []

    @staticmethod
    def validate_department(department: str) -> List[str]:
        if not isinstance(department, str) or len(re.sub(r'\s+', '', department)) < 3:
            return ["Department must be at least 3 characters long"]
        return []

    @staticmethod
    def validate_matric_number(matric_number: str) -> List[str]:
        if not isinstance(matric_number, str) or not CREDENTIAL_PATTERN.match(matric_number):
            return ["Matric number can only contain letters, numbers and '/'"]
        if len(matric_number) < 10:
            return ["Matric number must be at least 10 characters long"]
        return []

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> List[str]:
        errors = []
        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field} is required")
        return errors

    @staticmethod
    def validate_min_length(data: Dict, field: str, minimum: int) -> List[str]:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            return [f"{field} is required"]
        if len(value.strip()) < minimum:
            return [f"{field} must be at least {minimum} characters long"]
        return []

    @staticmethod
    def validate_choice(data: Dict, field: str, choices: tuple) -> List[str]:
        if str(data.get(field)) not in choices:
            return [f"{field} must be one of {', '.join(choices)}"]
        return []

    @staticmethod
    def validate_int_range(data: Dict, field: str, minimum: int, maximum: int = None) -> List[str]:
        value = data.get(field)
        if isinstance(value, bool) or not isinstance(value, int):
            return [f"{field} must be a whole number"]
        if value < minimum or (maximum is not None and value > maximum):
            if maximum is None:
                return [f"{field} must be at least {minimum}"]
            return [f"{field} must be between {minimum} and {maximum}"]
        return []


def ensure_valid(*error_lists: List[str]) -> None:
    """Raise ``ValidationError`` with every message from the given checks."""
    errors = [error for errors in error_lists for error in errors]
    if errors:
        raise ValidationError(errors=errors)


def parse_session_id(raw: Any) -> int:
    """Session ids in URLs and tokens are positive integers."""
    text = str(raw).strip()
    if not text.isdigit() or int(text) <= 0:
        raise ValidationError("Invalid session ID")
    return int(text)


def clean_text(value: Any, field: str) -> str:
    """Trimmed text of an optional request field; non-text values are rejected."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text")
    return value.strip()


def strip_whitespace(value: Any, field: str = 'value') -> str:
    """Remove all whitespace, as done for matric numbers and passwords."""
    return re.sub(r'\s+', '', clean_text(value, field))
