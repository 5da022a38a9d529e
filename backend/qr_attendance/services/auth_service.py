"""Authentication service for user management."""
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from werkzeug.datastructures import FileStorage

from qr_attendance import db
from qr_attendance.models.user import Lecturer, Student, User
from qr_attendance.services.email_service import EmailService
from qr_attendance.services.token_service import (
    RESET_PASSWORD_PURPOSE, VERIFY_EMAIL_PURPOSE, TokenCodec
)
from qr_attendance.services.user_service import UserService
from qr_attendance.utils.errors import (
    AccountLocked, Conflict, Forbidden, InvalidToken, Unauthorized
)
from qr_attendance.utils.helpers import utcnow
from qr_attendance.utils.validators import (
    Validator, clean_text, ensure_valid, strip_whitespace
)

logger = logging.getLogger(__name__)


def _password_fingerprint(user: User) -> str:
    # ties a reset token to the password it replaces, so it works only once
    return hashlib.sha256(user.password_hash.encode()).hexdigest()[:16]


class AuthService:

    @staticmethod
    def register(data: Dict, picture: Optional[FileStorage] = None) -> Tuple[User, str]:
        """Create a student (matric number given) or lecturer account."""
        name = clean_text(data.get('name'), 'name')
        email = clean_text(data.get('email'), 'email').lower()
        department = clean_text(data.get('department'), 'department')
        password = strip_whitespace(data.get('password'), 'password')
        matric_number = strip_whitespace(data.get('matricNumber'), 'matricNumber') or None

        ensure_valid(
            Validator.validate_name(name),
            Validator.validate_email(email),
            Validator.validate_department(department),
            Validator.validate_password(password),
            Validator.validate_matric_number(matric_number) if matric_number else []
        )

        conditions = [User.email == email]
        if matric_number:
            conditions.append(User.matric_number == matric_number)
        if User.query.filter(or_(*conditions)).first():
            raise Conflict("User already exists")

        account_class = Student if matric_number else Lecturer
        user = account_class(
            name=name,
            email=email,
            department=department,
            matric_number=matric_number
        )
        user.set_password(password)
        if picture is not None and picture.filename:
            user.profile_picture = UserService.store_profile_picture(picture)

        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("User already exists")

        logger.info('Registered %s account %s', user.role, user.email)

        token = AuthService.issue_verification_token(user)
        if not EmailService.send_verification_email(user.email, token):
            logger.warning('Verification email for %s was not delivered', user.email)

        return user, create_access_token(identity=user)

    @staticmethod
    def login(email: str, password: str, now: Optional[datetime] = None) -> Tuple[User, str]:
        """Authenticate user and return a login token."""
        email = clean_text(email, 'email').lower()
        password = strip_whitespace(password, 'password')
        ensure_valid(Validator.validate_email(email), Validator.validate_password(password))

        now = now or utcnow()
        user = User.query.filter_by(email=email).first()
        if not user:
            raise Unauthorized("Invalid email or password")

        if user.is_locked(now):
            raise AccountLocked()

        if not user.check_password(password):
            user.register_failed_login(
                current_app.config['MAX_LOGIN_ATTEMPTS'],
                timedelta(minutes=current_app.config['LOGIN_LOCK_MINUTES']),
                now
            )
            db.session.commit()
            if user.is_locked(now):
                logger.warning('Account locked after repeated failures: %s', email)
                raise AccountLocked()
            logger.info('Failed login for %s (%s attempts)', email, user.login_attempts)
            raise Unauthorized("Invalid email or password")

        if current_app.config.get('REQUIRE_EMAIL_VERIFICATION') and not user.is_verified:
            raise Forbidden("Please verify your email before logging in")

        user.register_successful_login(now)
        db.session.commit()

        return user, create_access_token(identity=user)

    @staticmethod
    def issue_verification_token(user: User, new_email: Optional[str] = None) -> str:
        payload = {'userId': user.id, 'email': user.email}
        if new_email:
            payload['newEmail'] = new_email
        return TokenCodec.from_app().mint(
            payload,
            current_app.config['EMAIL_TOKEN_EXPIRY'],
            purpose=VERIFY_EMAIL_PURPOSE
        )

    @staticmethod
    def verify_email(token: str) -> User:
        payload = TokenCodec.from_app().verify(token, purpose=VERIFY_EMAIL_PURPOSE)
        user = db.session.get(User, payload.get('userId'))
        if not user or user.email != payload.get('email'):
            raise InvalidToken("Invalid verification link")

        new_email = payload.get('newEmail')
        if new_email:
            if new_email != user.pending_email:
                raise InvalidToken("Invalid verification link")
            if User.query.filter(User.email == new_email, User.id != user.id).first():
                raise Conflict("Email already registered")
            user.email = new_email
            user.pending_email = None

        user.is_verified = True
        db.session.commit()
        logger.info('Email verified for user %s', user.id)
        return user

    @staticmethod
    def request_password_reset(email: str) -> None:
        """Mail a reset link if the account exists; silent otherwise."""
        email = clean_text(email, 'email').lower()
        ensure_valid(Validator.validate_email(email))

        user = User.query.filter_by(email=email).first()
        if not user:
            return

        token = TokenCodec.from_app().mint(
            {'userId': user.id, 'fingerprint': _password_fingerprint(user)},
            current_app.config['RESET_TOKEN_EXPIRY'],
            purpose=RESET_PASSWORD_PURPOSE
        )
        if not EmailService.send_password_reset_email(user.email, token):
            logger.warning('Password reset email for %s was not delivered', user.email)

    @staticmethod
    def validate_reset_token(token: str) -> User:
        payload = TokenCodec.from_app().verify(token, purpose=RESET_PASSWORD_PURPOSE)
        user = db.session.get(User, payload.get('userId'))
        if not user or payload.get('fingerprint') != _password_fingerprint(user):
            raise InvalidToken("Invalid or expired reset token")
        return user

    @staticmethod
    def reset_password(token: str, password: str) -> User:
        password = strip_whitespace(password, 'password')
        ensure_valid(Validator.validate_password(password))

        user = AuthService.validate_reset_token(token)
        user.set_password(password)
        user.login_attempts = 0
        user.lock_until = None
        db.session.commit()

        logger.info('Password reset for user %s', user.id)
        return user
