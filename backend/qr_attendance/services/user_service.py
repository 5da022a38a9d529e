"""Profile management for signed-in users."""
import logging
import os
import secrets
from typing import Dict, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from qr_attendance import db
from qr_attendance.models.feedback import Feedback
from qr_attendance.models.user import Student, User
from qr_attendance.services.email_service import EmailService
from qr_attendance.utils.errors import Conflict, DeliveryFailed, ValidationError
from qr_attendance.utils.validators import (
    Validator, clean_text, ensure_valid, strip_whitespace
)

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_PICTURE = 'default.jpg'


class UserService:
    """Service for profile updates, pictures, deletion and feedback."""

    @staticmethod
    def store_profile_picture(upload: FileStorage) -> str:
        """Validate and save an uploaded image, returning its public path."""
        filename = secure_filename(upload.filename or '')
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        allowed = current_app.config['ALLOWED_IMAGE_EXTENSIONS']
        mimetype = (upload.mimetype or '').lower()

        if extension not in allowed or not any(kind in mimetype for kind in allowed):
            raise ValidationError(
                "File upload only supports the following filetypes - jpeg, jpg, png"
            )

        content = upload.read()
        if len(content) > current_app.config['MAX_PROFILE_PICTURE_SIZE']:
            raise ValidationError("Profile picture must be at most 5MB")

        base_name = filename.rsplit('.', 1)[0] or 'profile'
        stored_name = f"{base_name}-{secrets.token_hex(8)}.{extension}"
        folder = current_app.config['UPLOAD_FOLDER']
        os.makedirs(folder, exist_ok=True)
        with open(os.path.join(folder, stored_name), 'wb') as handle:
            handle.write(content)

        return f"/uploads/{stored_name}"

    @staticmethod
    def remove_profile_picture(path: Optional[str]) -> None:
        if not path or os.path.basename(path) == DEFAULT_PROFILE_PICTURE:
            return
        full_path = os.path.join(current_app.config['UPLOAD_FOLDER'], os.path.basename(path))
        try:
            os.remove(full_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error('Failed to delete old profile picture %s: %s', full_path, e)

    @staticmethod
    def update_profile(user: User, data: Dict, picture: Optional[FileStorage] = None) -> Dict:
        """Apply profile changes.

        A new email is parked in ``pending_email`` until it is verified; the
        returned dict says whether that happened.
        """
        from qr_attendance.services.auth_service import AuthService

        name = clean_text(data.get('name'), 'name')
        department = clean_text(data.get('department'), 'department')
        matric_number = strip_whitespace(data.get('matricNumber'), 'matricNumber')
        password = strip_whitespace(data.get('password'), 'password')
        new_email = clean_text(data.get('email'), 'email').lower()
        email_pending = bool(new_email and new_email != user.email)

        checks = []
        if name:
            checks.append(Validator.validate_name(name))
        if department:
            checks.append(Validator.validate_department(department))
        if matric_number:
            if not isinstance(user, Student):
                checks.append(["Only students have a matric number"])
            else:
                checks.append(Validator.validate_matric_number(matric_number))
        if password:
            checks.append(Validator.validate_password(password))
        if email_pending:
            checks.append(Validator.validate_email(new_email))
        ensure_valid(*checks)

        if email_pending and User.query.filter(User.email == new_email, User.id != user.id).first():
            raise Conflict("Email already registered")
        if matric_number and User.query.filter(
            User.matric_number == matric_number, User.id != user.id
        ).first():
            raise Conflict("Matric number already registered")
        if password and user.check_password(password):
            raise ValidationError("New password cannot be the same as the old password")

        if password:
            user.set_password(password)
        if name:
            user.name = name
        if department:
            user.department = department
        if matric_number:
            user.matric_number = matric_number
        if email_pending:
            user.pending_email = new_email
            user.is_verified = False

        old_picture = new_picture = None
        if picture is not None and picture.filename:
            old_picture = user.profile_picture
            new_picture = UserService.store_profile_picture(picture)
            user.profile_picture = new_picture

        # nothing is committed until the verification mail has gone out
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            UserService.remove_profile_picture(new_picture)
            raise Conflict("Email or matric number already registered")

        if email_pending:
            token = AuthService.issue_verification_token(user, new_email=new_email)
            if not EmailService.send_verification_email(new_email, token):
                db.session.rollback()
                UserService.remove_profile_picture(new_picture)
                raise DeliveryFailed("Failed to send verification email")

        db.session.commit()
        if old_picture:
            UserService.remove_profile_picture(old_picture)

        logger.info('User profile updated: %s', user.email)
        return {'user': user.to_dict(), 'emailPending': email_pending}

    @staticmethod
    def delete_account(user: User) -> None:
        """Delete the account; a lecturer's sessions go with it."""
        email, matric_number, picture = user.email, user.matric_number, user.profile_picture
        user.delete()
        UserService.remove_profile_picture(picture)
        logger.info('User account deleted: %s, %s', email, matric_number)

    @staticmethod
    def submit_feedback(data: Dict) -> Feedback:
        category = clean_text(data.get('category'), 'category')
        message = clean_text(data.get('message'), 'message')
        email = clean_text(data.get('email'), 'email') or None
        ensure_valid(
            Validator.validate_required_fields(
                {'category': category, 'message': message}, ['category', 'message']
            ),
            Validator.validate_email(email) if email else []
        )

        return Feedback(category=category, message=message, email=email).save()
