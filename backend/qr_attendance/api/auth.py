"""Authentication API: registration, login, email verification, password reset."""
from flask import Blueprint, request
from flask_jwt_extended import (
    current_user, jwt_required, set_access_cookies, unset_jwt_cookies
)
from qr_attendance import limiter
from qr_attendance.services.auth_service import AuthService
from qr_attendance.utils.errors import ValidationError
from qr_attendance.utils.helpers import request_data, success_response
from qr_attendance.utils.validators import clean_text

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    """Register a student (with matric number) or a lecturer."""
    user, access_token = AuthService.register(
        request_data(),
        picture=request.files.get("profilePicture")
    )

    response, status = success_response(
        data={
            "token": access_token,
            "user": user.to_dict()
        },
        message="User registered successfully!",
        status_code=201
    )
    set_access_cookies(response, access_token)
    return response, status


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Login with email and password."""
    data = request_data()
    user, access_token = AuthService.login(data.get("email"), data.get("password"))

    response, status = success_response(
        data={
            "token": access_token,
            "user": user.to_dict()
        },
        message="Login successful"
    )
    set_access_cookies(response, access_token)
    return response, status


@auth_bp.route("/verify-email", methods=["GET"])
def verify_email():
    token = request.args.get("token", "").strip()
    if not token:
        raise ValidationError("Verification token is required")

    user = AuthService.verify_email(token)
    return success_response(data=user.to_dict(), message="Email verified successfully")


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    """Logout user (clear the login cookie)."""
    response, status = success_response(message="Logged out successfully")
    unset_jwt_cookies(response)
    return response, status


@auth_bp.route("/recover", methods=["POST"])
@limiter.limit("3 per hour")
def forgot_password():
    """Request password reset."""
    AuthService.request_password_reset(request_data().get("email"))
    return success_response(
        message="If the email exists, a password reset link has been sent"
    )


@auth_bp.route("/validate", methods=["POST"])
def validate_reset_token():
    token = clean_text(request_data().get("token"), "token")
    if not token:
        raise ValidationError("Reset token is required")

    AuthService.validate_reset_token(token)
    return success_response(data={"valid": True}, message="Reset token is valid")


@auth_bp.route("/reset", methods=["POST"])
@limiter.limit("5 per hour")
def reset_password():
    """Reset password with token."""
    data = request_data()
    token = clean_text(data.get("token"), "token")
    if not token:
        raise ValidationError("Reset token is required")

    AuthService.reset_password(token, data.get("password"))
    return success_response(message="Password reset successfully")


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    """Get current user profile."""
    return success_response(data=current_user.to_dict())
