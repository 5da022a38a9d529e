"""User profile and feedback API."""
from flask import Blueprint, request
from flask_jwt_extended import current_user, jwt_required, unset_jwt_cookies
from qr_attendance import limiter
from qr_attendance.services.user_service import UserService
from qr_attendance.utils.helpers import request_data, success_response

users_bp = Blueprint("users", __name__)


@users_bp.route("/profile", methods=["GET"])
@jwt_required()
def get_profile():
    return success_response(data={"user": current_user.to_dict()})


@users_bp.route("/profile/update", methods=["PUT"])
@jwt_required()
def update_profile():
    """Update name, department, matric number, password, email or picture."""
    result = UserService.update_profile(
        current_user,
        request_data(),
        picture=request.files.get("profilePicture")
    )

    if result["emailPending"]:
        message = "Verification email sent. Please verify before changes take effect."
    else:
        message = "Profile updated successfully"
    return success_response(data=result, message=message)


@users_bp.route("/profile/delete", methods=["DELETE"])
@jwt_required()
def delete_profile():
    UserService.delete_account(current_user)

    response, status = success_response(message="Account deleted successfully")
    unset_jwt_cookies(response)
    return response, status


@users_bp.route("/feedback", methods=["POST"])
@limiter.limit("10 per hour")
def submit_feedback():
    feedback = UserService.submit_feedback(request_data())
    return success_response(
        data=feedback.to_dict(),
        message="Feedback submitted successfully",
        status_code=201
    )
