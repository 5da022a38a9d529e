"""Attendance API: QR sessions for lecturers, marking for students."""
from flask import Blueprint, current_app
from flask_jwt_extended import current_user, jwt_required
from qr_attendance import limiter
from qr_attendance.services.marking_service import MarkingService, session_token_payload
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.report_service import ReportService
from qr_attendance.services.session_service import SessionService
from qr_attendance.services.token_service import TokenCodec
from qr_attendance.utils.decorators import lecturer_required, student_required
from qr_attendance.utils.errors import ValidationError
from qr_attendance.utils.helpers import isoformat, request_data, success_response
from qr_attendance.utils.validators import Validator, ensure_valid, parse_session_id

attendance_bp = Blueprint('attendance', __name__)


@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')


@attendance_bp.route('/generate', methods=['POST'])
@jwt_required()
@lecturer_required
@limiter.limit("30 per hour")
def generate_qr():
    """Open a session and return its QR code."""
    data = request_data()
    ensure_valid(Validator.validate_int_range(data, 'totalCourseStudents', 1))

    session = SessionService.create_session(
        lecturer_id=current_user.id,
        course_title=data.get('courseTitle'),
        course_code=data.get('courseCode'),
        level=data.get('level'),
        total_course_students=data.get('totalCourseStudents'),
        duration_minutes=data.get('duration'),
        now=None
    )

    ttl_seconds = int((session.session_end - session.session_start).total_seconds())
    token = TokenCodec.from_app().mint(
        session_token_payload(session),
        ttl_seconds,
        now=session.session_start
    )
    current_app.logger.info('QR code generated for session %s', session.id)

    return success_response(
        data={
            'qrCodeUrl': QRService.render(token),
            'token': token,
            'sessionId': session.id,
            'expiryTime': isoformat(session.session_end),
            'courseDetails': dict(session.course_details(), duration=data.get('duration'))
        },
        message="QR code generated successfully",
        status_code=201
    )


@attendance_bp.route('/stop/<session_id>', methods=['POST'])
@jwt_required()
@lecturer_required
def stop_session(session_id):
    session = SessionService.stop_session(parse_session_id(session_id), current_user.id)
    return success_response(data=session.to_dict(), message="Attendance session stopped")


@attendance_bp.route('/session/<session_id>', methods=['DELETE'])
@jwt_required()
@lecturer_required
def delete_session(session_id):
    SessionService.delete_session(parse_session_id(session_id), current_user.id)
    return success_response(message="Attendance session deleted")


@attendance_bp.route('/mark-attendance', methods=['POST'])
@jwt_required()
@limiter.limit("60 per hour")
def mark_attendance():
    """Preview a scanned token, or commit it with ``confirmAttendance``."""
    data = request_data()
    token = data.get('token')
    if not isinstance(token, str) or not token.strip():
        raise ValidationError("token is required")

    confirm = data.get('confirmAttendance', False)
    if not isinstance(confirm, bool):
        raise ValidationError("confirmAttendance must be a boolean")

    result = MarkingService().mark(current_user, token.strip(), confirm=confirm)

    if result.committed:
        return success_response(
            data=result.data,
            message="Attendance marked successfully",
            status_code=201
        )
    return success_response(
        data=result.data,
        message="Confirm attendance for this session"
    )


@attendance_bp.route('/report/<session_id>', methods=['GET'])
@jwt_required()
@lecturer_required
def get_report(session_id):
    report = ReportService.report(parse_session_id(session_id), current_user.id)
    return success_response(data=report, message="Attendance report retrieved")


@attendance_bp.route('/trend', methods=['GET'])
@jwt_required()
@lecturer_required
def get_trend():
    return success_response(data=ReportService.trend(current_user.id))


@attendance_bp.route('/lecture', methods=['GET'])
@jwt_required()
@lecturer_required
def get_lecture_sessions():
    sessions = SessionService.list_by_lecturer(current_user.id)
    return success_response(data=[session.to_dict() for session in sessions])


@attendance_bp.route('/record', methods=['GET'])
@jwt_required()
@student_required
def get_student_records():
    """The signed-in student's attendance history."""
    return success_response(data=ReportService.student_history(current_user.matric_number))
