"""QR Attendance - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_mail import Mail

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
mail = Mail()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from qr_attendance.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]), supports_credentials=True)

    setup_logging(app)
    setup_database(app)
    register_blueprints(app)
    register_error_handlers(app)
    register_jwt_callbacks(app)
    register_commands(app)

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance',
            'version': '1.0.0'
        })

    return app


def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.auth import auth_bp
    from qr_attendance.api.users import users_bp
    from qr_attendance.api.attendance import attendance_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/user')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from werkzeug.exceptions import HTTPException
    from qr_attendance.utils.errors import AttendanceError
    from qr_attendance.utils.helpers import error_response

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        db.session.rollback()
        return error_response(error.message, error.status_code, reason=error.reason)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return error_response(
            e.description, e.code, reason=e.name.upper().replace(' ', '_')
        )

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', error)
        return error_response('Internal server error', 500, reason='INTERNAL_SERVER_ERROR')


def register_jwt_callbacks(app: Flask) -> None:
    """Wire login-token loading and failures into the JSON error envelope."""
    from qr_attendance.utils.helpers import error_response

    @jwt.user_identity_loader
    def user_identity_lookup(user):
        return str(user.id)

    @jwt.user_lookup_loader
    def user_lookup_callback(jwt_header, jwt_data):
        from qr_attendance.models.user import User
        identity = jwt_data['sub']
        if not str(identity).isdigit():
            return None
        return db.session.get(User, int(identity))

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Login token has expired', 401, reason='UNAUTHORIZED')

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid login token', 401, reason='UNAUTHORIZED')

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401, reason='UNAUTHORIZED')

    @jwt.user_lookup_error_loader
    def user_lookup_error_callback(jwt_header, jwt_data):
        return error_response('User no longer exists', 401, reason='UNAUTHORIZED')


def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        # service modules log through their own module loggers
        package_logger = logging.getLogger('qr_attendance')
        package_logger.setLevel(logging.INFO)
        package_logger.addHandler(file_handler)

        app.logger.info('QR Attendance startup')


def setup_database(app: Flask) -> None:
    """Import all models so their tables are registered on ``db.metadata``."""
    from qr_attendance.models import (  # noqa: F401
        User, Student, Lecturer,
        LectureSession, AttendanceRecord, Feedback
    )


def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click
    from sqlalchemy.exc import IntegrityError

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('create-lecturer')
    def create_lecturer():
        """Create a verified lecturer account."""
        from qr_attendance.models.user import Lecturer

        email = click.prompt('Lecturer email')
        name = click.prompt('Lecturer name')
        department = click.prompt('Department')
        password = click.prompt('Password', hide_input=True, confirmation_prompt=True)

        lecturer = Lecturer(
            email=email.strip().lower(),
            name=name.strip(),
            department=department.strip(),
            is_verified=True
        )
        lecturer.set_password(password)

        try:
            db.session.add(lecturer)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise click.ClickException(f'An account already uses {lecturer.email}')
        click.echo(f'Lecturer created: {lecturer.email}')
