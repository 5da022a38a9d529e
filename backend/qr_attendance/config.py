"""Configuration module for the QR Attendance service."""
import os
from datetime import timedelta


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # Login tokens
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_ALGORITHM = 'HS256'
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_ACCESS_COOKIE_NAME = 'token'
    JWT_COOKIE_SAMESITE = 'Lax'

    # Attendance session tokens (embedded in the QR image)
    QR_TOKEN_SECRET = os.environ.get('QR_TOKEN_SECRET') or JWT_SECRET_KEY
    QR_TOKEN_ALGORITHM = 'HS256'
    SESSION_MIN_DURATION = 1  # minutes
    SESSION_MAX_DURATION = 60  # minutes

    # Credential store
    MAX_LOGIN_ATTEMPTS = 5
    LOGIN_LOCK_MINUTES = 15
    REQUIRE_EMAIL_VERIFICATION = _env_flag('REQUIRE_EMAIL_VERIFICATION')
    EMAIL_TOKEN_EXPIRY = 60 * 60  # seconds
    RESET_TOKEN_EXPIRY = 60 * 60  # seconds
    FRONTEND_URL = os.environ.get('FRONTEND_URL') or 'http://localhost:5173'

    # Mail
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = _env_flag('MAIL_USE_TLS', True)
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER') or MAIL_USERNAME

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day, 50 per hour"

    # File Upload
    MAX_CONTENT_LENGTH = 6 * 1024 * 1024
    MAX_PROFILE_PICTURE_SIZE = 5 * 1024 * 1024
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or 'uploads'
    ALLOWED_IMAGE_EXTENSIONS = {'jpeg', 'jpg', 'png'}

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        'sqlite:///qr_attendance_dev.db'
    JWT_COOKIE_CSRF_PROTECT = False
    MAIL_SUPPRESS_SEND = _env_flag('MAIL_SUPPRESS_SEND', True)


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')

    CORS_ORIGINS = [origin for origin in os.environ.get('CORS_ORIGINS', '').split(',') if origin]

    # Enhanced security
    JWT_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    REQUIRE_EMAIL_VERIFICATION = _env_flag('REQUIRE_EMAIL_VERIFICATION', True)

    # Stricter limits
    RATELIMIT_DEFAULT = "100 per day, 20 per hour"


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-jwt-secret-key-for-the-test-suite'
    QR_TOKEN_SECRET = 'test-qr-token-secret-for-the-test-suite'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)
    JWT_COOKIE_CSRF_PROTECT = False
    RATELIMIT_ENABLED = False
    REQUIRE_EMAIL_VERIFICATION = False
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'noreply@qr-attendance.test'
    UPLOAD_FOLDER = '/tmp/qr_attendance_test_uploads'
    LOG_LEVEL = 'WARNING'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(config_name=None):
    """Get configuration by name."""
    name = config_name or os.environ.get('FLASK_ENV', 'default')
    return config.get(name, config['default'])
