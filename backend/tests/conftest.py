"""Shared fixtures for the API and service tests."""
import pytest
from flask_jwt_extended import create_access_token
from qr_attendance import create_app, db
from qr_attendance.models.user import Lecturer, Student
from qr_attendance.services.session_service import SessionService


@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _create_user(account_class, password='password123', **fields):
    user = account_class(department='Computer Science', is_verified=True, **fields)
    user.set_password(password)
    return user.save()


@pytest.fixture
def lecturer(app):
    return _create_user(Lecturer, name='Ada Lovelace', email='ada@example.com')


@pytest.fixture
def other_lecturer(app):
    return _create_user(Lecturer, name='Grace Hopper', email='grace@example.com')


@pytest.fixture
def student(app):
    return _create_user(
        Student,
        name='Alan Turing',
        email='alan@example.com',
        matric_number='2021/12345'
    )


@pytest.fixture
def other_student(app):
    return _create_user(
        Student,
        name='Edsger Dijkstra',
        email='edsger@example.com',
        matric_number='2021/54321'
    )


@pytest.fixture
def auth_headers(app):
    """Build an Authorization header for a user."""
    def _headers(user):
        return {'Authorization': f'Bearer {create_access_token(identity=user)}'}
    return _headers


@pytest.fixture
def lecture_session(lecturer):
    """A 30 minute CSC309 session for 50 students, opened now."""
    return SessionService.create_session(
        lecturer_id=lecturer.id,
        course_title='Software Engineering',
        course_code='CSC309',
        level='300',
        total_course_students=50,
        duration_minutes=30
    )
