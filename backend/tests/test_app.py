"""Test the application factory, error envelope and CLI commands."""
import base64
import json

from qr_attendance import create_app
from qr_attendance.models.user import Lecturer
from qr_attendance.services.qr_service import QRService


def test_testing_config(app):
    assert app.config['TESTING'] is True
    assert app.config['SQLALCHEMY_DATABASE_URI'] == 'sqlite:///:memory:'


def test_unknown_config_name_falls_back_to_development():
    assert create_app('nonsense').config['DEBUG'] is True


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'healthy'


def test_unknown_route_uses_error_envelope(client):
    response = client.get('/api/does-not-exist')

    assert response.status_code == 404
    data = json.loads(response.data)
    assert data['error'] is True
    assert data['status_code'] == 404
    assert data['reason'] == 'NOT_FOUND'


def test_wrong_method_uses_error_envelope(client):
    response = client.get('/api/attendance/generate')
    assert response.status_code == 405
    data = json.loads(response.data)
    assert data['error'] is True
    assert data['reason'] == 'METHOD_NOT_ALLOWED'


def test_qr_render_is_png_data_url():
    url = QRService.render('header.payload.signature')

    prefix = 'data:image/png;base64,'
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]).startswith(b'\x89PNG')


def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=['init-db'])
    assert 'Created all tables.' in result.output


def test_create_lecturer_command(app):
    result = app.test_cli_runner().invoke(
        args=['create-lecturer'],
        input='Prof@Example.com\nKaren Jones\nComputer Science\nsecret123\nsecret123\n'
    )

    assert 'Lecturer created: prof@example.com' in result.output
    lecturer = Lecturer.query.filter_by(email='prof@example.com').one()
    assert lecturer.is_verified is True
    assert lecturer.check_password('secret123')
