"""Test profile and feedback endpoints."""
import io
import json
import os

import pytest

from qr_attendance import db, mail
from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.models.feedback import Feedback
from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.models.user import User
from qr_attendance.services.session_service import SessionService

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 64


def test_get_profile(client, student, auth_headers):
    response = client.get('/api/user/profile', headers=auth_headers(student))

    assert response.status_code == 200
    user = json.loads(response.data)['data']['user']
    assert user['matricNumber'] == '2021/12345'
    assert 'password_hash' not in user


def test_update_name_and_department(client, student, auth_headers):
    response = client.put('/api/user/profile/update', headers=auth_headers(student), json={
        'name': 'Alan M. Turing',
        'department': 'Mathematics'
    })

    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data['emailPending'] is False
    assert data['user']['name'] == 'Alan M. Turing'
    assert data['user']['department'] == 'Mathematics'


def test_update_email_waits_for_verification(client, student, auth_headers):
    with mail.record_messages() as outbox:
        response = client.put('/api/user/profile/update', headers=auth_headers(student), json={
            'email': 'turing@example.com'
        })

    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data['emailPending'] is True
    assert data['user']['email'] == 'alan@example.com'
    assert outbox[0].recipients == ['turing@example.com']

    token = outbox[0].body.split('token=', 1)[1].split()[0]
    response = client.get('/api/auth/verify-email', query_string={'token': token})
    assert response.status_code == 200
    assert json.loads(response.data)['data']['email'] == 'turing@example.com'


def test_update_email_rolled_back_when_mail_fails(client, student, auth_headers, monkeypatch):
    def refuse(message):
        raise ConnectionRefusedError('mail server unavailable')
    monkeypatch.setattr(mail, 'send', refuse)

    response = client.put('/api/user/profile/update', headers=auth_headers(student), json={
        'name': 'Alan M. Turing',
        'email': 'turing@example.com'
    })

    assert response.status_code == 502
    assert json.loads(response.data)['reason'] == 'EMAIL_DELIVERY_FAILED'
    user = db.session.get(User, student.id)
    assert user.pending_email is None
    assert user.is_verified is True
    assert user.name == 'Alan Turing'


@pytest.mark.parametrize('payload', [
    {'name': 12345},
    {'department': ['Physics']},
    {'password': 99999999},
    {'email': 7},
    {'matricNumber': 202112345},
])
def test_update_rejects_non_text_fields(client, student, auth_headers, payload):
    response = client.put(
        '/api/user/profile/update', headers=auth_headers(student), json=payload
    )

    assert response.status_code == 400
    assert json.loads(response.data)['reason'] == 'VALIDATION_ERROR'


def test_update_email_conflict(client, student, lecturer, auth_headers):
    response = client.put('/api/user/profile/update', headers=auth_headers(student), json={
        'email': lecturer.email
    })
    assert response.status_code == 409


def test_update_password_must_change(client, student, auth_headers):
    response = client.put('/api/user/profile/update', headers=auth_headers(student), json={
        'password': 'password123'
    })
    assert response.status_code == 400

    response = client.put('/api/user/profile/update', headers=auth_headers(student), json={
        'password': 'password456'
    })
    assert response.status_code == 200
    assert db.session.get(User, student.id).check_password('password456')


def test_lecturer_cannot_set_matric_number(client, lecturer, auth_headers):
    response = client.put('/api/user/profile/update', headers=auth_headers(lecturer), json={
        'matricNumber': '2021/99999'
    })
    assert response.status_code == 400


def test_update_profile_picture(app, client, student, auth_headers):
    response = client.put(
        '/api/user/profile/update',
        headers=auth_headers(student),
        data={'profilePicture': (io.BytesIO(PNG_BYTES), 'me.png', 'image/png')},
        content_type='multipart/form-data'
    )

    assert response.status_code == 200
    picture = json.loads(response.data)['data']['user']['profilePicture']
    assert picture.startswith('/uploads/me-')
    stored = os.path.join(app.config['UPLOAD_FOLDER'], os.path.basename(picture))
    assert os.path.exists(stored)
    os.remove(stored)


def test_update_profile_picture_rejects_other_types(client, student, auth_headers):
    response = client.put(
        '/api/user/profile/update',
        headers=auth_headers(student),
        data={'profilePicture': (io.BytesIO(b'GIF89a'), 'me.gif', 'image/gif')},
        content_type='multipart/form-data'
    )
    assert response.status_code == 400


def test_delete_lecturer_removes_sessions(client, lecturer, lecture_session, auth_headers):
    session_id = lecture_session.id
    headers = auth_headers(lecturer)

    response = client.delete('/api/user/profile/delete', headers=headers)

    assert response.status_code == 200
    assert db.session.get(LectureSession, session_id) is None

    response = client.get('/api/user/profile', headers=headers)
    assert response.status_code == 401


def test_submit_feedback(client):
    response = client.post('/api/user/feedback', json={
        'category': 'bug',
        'message': 'The QR code is too small on my phone',
        'email': 'someone@example.com'
    })

    assert response.status_code == 201
    assert Feedback.query.count() == 1


def test_submit_feedback_validation(client):
    response = client.post('/api/user/feedback', json={'category': 'bug'})
    assert response.status_code == 400

    response = client.post('/api/user/feedback', json={'category': 1, 'message': 'Hello'})
    assert response.status_code == 400
    assert json.loads(response.data)['reason'] == 'VALIDATION_ERROR'
    assert Feedback.query.count() == 0


def test_delete_student_keeps_attendance(client, student, lecture_session, auth_headers):
    SessionService.append_attendance(
        lecture_session.id, student.id, student.name, student.matric_number
    )

    response = client.delete('/api/user/profile/delete', headers=auth_headers(student))

    assert response.status_code == 200
    record = AttendanceRecord.query.one()
    assert record.student_id is None
    assert record.matric_number == '2021/12345'
