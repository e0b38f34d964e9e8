import uuid

from fastapi.testclient import TestClient
from edusoft.main import app, _login_limiter
from edusoft.config import settings
from edusoft.database import engine
from edusoft import models
from edusoft.utils import storage
from sqlmodel import Session, select

from conftest import MP4_BYTES

client = TestClient(app)


def _name(prefix='user'):
    return f'{prefix}_{uuid.uuid4().hex[:8]}'


def test_register_login_and_me():
    username = _name()
    r = client.post('/auth/register', json={'username': username, 'password': 'pass123', 'email': f'{username}@example.com'})
    assert r.status_code == 201
    body = r.json()
    assert body['success'] is True
    assert body['user']['role'] == 'student'
    assert 'password_hash' not in body['user']

    r2 = client.post('/auth/login', json={'username': username, 'password': 'pass123'})
    assert r2.status_code == 200
    token = r2.json()['access_token']
    assert r2.json()['role'] == 'student'

    me = client.get('/users/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.json()['user']['username'] == username
    assert me.headers.get('X-Request-ID')


def test_duplicate_username_rejected():
    username = _name()
    client.post('/auth/register', json={'username': username, 'password': 'pass123'})
    r = client.post('/auth/register', json={'username': username, 'password': 'pass123'})
    assert r.status_code == 400
    assert r.json() == {'success': False, 'message': 'username already exists'}


def test_bad_credentials_and_tokens():
    r = client.post('/auth/login', json={'username': _name('ghost'), 'password': 'nope'})
    assert r.status_code == 401
    assert r.json()['success'] is False

    assert client.get('/users/me').status_code == 401
    bad = client.get('/users/me', headers={'Authorization': 'Bearer invalid.token.here'})
    assert bad.status_code == 401
    assert bad.json()['message'] == 'invalid token'


def test_invalid_payload_is_400():
    r = client.post('/auth/register', json={'username': 'ab'})
    assert r.status_code == 400
    assert r.json()['success'] is False


def test_update_profile(student, other_student):
    r = client.put('/users/me', json={'full_name': 'Ada Lovelace', 'email': 'ada@example.com'}, headers=student['headers'])
    assert r.status_code == 200
    assert r.json()['user']['full_name'] == 'Ada Lovelace'
    # emails are unique regardless of case
    clash = client.put('/users/me', json={'email': 'ADA@example.com'}, headers=other_student['headers'])
    assert clash.status_code == 400
    invalid = client.put('/users/me', json={'email': 'not-an-email'}, headers=other_student['headers'])
    assert invalid.status_code == 400


def test_admin_user_management(admin, student):
    r = client.get('/users', params={'role': 'student'}, headers=admin['headers'])
    assert r.status_code == 200
    assert all(u['role'] == 'student' for u in r.json()['users'])
    assert student['id'] in [u['id'] for u in r.json()['users']]

    assert client.get('/users', headers=student['headers']).status_code == 403
    assert client.delete(f"/users/{admin['id']}", headers=admin['headers']).status_code == 400

    d = client.delete(f"/users/{student['id']}", headers=admin['headers'])
    assert d.status_code == 200
    assert client.delete(f"/users/{student['id']}", headers=admin['headers']).status_code == 404


def test_login_is_rate_limited():
    _login_limiter.reset()
    username = _name('spam')
    for _ in range(settings.LOGIN_RATE_LIMIT_PER_MIN):
        assert client.post('/auth/login', json={'username': username, 'password': 'x'}).status_code == 401
    r = client.post('/auth/login', json={'username': username, 'password': 'x'})
    assert r.status_code == 429
    assert int(r.headers['Retry-After']) >= 1
    _login_limiter.reset()


def test_health():
    assert client.get('/health').json() == {'status': 'ok'}


def test_deleting_user_removes_their_records(admin, student, other_student, supervisor):
    quiz = {'level': 'c2', 'language': 'french', 'correct_answers': 5, 'total_questions': 10}
    assert client.post('/listening/submit', json=quiz, headers=student['headers']).status_code == 201
    data = {'level': 'c2', 'language': 'french', 'task_id': 'task-9', 'prompt': 'Describe your town'}
    files = {'file': ('answer.mp4', MP4_BYTES, 'video/mp4')}
    client.post('/speaking/submit', data=data, files=files, headers=student['headers'])
    other_sid = client.post('/speaking/submit', data=data, files=files,
                            headers=other_student['headers']).json()['submission']['id']
    client.post(f'/speaking/{other_sid}/evaluate', json={'score': 70}, headers=supervisor['headers'])

    assert client.delete(f"/users/{student['id']}", headers=admin['headers']).status_code == 200
    with Session(engine) as session:
        for model in (models.ListeningAssessment, models.SpeakingSubmission):
            assert session.exec(select(model).where(model.user_id == student['id'])).all() == []
    media = storage.get_media_root() / 'speaking' / str(student['id'])
    assert not media.exists() or list(media.iterdir()) == []

    # the reviewer goes too, but the review they gave stays
    assert client.delete(f"/supervisors/{supervisor['id']}", headers=admin['headers']).status_code == 200
    kept = client.get(f'/speaking/{other_sid}', headers=other_student['headers']).json()['submission']
    assert kept['status'] == 'evaluated'
    assert kept['score'] == 70
    assert kept['evaluated_by'] is None
