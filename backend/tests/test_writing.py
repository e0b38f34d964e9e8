from fastapi.testclient import TestClient
from edusoft.main import app

client = TestClient(app)

ESSAY = 'My favourite place is the library because it is quiet and full of books.'


def _payload(**overrides):
    data = {'level': 'b2', 'language': 'french', 'prompt': 'Describe a place you like.', 'response': ESSAY}
    data.update(overrides)
    return data


def test_score_is_mean_of_criteria(student):
    criteria = [
        {'name': 'grammar', 'score': 70},
        {'name': 'vocabulary', 'score': 85},
        {'name': 'coherence', 'score': 78, 'feedback': 'clear structure'},
    ]
    r = client.post('/writing/submit', json=_payload(criteria=criteria, score=10), headers=student['headers'])
    assert r.status_code == 201
    a = r.json()['assessment']
    assert a['score'] == 77.7
    assert a['word_count'] == len(ESSAY.split())
    assert len(a['criteria']) == 3


def test_explicit_score_without_criteria(student):
    r = client.post('/writing/submit', json=_payload(score=64.25), headers=student['headers'])
    assert r.status_code == 201
    assert r.json()['assessment']['score'] == 64.2


def test_score_or_criteria_required(student):
    r = client.post('/writing/submit', json=_payload(), headers=student['headers'])
    assert r.status_code == 400
    assert r.json()['message'] == 'score or criteria required'


def test_writing_cooldown_and_lookup(student, other_student):
    created = client.post('/writing/submit', json=_payload(score=50), headers=student['headers'])
    assert created.status_code == 201
    again = client.post('/writing/submit', json=_payload(score=90), headers=student['headers'])
    assert again.status_code == 403
    assert again.json()['previous_assessment']['score'] == 50

    avail = client.get('/writing/availability/b2/french', headers=student['headers']).json()
    assert avail['available'] is False

    wid = created.json()['assessment']['id']
    assert client.get(f'/writing/{wid}', headers=student['headers']).status_code == 200
    assert client.get(f'/writing/{wid}', headers=other_student['headers']).status_code == 403
    history = client.get('/writing/history', headers=student['headers']).json()['assessments']
    assert len(history) == 1
