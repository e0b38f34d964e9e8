from fastapi.testclient import TestClient
from edusoft.main import app
from edusoft import models

client = TestClient(app)


def _submit(headers, kind='listening', **overrides):
    payload = {'level': 'b1', 'language': 'english', 'correct_answers': 8, 'total_questions': 10}
    payload.update(overrides)
    return client.post(f'/{kind}/submit', json=payload, headers=headers)


def test_submit_computes_score_and_sets_next_date(student):
    r = _submit(student['headers'], level='B1', language='English')
    assert r.status_code == 201
    a = r.json()['assessment']
    assert a['score'] == 80.0
    assert a['level'] == 'b1' and a['language'] == 'english'
    assert a['next_available_date'] > a['completed_at']


def test_cooldown_blocks_second_attempt_until_seven_days(student, backdate):
    first = _submit(student['headers'], score=65)
    assert first.status_code == 201

    blocked = _submit(student['headers'])
    assert blocked.status_code == 403
    body = blocked.json()
    assert body['success'] is False
    assert body['next_available_date']
    assert body['previous_assessment']['score'] == 65

    avail = client.get('/listening/availability/b1/english', headers=student['headers']).json()
    assert avail['available'] is False
    assert avail['days_remaining'] == 7

    # other levels and languages are independent
    assert _submit(student['headers'], level='b2').status_code == 201
    assert _submit(student['headers'], language='french').status_code == 201

    backdate(models.ListeningAssessment, first.json()['assessment']['id'], 'completed_at', 7)
    assert client.get('/listening/availability/b1/english', headers=student['headers']).json()['available'] is True
    assert _submit(student['headers']).status_code == 201


def test_reading_has_its_own_cooldown(student):
    assert _submit(student['headers'], kind='listening').status_code == 201
    assert _submit(student['headers'], kind='reading').status_code == 201
    assert _submit(student['headers'], kind='reading').status_code == 403


def test_invalid_input(student):
    assert _submit(student['headers'], level='d1').status_code == 400
    assert _submit(student['headers'], language='german').status_code == 400
    assert _submit(student['headers'], correct_answers=11).status_code == 400
    assert _submit(student['headers'], total_questions=0).status_code == 400
    assert _submit(student['headers'], score=120).status_code == 400


def test_history_and_access_rules(student, other_student, supervisor):
    created = _submit(student['headers']).json()['assessment']

    mine = client.get('/listening/history', headers=student['headers']).json()['assessments']
    assert [a['id'] for a in mine] == [created['id']]

    assert client.get(f"/listening/{created['id']}", headers=student['headers']).status_code == 200
    assert client.get(f"/listening/{created['id']}", headers=other_student['headers']).status_code == 403
    assert client.get(f"/listening/{created['id']}", headers=supervisor['headers']).status_code == 200
    assert client.get(f"/listening/history/{student['id']}", headers=other_student['headers']).status_code == 403
    assert client.get(f"/listening/history/{student['id']}", headers=supervisor['headers']).status_code == 200
    assert client.get('/listening/999999', headers=student['headers']).status_code == 404


def test_statistics(student):
    empty = client.get('/listening/statistics', headers=student['headers']).json()['statistics']
    assert empty['total_assessments'] == 0 and empty['recent_scores'] == []

    _submit(student['headers'], level='a1', correct_answers=5)
    _submit(student['headers'], level='a2', correct_answers=10)
    _submit(student['headers'], level='a2', language='french', correct_answers=6)
    stats = client.get('/listening/statistics', headers=student['headers']).json()['statistics']
    assert stats['total_assessments'] == 3
    assert stats['highest_score'] == 100.0
    assert stats['average_score'] == 70.0
    assert len(stats['recent_scores']) == 3
    assert stats['level_breakdown']['a2']['count'] == 2
    assert stats['level_breakdown']['a2']['average_score'] == 80.0
    assert stats['language_breakdown']['french']['count'] == 1
