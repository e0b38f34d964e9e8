import random

from fastapi.testclient import TestClient
from sqlmodel import Session

from edusoft import models
from edusoft.database import engine
from edusoft.main import app

from conftest import MP4_BYTES

client = TestClient(app)


def test_empty_progress(student):
    r = client.get('/progress/me', headers=student['headers'])
    assert r.status_code == 200
    body = r.json()
    assert body['user_id'] == student['id']
    assert body['total_completed'] == 0
    assert body['progress'] == 0.0
    assert body['total_available'] >= 7
    assert body['communication']['overall_score'] == 0.0
    assert body['communication']['scores'] == {'listening': None, 'reading': None, 'writing': None, 'speaking': None}


def test_progress_collects_latest_scores(student):
    quiz = {'level': 'a1', 'language': 'english', 'correct_answers': 8, 'total_questions': 10}
    assert client.post('/listening/submit', json=quiz, headers=student['headers']).status_code == 201
    writing = {'level': 'a1', 'language': 'english', 'prompt': 'Hi', 'response': 'Hello there', 'score': 60}
    assert client.post('/writing/submit', json=writing, headers=student['headers']).status_code == 201
    puzzle = {'puzzles': [{'puzzle_id': 'p1', 'moves': 20, 'time_taken': 45, 'completed': True}]}
    assert client.post('/puzzle/submit', json=puzzle, headers=student['headers']).status_code == 201

    body = client.get('/progress/me', headers=student['headers']).json()
    done = {c['assessment_type']: c['score'] for c in body['completed_assessments']}
    assert done == {'listening': 80.0, 'writing': 60.0, 'puzzle-game': 100.0}
    assert body['total_completed'] == 3
    assert body['progress'] == round(3 / body['total_available'] * 100, 1)

    comm = body['communication']
    assert comm['scores']['listening'] == 80.0
    assert comm['scores']['speaking'] is None
    assert comm['overall_score'] == 70.0
    assert comm['completion_percentage'] == 50.0


def test_progress_visibility(student, other_student, supervisor):
    assert client.get(f"/progress/{student['id']}", headers=other_student['headers']).status_code == 403
    r = client.get(f"/progress/{student['id']}", headers=supervisor['headers'])
    assert r.status_code == 200
    assert r.json()['user_id'] == student['id']
    assert client.get('/progress/987654321', headers=supervisor['headers']).status_code == 404


def _scores(headers):
    body = client.get('/progress/me', headers=headers).json()
    return {c['assessment_type']: c['score'] for c in body['completed_assessments']}


def test_speaking_counts_only_once_evaluated(student, supervisor):
    data = {'level': 'b2', 'language': 'english', 'task_id': 'task-1', 'prompt': 'Talk about food'}
    files = {'file': ('answer.mp4', MP4_BYTES, 'video/mp4')}
    sid = client.post('/speaking/submit', data=data, files=files, headers=student['headers']).json()['submission']['id']
    assert 'speaking' not in _scores(student['headers'])

    client.post(f'/speaking/{sid}/evaluate', json={'score': 75}, headers=supervisor['headers'])
    assert _scores(student['headers'])['speaking'] == 75.0


def test_presentation_is_mean_of_reviewed_answers(admin, student, supervisor):
    numbers = [random.randint(10_000_000, 20_000_000) for _ in range(2)]
    sids = []
    for number in numbers:
        client.post('/presentation/questions', json={'question_number': number, 'question': 'Pitch an idea.'},
                    headers=admin['headers'])
        files = {'file': ('take.mp4', MP4_BYTES, 'video/mp4')}
        r = client.post('/presentation/submit', data={'question_number': str(number)}, files=files,
                        headers=student['headers'])
        sids.append(r.json()['submission']['id'])

    client.post(f'/presentation/submissions/{sids[0]}/review', json={'score': 80}, headers=supervisor['headers'])
    assert _scores(student['headers'])['presentation'] == 80.0
    client.post(f'/presentation/submissions/{sids[1]}/review', json={'score': 65}, headers=supervisor['headers'])
    assert _scores(student['headers'])['presentation'] == 72.5


def test_questionnaire_does_not_replace_dedicated_type(admin, student, supervisor):
    number = random.randint(20_000_001, 30_000_000)
    client.post('/presentation/questions', json={'question_number': number, 'question': 'Explain a hobby.'},
                headers=admin['headers'])
    files = {'file': ('take.mp4', MP4_BYTES, 'video/mp4')}
    sid = client.post('/presentation/submit', data={'question_number': str(number)}, files=files,
                      headers=student['headers']).json()['submission']['id']
    client.post(f'/presentation/submissions/{sid}/review', json={'score': 90}, headers=supervisor['headers'])

    options = [{'text': 'Never', 'score': 1}, {'text': 'Always', 'score': 5}]
    questions = [{'question_number': 1, 'question_text': 'I rehearse before presenting.', 'options': options}]
    client.put('/assessments/presentation', json={'questions': questions}, headers=admin['headers'])
    try:
        r = client.post('/assessments/presentation/submit', json={'answers': [{'question_number': 1, 'option_index': 0}]},
                        headers=student['headers'])
        assert r.status_code == 201
        scores = _scores(student['headers'])
        assert scores['presentation'] == 90.0
        assert scores['presentation-questionnaire'] == 20.0
    finally:
        client.put('/assessments/presentation', json={'questions': []}, headers=admin['headers'])


def test_leetcode_counts_only_when_completed(student):
    with Session(engine) as session:
        row = models.LeetCodeAssessment(user_id=student['id'], leetcode_username='coder', verification_code='edusoft-x',
                                        verification_status='verified', status='in_progress', score=67)
        session.add(row)
        session.commit()
        session.refresh(row)
        assert 'leetcode' not in _scores(student['headers'])

        row.status = 'completed'
        row.score = 100
        row.completed_at = models.utcnow()
        session.add(row)
        session.commit()
    assert _scores(student['headers'])['leetcode'] == 100.0
