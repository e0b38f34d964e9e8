from fastapi.testclient import TestClient
from edusoft.main import app

client = TestClient(app)


def _run(time_taken, completed=True, score=None, puzzle_id='p1'):
    item = {'puzzle_id': puzzle_id, 'moves': 12, 'time_taken': time_taken, 'completed': completed}
    if score is not None:
        item['score'] = score
    return item


def test_puzzle_scored_by_completion_time(student):
    r = client.post('/puzzle/submit', json={'puzzles': [_run(50), _run(40, puzzle_id='p2')]}, headers=student['headers'])
    assert r.status_code == 201
    result = r.json()['result']
    assert result['assessment_type'] == 'puzzle-game'
    assert result['score'] == 85
    assert result['rating'] == 'Very Good'
    assert result['details']['completed_puzzles'] == 2
    assert result['details']['total_moves'] == 24
    assert result['details']['total_time'] == 90


def test_puzzle_reported_score_wins(student):
    r = client.post('/puzzle/submit', json={'puzzles': [_run(600, score=72)]}, headers=student['headers'])
    assert r.json()['result']['score'] == 72
    assert r.json()['result']['rating'] == 'Good'


def test_puzzle_validation_and_history(student):
    assert client.post('/puzzle/submit', json={'puzzles': []}, headers=student['headers']).status_code == 400
    bad_moves = {'puzzles': [{'puzzle_id': 'p1', 'moves': -1, 'time_taken': 3, 'completed': True}]}
    assert client.post('/puzzle/submit', json=bad_moves, headers=student['headers']).status_code == 400
    assert client.post('/puzzle/submit', json={'puzzles': [_run(10, score=150)]}, headers=student['headers']).status_code == 400

    incomplete = client.post('/puzzle/submit', json={'puzzles': [_run(30, completed=False)]}, headers=student['headers'])
    assert incomplete.json()['result']['score'] == 0
    assert incomplete.json()['result']['rating'] == 'Incomplete'

    results = client.get('/puzzle/results', headers=student['headers']).json()['results']
    assert len(results) == 1


def test_default_catalog_is_seeded(student):
    r = client.get('/assessments', headers=student['headers'])
    assert r.status_code == 200
    categories = {a['category'] for a in r.json()['assessments']}
    assert {'presentation', 'leadership', 'problem-solving', 'teamwork', 'adaptability', 'communication'} <= categories

    leadership = client.get('/assessments/leadership', headers=student['headers']).json()['assessment']
    assert len(leadership['questions']) == 5
    assert all(len(q['options']) == 5 for q in leadership['questions'])
    assert client.get('/assessments/unknown', headers=student['headers']).status_code == 404


def test_questionnaire_scoring(student):
    leadership = client.get('/assessments/leadership', headers=student['headers']).json()['assessment']
    # top option everywhere except the last question, where the middle one is picked
    answers = [{'question_number': q['question_number'], 'option_index': 4} for q in leadership['questions']]
    answers[-1]['option_index'] = 2
    r = client.post('/assessments/leadership/submit', json={'answers': answers}, headers=student['headers'])
    assert r.status_code == 201
    assert r.json()['result']['score'] == 92.0
    assert r.json()['result']['assessment_type'] == 'leadership'

    missing = client.post('/assessments/leadership/submit', json={'answers': answers[:-1]}, headers=student['headers'])
    assert missing.status_code == 400
    assert 'unanswered' in missing.json()['message']
    bad_option = [dict(a, option_index=9) if i == 0 else a for i, a in enumerate(answers)]
    assert client.post('/assessments/leadership/submit', json={'answers': bad_option}, headers=student['headers']).status_code == 400
    empty = client.post('/assessments/teamwork/submit', json={'answers': []}, headers=student['headers'])
    assert empty.status_code == 400

    results = client.get('/assessments/leadership/results', headers=student['headers']).json()['results']
    assert [x['score'] for x in results] == [92.0]


def test_catalog_admin(admin, student):
    options = [{'text': 'No', 'score': 0}, {'text': 'Yes', 'score': 2}]
    payload = {
        'title': 'Adaptability Check',
        'description': 'Short adaptability survey',
        'category': 'adaptability',
        'questions': [{'question_number': 1, 'question_text': 'Do you enjoy change?', 'options': options}],
    }
    # the default catalog already owns the category
    assert client.post('/assessments', json=payload, headers=admin['headers']).status_code == 400
    assert client.post('/assessments', json=dict(payload, category='chess'), headers=admin['headers']).status_code == 400
    assert client.put('/assessments/adaptability', json={'duration': 10}, headers=student['headers']).status_code == 403

    upd = client.put('/assessments/adaptability', json={'questions': payload['questions'], 'duration': 20},
                     headers=admin['headers'])
    assert upd.status_code == 200
    assert upd.json()['assessment']['duration'] == 20
    assert upd.json()['assessment']['question_count'] == 1

    r = client.post('/assessments/adaptability/submit', json={'answers': [{'question_number': 1, 'option_index': 1}]},
                    headers=student['headers'])
    assert r.json()['result']['score'] == 100.0

    client.put('/assessments/adaptability', json={'is_active': False}, headers=admin['headers'])
    listed = {a['category'] for a in client.get('/assessments', headers=student['headers']).json()['assessments']}
    assert 'adaptability' not in listed
    assert client.post('/assessments/adaptability/submit', json={'answers': [{'question_number': 1, 'option_index': 1}]},
                       headers=student['headers']).status_code == 400

    assert client.delete('/assessments/adaptability', headers=admin['headers']).status_code == 200
    recreated = client.post('/assessments', json=payload, headers=admin['headers'])
    assert recreated.status_code == 201
    assert recreated.json()['assessment']['category'] == 'adaptability'
