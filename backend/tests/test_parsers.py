import io

import pytest
from docx import Document

from edusoft.utils.parsers import parse_file_to_presentation_questions, normalize_question


def test_parse_json():
    data = b'[{"questionNumber": 4, "question_text": "Q4", "recordingTime": 90}]'
    res = parse_file_to_presentation_questions(data, 'questions.json')
    assert isinstance(res, list)
    assert res[0] == {'question_number': 4, 'question': 'Q4', 'description': '',
                      'preparation_time': 120, 'recording_time': 90}


def test_parse_json_wrapped_object():
    data = b'{"questions": [{"question": "Why?"}]}'
    res = parse_file_to_presentation_questions(data, 'bank.JSON')
    assert res[0]['question'] == 'Why?'
    assert res[0]['question_number'] is None


def test_parse_json_rejects_scalars():
    with pytest.raises(ValueError):
        parse_file_to_presentation_questions(b'"nope"', 'q.json')


def test_parse_csv():
    csv = b'number,question,description,preparation_time\n2,What is X?,Explain X,60\n,Untimed,,\n'
    res = parse_file_to_presentation_questions(csv, 'q.csv')
    assert res[0]['question'].startswith('What')
    assert res[0]['question_number'] == 2
    assert res[0]['preparation_time'] == 60
    assert res[1]['question_number'] is None
    assert res[1]['preparation_time'] == 120


def test_parse_txt_blocks():
    txt = (b'1. Tell us about a hobby.\nKeep it short.\nPreparation: 30\n\n'
           b'Q2) Describe a trip\nRecording time = 200s\n')
    res = parse_file_to_presentation_questions(txt, 'q.txt')
    assert len(res) == 2
    assert res[0]['question_number'] == 1
    assert res[0]['question'] == 'Tell us about a hobby.'
    assert res[0]['description'] == 'Keep it short.'
    assert res[0]['preparation_time'] == 30
    assert res[1]['question_number'] == 2
    assert res[1]['recording_time'] == 200


def test_parse_txt_empty_sections():
    txt = b'\n\n'
    res = parse_file_to_presentation_questions(txt, 'q.txt')
    assert res == []


def test_parse_docx():
    doc = Document()
    doc.add_paragraph('7. Convince us to visit your town.')
    doc.add_paragraph('')
    doc.add_paragraph('Unnumbered question')
    doc.add_paragraph('Prep: 45')
    bio = io.BytesIO()
    doc.save(bio)
    res = parse_file_to_presentation_questions(bio.getvalue(), 'bank.docx')
    assert [q['question_number'] for q in res] == [7, None]
    assert res[1]['preparation_time'] == 45


def test_unsupported_type():
    with pytest.raises(ValueError):
        parse_file_to_presentation_questions(b'%PDF', 'bank.pdf')


def test_normalize_question_bad_numbers():
    q = normalize_question({'question': '  Spaces  ', 'question_number': 'abc', 'recording_time': 'x'})
    assert q['question'] == 'Spaces'
    assert q['question_number'] is None
    assert q['recording_time'] == 120


def test_corrupt_docx_is_a_parse_error():
    with pytest.raises(ValueError):
        parse_file_to_presentation_questions(b'this is not a zip', 'bank.docx')
