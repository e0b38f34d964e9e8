"""File parsing utilities that turn question-bank files into presentation
question dictionaries.

Supported input types: JSON, CSV, TXT and DOCX. Parsers return a list of
dictionaries with keys: `question_number` (may be None), `question`,
`description`, `preparation_time` and `recording_time`.
"""

import io
import json
import csv
import re
import zipfile
from typing import List, Dict, Optional
import docx
from docx.opc.exceptions import PackageNotFoundError

DEFAULT_SECONDS = 120

_NUMBERED = re.compile(r'^\s*(?:q(?:uestion)?\s*)?(\d+)\s*[.):-]\s*(.+)$', re.IGNORECASE)
_TIMING = re.compile(r'^\s*(preparation|prep|recording|record)(?:\s*time)?\s*[:=]\s*(\d+)\s*s?\s*$', re.IGNORECASE)


def parse_file_to_presentation_questions(file_bytes: bytes, filename: str) -> List[Dict]:
    """Dispatch to the appropriate parser based on file extension."""
    name = filename.lower()
    if name.endswith('.json'):
        return parse_json(file_bytes)
    if name.endswith('.csv'):
        return parse_csv(file_bytes)
    if name.endswith('.txt'):
        return parse_txt(file_bytes)
    if name.endswith('.docx'):
        return parse_docx(file_bytes)
    raise ValueError('Unsupported file type')


def parse_json(b: bytes):
    """Parse a JSON array (or `{"questions": [...]}`) of question objects."""
    data = json.loads(b.decode('utf-8'))
    if isinstance(data, dict):
        data = data.get('questions') or []
    if not isinstance(data, list):
        raise ValueError('JSON must be a list of questions')
    return [normalize_question(item) if isinstance(item, dict) else item for item in data]


def parse_csv(b: bytes):
    """Parse a CSV with a `question` column.

    Optional columns: `question_number`/`number`, `description`,
    `preparation_time`, `recording_time`.
    """
    sio = io.StringIO(b.decode('utf-8-sig'))
    reader = csv.DictReader(sio)
    return [normalize_question(row) for row in reader]


def parse_txt(b: bytes):
    """Parse blank-line separated blocks (see `_parse_block`)."""
    s = b.decode('utf-8')
    blocks = [blk.strip() for blk in re.split(r'\n\s*\n', s) if blk.strip()]
    return [_parse_block(blk.splitlines()) for blk in blocks]


def parse_docx(b: bytes):
    """Parse a DOCX document into question blocks.

    Paragraph groups separated by empty paragraphs are treated as one
    question block, exactly like the plain-text format.
    """
    try:
        doc = docx.Document(io.BytesIO(b))
    except (zipfile.BadZipFile, PackageNotFoundError, KeyError) as e:
        raise ValueError(f'invalid DOCX file: {e}') from e
    blocks = []
    current = []
    for p in doc.paragraphs:
        text = (p.text or '').strip()
        if not text:
            if current:
                blocks.append(current)
                current = []
            continue
        current.append(text)
    if current:
        blocks.append(current)
    return [_parse_block(lines) for lines in blocks]


def _parse_block(lines: List[str]) -> Dict:
    """First line is the question, optionally numbered (`3. Tell us...`).

    Lines like `Preparation: 90` or `Recording: 180` set the timings; any
    other line is appended to the description.
    """
    lines = [l.strip() for l in lines if l.strip()]
    if not lines:
        return normalize_question({})
    first = lines[0]
    number = None
    m = _NUMBERED.match(first)
    if m:
        number, first = int(m.group(1)), m.group(2).strip()
    item = {'question_number': number, 'question': first}
    description = []
    for line in lines[1:]:
        t = _TIMING.match(line)
        if t:
            key = 'preparation_time' if t.group(1).lower().startswith('prep') else 'recording_time'
            item[key] = int(t.group(2))
        else:
            description.append(line)
    item['description'] = ' '.join(description)
    return normalize_question(item)


def normalize_question(item: dict) -> dict:
    """Normalize a parsed question object (maps alternative keys to the
    canonical output shape).
    """
    return {
        'question_number': _coerce_int(item.get('question_number') or item.get('questionNumber') or item.get('number')),
        'question': str(item.get('question') or item.get('question_text') or '').strip(),
        'description': str(item.get('description') or '').strip(),
        'preparation_time': _coerce_int(item.get('preparation_time') or item.get('preparationTime')) or DEFAULT_SECONDS,
        'recording_time': _coerce_int(item.get('recording_time') or item.get('recordingTime')) or DEFAULT_SECONDS,
    }


def _coerce_int(val) -> Optional[int]:
    try:
        return int(val) if val is not None and str(val).strip() != '' else None
    except (TypeError, ValueError):
        return None
