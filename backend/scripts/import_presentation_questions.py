"""CLI script to load the presentation question bank from a file.
Usage: python scripts/import_presentation_questions.py FILE [--dry-run]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `edusoft` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from edusoft.database import engine, create_db_and_tables
from edusoft import services
from edusoft.errors import ServiceError


def main(path: pathlib.Path, dry_run: bool = False) -> int:
    """Import questions from `path` (JSON, CSV, TXT or DOCX) and print a summary."""
    if not path.is_file():
        print(f'File not found: {path}')
        return 1
    create_db_and_tables()
    with Session(engine) as session:
        svc = services.PresentationService(session)
        try:
            result = svc.import_questions(path.read_bytes(), path.name, dry_run=dry_run)
        except ServiceError as e:
            print(f'Error importing {path}: {e.message}')
            return 1
    verb = 'Would create' if dry_run else 'Created'
    print(f"{verb} {result['created']} questions, skipped {result['skipped']}, errors {len(result['errors'])}")
    for err in result['errors']:
        print(f"  item {err['index']}: {err['error']}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('file', type=pathlib.Path)
    parser.add_argument('--dry-run', action='store_true', help='Parse and validate without writing')
    args = parser.parse_args()
    sys.exit(main(args.file, dry_run=args.dry_run))
