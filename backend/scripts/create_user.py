"""CLI script to create admin, supervisor or student accounts.

Public registration only creates students, so the first admin has to be
created here.

Usage: python scripts/create_user.py --username NAME --password PW [--role admin] [--email E]
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


def main(username: str, password: str, role: str, email: str = None, full_name: str = None) -> int:
    """Create one account and print its id; returns a process exit code."""
    create_db_and_tables()
    with Session(engine) as session:
        try:
            if role == 'supervisor':
                user = services.SupervisorService(session).create(username, email, password, full_name)
            else:
                user = services.AuthService(session).register(username, password, email=email,
                                                              full_name=full_name, role=role)
        except ServiceError as e:
            print(f'Could not create {role} {username}: {e.message}')
            return 1
        print(f'Created {user.role} {user.username} (id={user.id})')
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--username', required=True)
    parser.add_argument('--password', required=True)
    parser.add_argument('--role', choices=['admin', 'supervisor', 'student'], default='admin')
    parser.add_argument('--email')
    parser.add_argument('--full-name', dest='full_name')
    args = parser.parse_args()
    sys.exit(main(args.username, args.password, args.role, email=args.email, full_name=args.full_name))
