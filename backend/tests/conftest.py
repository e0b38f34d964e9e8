import os
import tempfile
import uuid
from datetime import timedelta
from pathlib import Path

# Point the app at a throwaway database and media dir before it is imported.
_TMP = Path(tempfile.mkdtemp(prefix="edusoft-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP / 'test.db'}")
os.environ.setdefault("MEDIA_ROOT", str(_TMP / "media"))

import pytest
from sqlmodel import Session

from edusoft.database import engine
from edusoft import services

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 64
WEBM_BYTES = b"\x1a\x45\xdf\xa3" + b"\x00" * 64


def _create(role: str) -> dict:
    username = f"{role}_{uuid.uuid4().hex[:8]}"
    password = "Passw0rd!x"
    with Session(engine) as session:
        auth = services.AuthService(session)
        user = auth.register(username, password, email=f"{username}@example.com", role=role)
        token = auth.issue_token(user)
        return {
            "id": user.id,
            "username": username,
            "password": password,
            "headers": {"Authorization": f"Bearer {token}"},
        }


@pytest.fixture
def student():
    return _create("student")


@pytest.fixture
def other_student():
    return _create("student")


@pytest.fixture
def supervisor():
    return _create("supervisor")


@pytest.fixture
def admin():
    return _create("admin")


@pytest.fixture
def backdate():
    """Shift a row's timestamp field into the past by `days`."""
    def _backdate(model, row_id: int, field: str, days: float):
        with Session(engine) as session:
            row = session.get(model, row_id)
            setattr(row, field, getattr(row, field) - timedelta(days=days))
            session.add(row)
            session.commit()
    return _backdate
