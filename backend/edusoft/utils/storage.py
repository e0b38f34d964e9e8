"""Local-disk storage for uploaded speaking and presentation videos."""

from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path
from uuid import uuid4

from ..errors import InvalidInputError, NotFoundError, PayloadTooLargeError, UnsupportedMediaError

logger = logging.getLogger("edusoft.storage")

_EBML_MAGIC = b"\x1a\x45\xdf\xa3"


def get_media_root() -> Path:
    """Return the base directory for stored uploads."""
    raw = os.getenv("MEDIA_ROOT", "")
    if raw.strip():
        return Path(raw).expanduser().resolve()
    return (Path(__file__).resolve().parents[2] / "data" / "media").resolve()


def validate_filename(filename: str | None) -> str:
    if not filename or len(filename) > 200:
        raise InvalidInputError("invalid filename")
    if "/" in filename or "\\" in filename:
        raise InvalidInputError("invalid filename path")
    return filename


def sniff_video(payload: bytes) -> str:
    """Return the container extension for a video payload.

    Only the container signature is checked: an ISO base media `ftyp`
    box (MP4/QuickTime) or an EBML header (WebM/Matroska).
    """
    if len(payload) >= 12 and payload[4:8] == b"ftyp":
        return ".mov" if payload[8:12] == b"qt  " else ".mp4"
    if payload[:4] == _EBML_MAGIC:
        return ".webm"
    raise UnsupportedMediaError("unsupported file content; expected an MP4, MOV or WebM video")


def read_limited(fileobj, max_bytes: int) -> bytes:
    payload = fileobj.read(max_bytes + 1)
    if len(payload) > max_bytes:
        raise PayloadTooLargeError("file too large")
    if not payload:
        raise InvalidInputError("empty file")
    return payload


def save_video(payload: bytes, filename: str, category: str, owner_id: int) -> dict:
    """Persist a video under `<media root>/<category>/<owner_id>/`.

    Returns the stored relative path with size and sha256 so callers can
    keep them on the owning record.
    """
    validate_filename(filename)
    ext = sniff_video(payload)
    root = get_media_root()
    rel = Path(category) / str(owner_id) / f"{uuid4().hex}{ext}"
    target = root / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(payload)
    digest = hashlib.sha256(payload).hexdigest()
    logger.info(
        "upload_saved %s",
        json.dumps({"category": category, "owner_id": owner_id, "path": rel.as_posix(), "bytes": len(payload)}, ensure_ascii=True),
    )
    return {"path": rel.as_posix(), "filename": filename, "size": len(payload), "sha256": digest}


def resolve(rel_path: str) -> Path:
    """Map a stored relative path back to an absolute file inside the media root."""
    root = get_media_root()
    target = (root / rel_path).resolve()
    if root not in target.parents:
        raise NotFoundError("file not found")
    if not target.is_file():
        raise NotFoundError("file not found")
    return target


def delete(rel_path: str) -> bool:
    root = get_media_root()
    target = (root / rel_path).resolve()
    if root not in target.parents or not target.exists():
        return False
    target.unlink()
    logger.info("upload_deleted %s", json.dumps({"path": rel_path}, ensure_ascii=True))
    return True
