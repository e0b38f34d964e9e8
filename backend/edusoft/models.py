"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Tables are flat and reference users by id; list/dict valued fields
(answers, criteria, assigned problems, catalog questions) are stored in
JSON columns.
"""

from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import JSON
from sqlmodel import SQLModel, Field

ROLES = ("student", "supervisor", "admin")
LEVELS = ("a1", "a2", "b1", "b2", "c1", "c2")
LANGUAGES = ("english", "french")
SPEAKING_STATUSES = ("submitted", "evaluated", "rejected")
CATALOG_CATEGORIES = ("presentation", "leadership", "problem-solving", "teamwork", "adaptability", "communication")
LEETCODE_ACTIVE_STATUSES = ("not_started", "in_progress")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """A registered account.

    Fields:
    - `username`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    - `role`: one of `ROLES`; public registration only creates students
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    email: Optional[str] = Field(default=None, index=True)
    full_name: Optional[str] = None
    password_hash: str
    role: str = Field(default="student", index=True)
    created_at: datetime = Field(default_factory=utcnow)


class LanguageQuizBase(SQLModel):
    """Columns shared by the listening and reading quiz tables."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    level: str = Field(index=True)
    language: str = Field(index=True)
    score: float
    correct_answers: int
    total_questions: int
    answers: List[dict] = Field(default_factory=list, sa_type=JSON)
    feedback: Optional[str] = None
    time_spent: Optional[int] = None
    completed_at: datetime = Field(default_factory=utcnow)
    next_available_date: datetime


class ListeningAssessment(LanguageQuizBase, table=True):
    """A completed listening comprehension quiz."""


class ReadingAssessment(LanguageQuizBase, table=True):
    """A completed reading comprehension quiz."""


class WritingAssessment(SQLModel, table=True):
    """A submitted writing task with its score and per-criterion marks."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    level: str = Field(index=True)
    language: str = Field(index=True)
    prompt: str
    response: str
    word_count: int = 0
    score: float
    criteria: List[dict] = Field(default_factory=list, sa_type=JSON)
    feedback: Optional[str] = None
    completed_at: datetime = Field(default_factory=utcnow)
    next_available_date: datetime


class SpeakingSubmission(SQLModel, table=True):
    """A recorded speaking task awaiting or holding a supervisor evaluation.

    `status` moves from `submitted` to `evaluated` or `rejected`; the
    video itself lives on disk under `video_path` (relative to the media
    root).
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    level: str = Field(index=True)
    language: str = Field(index=True)
    task_id: str
    prompt: Optional[str] = None
    video_path: str
    video_filename: str
    video_size: int
    video_sha256: str
    status: str = Field(default="submitted", index=True)
    score: Optional[float] = None
    criteria: List[dict] = Field(default_factory=list, sa_type=JSON)
    feedback: Optional[str] = None
    submitted_at: datetime = Field(default_factory=utcnow)
    evaluated_at: Optional[datetime] = None
    evaluated_by: Optional[int] = Field(default=None, foreign_key='user.id')


class PresentationQuestion(SQLModel, table=True):
    """A prompt in the presentation question bank."""
    id: Optional[int] = Field(default=None, primary_key=True)
    question_number: int = Field(index=True, unique=True)
    question: str
    description: str = ""
    preparation_time: int = 120
    recording_time: int = 120
    created_at: datetime = Field(default_factory=utcnow)


class PresentationSubmission(SQLModel, table=True):
    """A recorded answer to one presentation question."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    question_id: int = Field(foreign_key='presentationquestion.id')
    question_number: int = Field(index=True)
    video_path: str
    video_filename: str
    video_size: int
    video_sha256: str
    submitted_at: datetime = Field(default_factory=utcnow)
    score: Optional[float] = None
    feedback: Optional[str] = None
    reviewed_by: Optional[int] = Field(default=None, foreign_key='user.id')
    reviewed_at: Optional[datetime] = None


class LeetCodeAssessment(SQLModel, table=True):
    """Practice assessment built from problems solved on a LeetCode account.

    `assigned_problems` holds dicts with `problem_id`, `title`,
    `title_slug`, `difficulty`, `completed` and `completed_at`.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    leetcode_username: str
    verification_code: str
    verification_method: str = "bio"
    verification_status: str = "pending"
    verified_at: Optional[datetime] = None
    status: str = Field(default="not_started", index=True)
    assigned_problems: List[dict] = Field(default_factory=list, sa_type=JSON)
    score: int = 0
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None


class Assessment(SQLModel, table=True):
    """Catalog entry for a questionnaire-style skill assessment.

    `questions` holds dicts with `question_number`, `question_text` and
    `options` (a list of `{text, score}`).
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(unique=True)
    description: str
    category: str = Field(index=True, unique=True)
    duration: int = 30
    questions: List[dict] = Field(default_factory=list, sa_type=JSON)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AssessmentResult(SQLModel, table=True):
    """Stored outcome of a puzzle run or a questionnaire submission."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    assessment_type: str = Field(index=True)
    score: float
    rating: Optional[str] = None
    details: dict = Field(default_factory=dict, sa_type=JSON)
    completed_at: datetime = Field(default_factory=utcnow)
