"""Pydantic request schemas used by the API.

Schemas keep API input shapes stable and provide the first layer of
validation (types, ranges, lengths). Cross-field and database-backed
rules live in the services.
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class RegisterIn(BaseModel):
    """Payload for student self-registration."""
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    email: Optional[str] = None
    full_name: Optional[str] = None


class LoginIn(BaseModel):
    username: str
    password: str


class ProfileUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None


class SupervisorIn(BaseModel):
    """Admin payload for creating a supervisor account."""
    username: str = Field(min_length=3, max_length=50)
    email: str
    password: str
    full_name: Optional[str] = None


class SupervisorUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None
    password: Optional[str] = None


class LanguageQuizIn(BaseModel):
    """A finished listening or reading quiz.

    `score` is optional; when omitted it is derived from
    `correct_answers / total_questions`.
    """
    level: str
    language: str
    correct_answers: int = Field(ge=0)
    total_questions: int = Field(gt=0)
    score: Optional[float] = Field(default=None, ge=0, le=100)
    answers: List[dict] = Field(default_factory=list)
    feedback: Optional[str] = None
    time_spent: Optional[int] = Field(default=None, ge=0)


class WritingCriterion(BaseModel):
    name: str
    score: float = Field(ge=0, le=100)
    feedback: Optional[str] = None


class WritingIn(BaseModel):
    level: str
    language: str
    prompt: str = Field(min_length=1)
    response: str = Field(min_length=1)
    score: Optional[float] = Field(default=None, ge=0, le=100)
    criteria: List[WritingCriterion] = Field(default_factory=list)
    feedback: Optional[str] = None


class SpeakingCriterion(BaseModel):
    name: str
    score: float = Field(ge=0, le=20)
    feedback: Optional[str] = None


class SpeakingEvaluationIn(BaseModel):
    """Supervisor decision on a speaking submission."""
    status: Literal['evaluated', 'rejected'] = 'evaluated'
    score: Optional[float] = Field(default=None, ge=0, le=100)
    feedback: Optional[str] = None
    criteria: List[SpeakingCriterion] = Field(default_factory=list)


class PresentationQuestionIn(BaseModel):
    question_number: int = Field(gt=0)
    question: str = Field(min_length=1)
    description: str = ""
    preparation_time: int = Field(default=120, gt=0)
    recording_time: int = Field(default=120, gt=0)


class PresentationReviewIn(BaseModel):
    score: float = Field(ge=0, le=100)
    feedback: Optional[str] = None


class LeetCodeStartIn(BaseModel):
    leetcode_username: str = Field(min_length=1, max_length=15)


class PuzzleRunItem(BaseModel):
    puzzle_id: str
    moves: int = Field(ge=0)
    time_taken: float = Field(ge=0)
    completed: bool
    score: Optional[float] = None


class PuzzleSubmission(BaseModel):
    puzzles: List[PuzzleRunItem] = Field(min_length=1)


class QuestionnaireAnswer(BaseModel):
    question_number: int
    option_index: int


class QuestionnaireSubmission(BaseModel):
    answers: List[QuestionnaireAnswer]


class OptionIn(BaseModel):
    text: str
    score: float


class CatalogQuestionIn(BaseModel):
    question_number: int = Field(gt=0)
    question_text: str
    options: List[OptionIn] = Field(min_length=2)


class AssessmentIn(BaseModel):
    """Admin payload for creating a catalog assessment."""
    title: str = Field(min_length=1)
    description: str
    category: str
    duration: int = Field(default=30, gt=0)
    questions: List[CatalogQuestionIn] = Field(default_factory=list)
    is_active: bool = True


class AssessmentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    questions: Optional[List[CatalogQuestionIn]] = None
    is_active: Optional[bool] = None
