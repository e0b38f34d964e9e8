"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
timed attempts, presentation questions/submissions, LeetCode
assessments, the catalog and stored results). Repositories return
SQLModel objects and perform commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import func
from . import models


class _BaseRepository:
    def __init__(self, session: Session):
        self.session = session

    def save(self, obj):
        """Add/update `obj`, commit and return the refreshed instance."""
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    create = save

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.commit()


class UserRepository(_BaseRepository):
    """CRUD operations for `User` objects."""

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Case-insensitive email lookup."""
        stmt = select(models.User).where(func.lower(models.User.email) == email.lower())
        return self.session.exec(stmt).first()

    def list(self, role: Optional[str] = None) -> List[models.User]:
        stmt = select(models.User)
        if role:
            stmt = stmt.where(models.User.role == role)
        return self.session.exec(stmt.order_by(models.User.id)).all()

    OWNED_MODELS = (
        models.ListeningAssessment, models.ReadingAssessment, models.WritingAssessment,
        models.SpeakingSubmission, models.PresentationSubmission, models.LeetCodeAssessment,
        models.AssessmentResult,
    )
    REVIEWER_FIELDS = ((models.SpeakingSubmission, 'evaluated_by'), (models.PresentationSubmission, 'reviewed_by'))

    def delete_with_records(self, user: models.User) -> List[str]:
        """Delete `user` and every row they own in one transaction.

        Reviews they gave on other users' submissions are kept with the
        reviewer cleared. Returns the stored video paths of the deleted
        rows so the caller can remove the files.
        """
        videos = []
        for model in self.OWNED_MODELS:
            for row in self.session.exec(select(model).where(model.user_id == user.id)).all():
                if getattr(row, 'video_path', None):
                    videos.append(row.video_path)
                self.session.delete(row)
        for model, field in self.REVIEWER_FIELDS:
            for row in self.session.exec(select(model).where(getattr(model, field) == user.id)).all():
                setattr(row, field, None)
                self.session.add(row)
        # children must be gone before the user row
        self.session.flush()
        self.session.delete(user)
        self.session.commit()
        return videos


class AttemptRepository(_BaseRepository):
    """Queries over a per-user, per-level/language attempt table.

    Works for any model with `user_id`, `level`, `language` and a
    timestamp column named by `time_field`.
    """

    def __init__(self, session: Session, model, time_field: str = 'completed_at'):
        super().__init__(session)
        self.model = model
        self.time_column = getattr(model, time_field)

    def get(self, attempt_id: int):
        return self.session.get(self.model, attempt_id)

    def latest_for(self, user_id: int, level: str, language: str):
        """Most recent attempt for the `(user, level, language)` triple."""
        stmt = select(self.model).where(
            self.model.user_id == user_id,
            self.model.level == level,
            self.model.language == language,
        ).order_by(self.time_column.desc(), self.model.id.desc())
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> list:
        """All attempts for `user_id`, newest first."""
        stmt = select(self.model).where(self.model.user_id == user_id).order_by(self.time_column.desc(), self.model.id.desc())
        return self.session.exec(stmt).all()


class SpeakingRepository(AttemptRepository):
    def __init__(self, session: Session):
        super().__init__(session, models.SpeakingSubmission, time_field='submitted_at')

    def list_pending(self) -> List[models.SpeakingSubmission]:
        """Submissions still awaiting evaluation, oldest first."""
        stmt = select(models.SpeakingSubmission).where(
            models.SpeakingSubmission.status == 'submitted',
            models.SpeakingSubmission.evaluated_at.is_(None),
        ).order_by(models.SpeakingSubmission.submitted_at, models.SpeakingSubmission.id)
        return self.session.exec(stmt).all()

    def latest_evaluated_for_user(self, user_id: int) -> Optional[models.SpeakingSubmission]:
        stmt = select(models.SpeakingSubmission).where(
            models.SpeakingSubmission.user_id == user_id,
            models.SpeakingSubmission.status == 'evaluated',
        ).order_by(models.SpeakingSubmission.evaluated_at.desc(), models.SpeakingSubmission.id.desc())
        return self.session.exec(stmt).first()


class PresentationRepository(_BaseRepository):
    """Question bank and recorded answers for presentation assessments."""

    def list_questions(self) -> List[models.PresentationQuestion]:
        stmt = select(models.PresentationQuestion).order_by(models.PresentationQuestion.question_number)
        return self.session.exec(stmt).all()

    def get_question_by_number(self, number: int) -> Optional[models.PresentationQuestion]:
        stmt = select(models.PresentationQuestion).where(models.PresentationQuestion.question_number == number)
        return self.session.exec(stmt).first()

    def get_submission(self, submission_id: int) -> Optional[models.PresentationSubmission]:
        return self.session.get(models.PresentationSubmission, submission_id)

    def find_submission(self, user_id: int, question_number: int) -> Optional[models.PresentationSubmission]:
        stmt = select(models.PresentationSubmission).where(
            models.PresentationSubmission.user_id == user_id,
            models.PresentationSubmission.question_number == question_number,
        ).order_by(models.PresentationSubmission.submitted_at.desc())
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> List[models.PresentationSubmission]:
        stmt = select(models.PresentationSubmission).where(
            models.PresentationSubmission.user_id == user_id
        ).order_by(models.PresentationSubmission.question_number)
        return self.session.exec(stmt).all()

    def list_pending(self) -> List[models.PresentationSubmission]:
        stmt = select(models.PresentationSubmission).where(
            models.PresentationSubmission.reviewed_at.is_(None)
        ).order_by(models.PresentationSubmission.submitted_at, models.PresentationSubmission.id)
        return self.session.exec(stmt).all()


class LeetCodeRepository(_BaseRepository):
    def get(self, assessment_id: int) -> Optional[models.LeetCodeAssessment]:
        return self.session.get(models.LeetCodeAssessment, assessment_id)

    def active_for_user(self, user_id: int) -> Optional[models.LeetCodeAssessment]:
        """The not-yet-completed assessment of `user_id`, if any."""
        stmt = select(models.LeetCodeAssessment).where(
            models.LeetCodeAssessment.user_id == user_id,
            models.LeetCodeAssessment.status.in_(models.LEETCODE_ACTIVE_STATUSES),
        )
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> List[models.LeetCodeAssessment]:
        stmt = select(models.LeetCodeAssessment).where(
            models.LeetCodeAssessment.user_id == user_id
        ).order_by(models.LeetCodeAssessment.started_at.desc(), models.LeetCodeAssessment.id.desc())
        return self.session.exec(stmt).all()

    def latest_completed_for_user(self, user_id: int) -> Optional[models.LeetCodeAssessment]:
        stmt = select(models.LeetCodeAssessment).where(
            models.LeetCodeAssessment.user_id == user_id,
            models.LeetCodeAssessment.status == 'completed',
        ).order_by(models.LeetCodeAssessment.completed_at.desc())
        return self.session.exec(stmt).first()


class AssessmentRepository(_BaseRepository):
    """Catalog of questionnaire assessments."""

    def list(self, active_only: bool = True) -> List[models.Assessment]:
        stmt = select(models.Assessment)
        if active_only:
            stmt = stmt.where(models.Assessment.is_active == True)  # noqa: E712
        return self.session.exec(stmt.order_by(models.Assessment.id)).all()

    def get_by_category(self, category: str) -> Optional[models.Assessment]:
        stmt = select(models.Assessment).where(models.Assessment.category == category)
        return self.session.exec(stmt).first()

    def get_by_title(self, title: str) -> Optional[models.Assessment]:
        stmt = select(models.Assessment).where(models.Assessment.title == title)
        return self.session.exec(stmt).first()


class ResultRepository(_BaseRepository):
    """Stored puzzle and questionnaire outcomes."""

    def list_for_user(self, user_id: int, assessment_type: Optional[str] = None) -> List[models.AssessmentResult]:
        stmt = select(models.AssessmentResult).where(models.AssessmentResult.user_id == user_id)
        if assessment_type:
            stmt = stmt.where(models.AssessmentResult.assessment_type == assessment_type)
        stmt = stmt.order_by(models.AssessmentResult.completed_at.desc(), models.AssessmentResult.id.desc())
        return self.session.exec(stmt).all()
