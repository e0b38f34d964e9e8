"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories,
parsers and auxiliary logic. Services are intentionally thin: they
perform validation, execute domain logic and persist aggregates via
repositories. Failures are raised as `edusoft.errors` exceptions which
the API layer renders as `{"success": false, "message": ...}`.
"""

import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .errors import CooldownActiveError, ForbiddenError, InvalidInputError, NotFoundError
from .utils import storage
from .utils.cooldown import COOLDOWN_DAYS, check_availability, ensure_utc, isoformat
from .utils.leetcode import LeetCodeClient, generate_verification_code, profile_contains, submission_matches
from .utils.parsers import parse_file_to_presentation_questions
from .utils.scoring import average_criteria, quiz_percentage, score_puzzle_run, score_questionnaire

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
REVIEWER_ROLES = ("supervisor", "admin")
STRONG_PASSWORD = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$')
EMAIL = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

review_logger = logging.getLogger("edusoft.review")


def is_reviewer(user: models.User) -> bool:
    return user.role in REVIEWER_ROLES


def ensure_can_view(viewer: models.User, owner_id: int) -> None:
    """Owners see their own records; supervisors and admins see everyone's."""
    if viewer.id != owner_id and not is_reviewer(viewer):
        raise ForbiddenError('not allowed to access this record')


def normalize_level(level: str) -> str:
    value = (level or '').strip().lower()
    if value not in models.LEVELS:
        raise InvalidInputError(f"invalid level '{level}'; expected one of {', '.join(models.LEVELS)}")
    return value


def normalize_language(language: str) -> str:
    value = (language or '').strip().lower()
    if value not in models.LANGUAGES:
        raise InvalidInputError(f"invalid language '{language}'; expected one of {', '.join(models.LANGUAGES)}")
    return value


def _validate_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = email.strip()
    if not EMAIL.match(email):
        raise InvalidInputError('invalid email address')
    return email


def _log_review(event: str, **fields) -> None:
    review_logger.info("%s %s", event, json.dumps(fields, ensure_ascii=True, default=str))


def _delete_account(user_repo: repositories.UserRepository, user: models.User) -> None:
    """Remove an account with its attempts, submissions and stored videos."""
    user_id = user.id
    videos = user_repo.delete_with_records(user)
    for path in videos:
        storage.delete(path)
    _log_review("account_deleted", user_id=user_id, videos=len(videos))


class AuthService:
    """Account creation, password checks and token issuing."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def register(self, username: str, password: str, email: Optional[str] = None,
                 full_name: Optional[str] = None, role: str = "student") -> models.User:
        """Create a new user with a hashed password.

        Usernames and emails (case-insensitive) are unique. Returns the
        persisted `User` instance.
        """
        username = (username or '').strip()
        if not username:
            raise InvalidInputError('username is required')
        if role not in models.ROLES:
            raise InvalidInputError(f'invalid role: {role}')
        if self.user_repo.get_by_username(username):
            raise InvalidInputError('username already exists')
        email = _validate_email(email)
        if email and self.user_repo.get_by_email(email):
            raise InvalidInputError('email already registered')
        u = models.User(username=username, email=email, full_name=full_name,
                        password_hash=PWD_CTX.hash(password), role=role)
        return self.user_repo.create(u)

    def issue_token(self, user: models.User) -> str:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {"user_id": user.id, "username": user.username, "role": user.role, "exp": int(expire.timestamp())}
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    def authenticate(self, username: str, password: str) -> Optional[dict]:
        """Verify credentials and return the token payload on success.

        Returns `None` if authentication fails.
        """
        user = self.user_repo.get_by_username(username)
        if not user or not PWD_CTX.verify(password, user.password_hash):
            return None
        return {"access_token": self.issue_token(user), "token_type": "bearer", "role": user.role, "user_id": user.id}


class UserService:
    """Profile updates and admin-side user management."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def get(self, user_id: int) -> models.User:
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError('user not found')
        return user

    def update_profile(self, user_id: int, email: Optional[str] = None, full_name: Optional[str] = None) -> models.User:
        user = self.get(user_id)
        if email is not None:
            email = _validate_email(email)
            other = self.user_repo.get_by_email(email)
            if other and other.id != user.id:
                raise InvalidInputError('email already registered')
            user.email = email
        if full_name is not None:
            user.full_name = full_name.strip() or None
        return self.user_repo.save(user)

    def list_users(self, role: Optional[str] = None) -> List[models.User]:
        if role and role not in models.ROLES:
            raise InvalidInputError(f'invalid role: {role}')
        return self.user_repo.list(role)

    def delete_user(self, actor: models.User, user_id: int) -> None:
        if actor.id == user_id:
            raise InvalidInputError('cannot delete your own account')
        _delete_account(self.user_repo, self.get(user_id))


class SupervisorService:
    """Admin management of supervisor accounts."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    @staticmethod
    def _check_password(password: str) -> None:
        if not STRONG_PASSWORD.match(password or ''):
            raise InvalidInputError('password must be at least 8 characters and contain upper case, '
                                    'lower case, a digit and a special character')

    def create(self, username: str, email: str, password: str, full_name: Optional[str] = None) -> models.User:
        self._check_password(password)
        if not email:
            raise InvalidInputError('email is required')
        return AuthService(self.session).register(username, password, email=email, full_name=full_name, role="supervisor")

    def list(self) -> List[models.User]:
        return self.user_repo.list("supervisor")

    def get(self, supervisor_id: int) -> models.User:
        user = self.user_repo.get(supervisor_id)
        if not user or user.role != "supervisor":
            raise NotFoundError('supervisor not found')
        return user

    def update(self, supervisor_id: int, email: Optional[str] = None, full_name: Optional[str] = None,
               password: Optional[str] = None) -> models.User:
        sup = self.get(supervisor_id)
        if email is not None:
            email = _validate_email(email)
            other = self.user_repo.get_by_email(email)
            if other and other.id != sup.id:
                raise InvalidInputError('email already registered')
            sup.email = email
        if full_name is not None:
            sup.full_name = full_name
        if password is not None:
            self._check_password(password)
            sup.password_hash = PWD_CTX.hash(password)
        return self.user_repo.save(sup)

    def delete(self, supervisor_id: int) -> None:
        _delete_account(self.user_repo, self.get(supervisor_id))


class _TimedAssessmentService:
    """Shared cooldown, lookup and history logic for attempt tables."""
    kind = "assessment"
    model = None
    time_field = "completed_at"

    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.AttemptRepository(session, self.model, time_field=self.time_field)

    def _previous(self, record) -> Optional[dict]:
        if record is None:
            return None
        return {
            'id': record.id,
            'completed_at': isoformat(getattr(record, self.time_field)),
            'score': record.score,
            'feedback': record.feedback,
        }

    def availability(self, user_id: int, level: str, language: str) -> dict:
        """Whether `user_id` may take this assessment for `level`/`language` now.

        Looks only at the latest attempt for the triple; the window is
        `COOLDOWN_DAYS` from its timestamp.
        """
        level, language = normalize_level(level), normalize_language(language)
        last = self.repo.latest_for(user_id, level, language)
        state = check_availability(getattr(last, self.time_field) if last else None)
        if state['available']:
            message = f'{self.kind} assessment available'
        else:
            message = (f'You can take the next {level.upper()} {language} {self.kind} assessment '
                       f'after {state["next_available_date"].date().isoformat()}')
        return {
            'available': state['available'],
            'message': message,
            'next_available_date': isoformat(state['next_available_date']),
            'days_remaining': state['days_remaining'],
            'previous_assessment': self._previous(last),
        }

    def _guard_cooldown(self, user_id: int, level: str, language: str) -> None:
        info = self.availability(user_id, level, language)
        if not info['available']:
            raise CooldownActiveError(
                info['message'],
                next_available_date=info['next_available_date'],
                days_remaining=info['days_remaining'],
                previous_assessment=info['previous_assessment'],
            )

    def get(self, viewer: models.User, attempt_id: int):
        record = self.repo.get(attempt_id)
        if not record:
            raise NotFoundError(f'{self.kind} assessment not found')
        ensure_can_view(viewer, record.user_id)
        return record

    def history(self, viewer: models.User, user_id: int) -> list:
        ensure_can_view(viewer, user_id)
        return self.repo.list_for_user(user_id)

    def latest_for_user(self, user_id: int):
        records = self.repo.list_for_user(user_id)
        return records[0] if records else None


class LanguageQuizService(_TimedAssessmentService):
    """Listening and reading quizzes: scored on the client, gated weekly here."""

    MODELS = {
        'listening': models.ListeningAssessment,
        'reading': models.ReadingAssessment,
    }

    def __init__(self, session: Session, kind: str):
        if kind not in self.MODELS:
            raise ValueError(f'unknown quiz kind: {kind}')
        self.kind = kind
        self.model = self.MODELS[kind]
        super().__init__(session)

    def submit(self, user_id: int, level: str, language: str, correct_answers: int, total_questions: int,
               score: Optional[float] = None, answers: Optional[List[dict]] = None,
               feedback: Optional[str] = None, time_spent: Optional[int] = None):
        """Persist a finished quiz after checking the cooldown.

        When `score` is omitted it is the percentage of correct answers.
        """
        level, language = normalize_level(level), normalize_language(language)
        try:
            computed = quiz_percentage(correct_answers, total_questions)
        except ValueError as e:
            raise InvalidInputError(str(e))
        self._guard_cooldown(user_id, level, language)
        now = models.utcnow()
        record = self.model(
            user_id=user_id,
            level=level,
            language=language,
            score=computed if score is None else round(float(score), 1),
            correct_answers=correct_answers,
            total_questions=total_questions,
            answers=list(answers or []),
            feedback=feedback,
            time_spent=time_spent,
            completed_at=now,
            next_available_date=now + timedelta(days=COOLDOWN_DAYS),
        )
        return self.repo.create(record)

    def statistics(self, viewer: models.User, user_id: int) -> dict:
        """Aggregate a user's attempts: totals, best score and breakdowns."""
        records = self.history(viewer, user_id)
        if not records:
            return {
                'total_assessments': 0,
                'average_score': 0,
                'highest_score': 0,
                'recent_scores': [],
                'level_breakdown': {},
                'language_breakdown': {},
            }
        scores = [r.score for r in records]

        def breakdown(key):
            groups = {}
            for r in records:
                g = groups.setdefault(getattr(r, key), {'count': 0, 'total_score': 0.0})
                g['count'] += 1
                g['total_score'] += r.score
            for g in groups.values():
                g['average_score'] = round(g['total_score'] / g['count'], 1)
                g['total_score'] = round(g['total_score'], 1)
            return groups

        return {
            'total_assessments': len(records),
            'average_score': round(sum(scores) / len(scores), 1),
            'highest_score': max(scores),
            'recent_scores': [
                {'id': r.id, 'level': r.level, 'language': r.language, 'score': r.score,
                 'completed_at': isoformat(r.completed_at)}
                for r in records[:5]
            ],
            'level_breakdown': breakdown('level'),
            'language_breakdown': breakdown('language'),
        }


class WritingService(_TimedAssessmentService):
    kind = "writing"
    model = models.WritingAssessment

    def submit(self, user_id: int, level: str, language: str, prompt: str, response: str,
               score: Optional[float] = None, criteria: Optional[List[dict]] = None,
               feedback: Optional[str] = None) -> models.WritingAssessment:
        """Persist a writing attempt.

        The overall score is the mean of the criterion scores when any
        are given; otherwise an explicit `score` is required.
        """
        level, language = normalize_level(level), normalize_language(language)
        if not (response or '').strip():
            raise InvalidInputError('response must not be empty')
        criteria = list(criteria or [])
        if criteria:
            score = average_criteria(criteria)
        elif score is None:
            raise InvalidInputError('score or criteria required')
        self._guard_cooldown(user_id, level, language)
        now = models.utcnow()
        record = models.WritingAssessment(
            user_id=user_id,
            level=level,
            language=language,
            prompt=prompt,
            response=response,
            word_count=len(response.split()),
            score=round(float(score), 1),
            criteria=criteria,
            feedback=feedback,
            completed_at=now,
            next_available_date=now + timedelta(days=COOLDOWN_DAYS),
        )
        return self.repo.create(record)


class SpeakingService(_TimedAssessmentService):
    """Video speaking tasks reviewed by supervisors.

    A pending submission blocks new attempts for the same level and
    language; once reviewed, the weekly cooldown runs from the
    submission time.
    """
    kind = "speaking"
    model = models.SpeakingSubmission
    time_field = "submitted_at"

    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.SpeakingRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def availability(self, user_id: int, level: str, language: str) -> dict:
        info = super().availability(user_id, level, language)
        last = self.repo.latest_for(user_id, normalize_level(level), normalize_language(language))
        info['pending_review'] = bool(last and last.status == 'submitted')
        if info['pending_review']:
            info['available'] = False
            info['message'] = 'previous speaking submission is still awaiting review'
        return info

    def _previous(self, record) -> Optional[dict]:
        prev = super()._previous(record)
        if prev is not None:
            prev['status'] = record.status
        return prev

    def submit(self, user_id: int, level: str, language: str, task_id: str, prompt: Optional[str],
               payload: bytes, filename: str) -> models.SpeakingSubmission:
        level, language = normalize_level(level), normalize_language(language)
        if not (task_id or '').strip():
            raise InvalidInputError('task_id is required')
        self._guard_cooldown(user_id, level, language)
        stored = storage.save_video(payload, filename, 'speaking', user_id)
        sub = models.SpeakingSubmission(
            user_id=user_id,
            level=level,
            language=language,
            task_id=task_id.strip(),
            prompt=prompt,
            video_path=stored['path'],
            video_filename=stored['filename'],
            video_size=stored['size'],
            video_sha256=stored['sha256'],
        )
        return self.repo.create(sub)

    def list_pending(self) -> List[tuple]:
        """Pending submissions paired with the owner's username."""
        out = []
        for sub in self.repo.list_pending():
            owner = self.user_repo.get(sub.user_id)
            out.append((sub, owner.username if owner else None))
        return out

    def evaluate(self, reviewer: models.User, submission_id: int, status: str = 'evaluated',
                 score: Optional[float] = None, feedback: Optional[str] = None,
                 criteria: Optional[List[dict]] = None) -> models.SpeakingSubmission:
        """Record a supervisor decision.

        Only `submitted` items can be evaluated. An `evaluated` decision
        needs a score in 0..100; `rejected` may omit it.
        """
        sub = self.repo.get(submission_id)
        if not sub:
            raise NotFoundError('speaking submission not found')
        if sub.status != 'submitted':
            raise InvalidInputError(f'submission already {sub.status}')
        if status not in ('evaluated', 'rejected'):
            raise InvalidInputError('status must be evaluated or rejected')
        if status == 'evaluated' and score is None:
            raise InvalidInputError('score is required')
        if score is not None and not 0 <= score <= 100:
            raise InvalidInputError('score must be between 0 and 100')
        sub.status = status
        sub.score = score
        sub.feedback = feedback
        sub.criteria = list(criteria or [])
        sub.evaluated_at = models.utcnow()
        sub.evaluated_by = reviewer.id
        saved = self.repo.save(sub)
        _log_review("speaking_evaluated", submission_id=saved.id, reviewer_id=reviewer.id, status=status, score=score)
        return saved

    def video_file(self, viewer: models.User, submission_id: int):
        sub = self.get(viewer, submission_id)
        return storage.resolve(sub.video_path), sub.video_filename


class PresentationService:
    """Question bank plus recorded answers and their reviews."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.PresentationRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def list_questions(self) -> List[models.PresentationQuestion]:
        return self.repo.list_questions()

    def get_question(self, number: int) -> models.PresentationQuestion:
        q = self.repo.get_question_by_number(number)
        if not q:
            raise NotFoundError(f'presentation question {number} not found')
        return q

    def create_question(self, question_number: int, question: str, description: str = "",
                        preparation_time: int = 120, recording_time: int = 120) -> models.PresentationQuestion:
        if self.repo.get_question_by_number(question_number):
            raise InvalidInputError(f'question number {question_number} already exists')
        q = models.PresentationQuestion(
            question_number=question_number,
            question=question.strip(),
            description=(description or '').strip(),
            preparation_time=preparation_time,
            recording_time=recording_time,
        )
        return self.repo.create(q)

    def import_questions(self, file_bytes: bytes, filename: str, dry_run: bool = False) -> dict:
        """Parse a question-bank file and create the questions it holds.

        Items without a number get the next free number. Items whose
        number already exists are skipped; malformed items are reported
        in `errors` with their index.
        """
        try:
            parsed = parse_file_to_presentation_questions(file_bytes, filename)
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidInputError(f'could not parse file: {e}')
        existing = {q.question_number for q in self.repo.list_questions()}
        next_number = max(existing, default=0) + 1
        created, skipped, errors = 0, 0, []
        for idx, item in enumerate(parsed):
            if not isinstance(item, dict) or not item.get('question'):
                errors.append({'index': idx, 'error': 'missing or empty question'})
                continue
            number = item.get('question_number')
            if number is None:
                while next_number in existing:
                    next_number += 1
                number = next_number
            if number <= 0:
                errors.append({'index': idx, 'error': 'question_number must be positive'})
                continue
            if number in existing:
                skipped += 1
                continue
            existing.add(number)
            if not dry_run:
                self.repo.create(models.PresentationQuestion(
                    question_number=number,
                    question=item['question'],
                    description=item.get('description') or '',
                    preparation_time=item.get('preparation_time') or 120,
                    recording_time=item.get('recording_time') or 120,
                ))
            created += 1
        return {'created': created, 'skipped': skipped, 'errors': errors}

    def submit(self, user_id: int, question_number: int, payload: bytes, filename: str) -> models.PresentationSubmission:
        """Store a recorded answer; an unreviewed earlier answer is replaced."""
        question = self.get_question(question_number)
        existing = self.repo.find_submission(user_id, question_number)
        if existing and existing.reviewed_at is not None:
            raise InvalidInputError(f'question {question_number} has already been reviewed')
        stored = storage.save_video(payload, filename, 'presentation', user_id)
        old_path = None
        if existing:
            old_path = existing.video_path
            sub = existing
            sub.submitted_at = models.utcnow()
        else:
            sub = models.PresentationSubmission(user_id=user_id, question_id=question.id, question_number=question_number,
                                                video_path='', video_filename='', video_size=0, video_sha256='')
        sub.video_path = stored['path']
        sub.video_filename = stored['filename']
        sub.video_size = stored['size']
        sub.video_sha256 = stored['sha256']
        try:
            sub = self.repo.save(sub)
        except Exception:
            self.session.rollback()
            storage.delete(stored['path'])
            raise
        if old_path and old_path != sub.video_path:
            storage.delete(old_path)
        return sub

    def list_for_user(self, user_id: int) -> List[models.PresentationSubmission]:
        return self.repo.list_for_user(user_id)

    def completion(self, user_id: int) -> dict:
        numbers = [q.question_number for q in self.repo.list_questions()]
        answered = {s.question_number for s in self.repo.list_for_user(user_id)}
        missing = [n for n in numbers if n not in answered]
        return {
            'completed': bool(numbers) and not missing,
            'answered': len([n for n in numbers if n in answered]),
            'total_questions': len(numbers),
            'missing': missing,
        }

    def get_submission(self, viewer: models.User, submission_id: int) -> models.PresentationSubmission:
        sub = self.repo.get_submission(submission_id)
        if not sub:
            raise NotFoundError('presentation submission not found')
        ensure_can_view(viewer, sub.user_id)
        return sub

    def delete_submission(self, viewer: models.User, submission_id: int) -> None:
        sub = self.repo.get_submission(submission_id)
        if not sub:
            raise NotFoundError('presentation submission not found')
        if sub.user_id != viewer.id:
            raise ForbiddenError('only the owner can delete a submission')
        if sub.reviewed_at is not None:
            raise InvalidInputError('reviewed submissions cannot be deleted')
        storage.delete(sub.video_path)
        self.repo.delete(sub)

    def list_pending(self) -> List[tuple]:
        """Unreviewed submissions with owner username and question text."""
        out = []
        for sub in self.repo.list_pending():
            owner = self.user_repo.get(sub.user_id)
            question = self.repo.get_question_by_number(sub.question_number)
            out.append((sub, owner.username if owner else None, question.question if question else None))
        return out

    def review(self, reviewer: models.User, submission_id: int, score: float,
               feedback: Optional[str] = None) -> models.PresentationSubmission:
        sub = self.repo.get_submission(submission_id)
        if not sub:
            raise NotFoundError('presentation submission not found')
        if not 0 <= score <= 100:
            raise InvalidInputError('score must be between 0 and 100')
        sub.score = score
        sub.feedback = feedback
        sub.reviewed_by = reviewer.id
        sub.reviewed_at = models.utcnow()
        saved = self.repo.save(sub)
        _log_review("presentation_reviewed", submission_id=saved.id, reviewer_id=reviewer.id, score=score)
        return saved

    def video_file(self, viewer: models.User, submission_id: int):
        sub = self.get_submission(viewer, submission_id)
        return storage.resolve(sub.video_path), sub.video_filename

    def overall_score(self, user_id: int) -> Optional[dict]:
        """Mean of reviewed scores, or None when nothing is reviewed yet."""
        reviewed = [s for s in self.repo.list_for_user(user_id) if s.reviewed_at is not None and s.score is not None]
        if not reviewed:
            return None
        return {
            'score': round(sum(s.score for s in reviewed) / len(reviewed), 1),
            'completed_at': max(ensure_utc(s.reviewed_at) for s in reviewed),
        }


class LeetCodeAssessmentService:
    """Start, verify and track a LeetCode practice assessment."""
    PROBLEM_COUNT = 3

    def __init__(self, session: Session, client: LeetCodeClient):
        self.session = session
        self.client = client
        self.repo = repositories.LeetCodeRepository(session)

    def start(self, user_id: int, leetcode_username: str) -> models.LeetCodeAssessment:
        """Open a new assessment with a fresh verification code.

        A user may only have one assessment that is not completed.
        """
        username = (leetcode_username or '').strip()
        if not username:
            raise InvalidInputError('leetcode_username is required')
        if len(username) > 15:
            raise InvalidInputError('leetcode_username must be at most 15 characters')
        active = self.repo.active_for_user(user_id)
        if active:
            raise InvalidInputError('You already have an active LeetCode assessment', assessment_id=active.id)
        problems = [
            {**p, 'completed': False, 'completed_at': None}
            for p in self.client.select_problems(self.PROBLEM_COUNT)
        ]
        assessment = models.LeetCodeAssessment(
            user_id=user_id,
            leetcode_username=username,
            verification_code=generate_verification_code(),
            assigned_problems=problems,
        )
        return self.repo.create(assessment)

    def get(self, viewer: models.User, assessment_id: int) -> models.LeetCodeAssessment:
        assessment = self.repo.get(assessment_id)
        if not assessment:
            raise NotFoundError('LeetCode assessment not found')
        ensure_can_view(viewer, assessment.user_id)
        return assessment

    def _owned(self, viewer: models.User, assessment_id: int) -> models.LeetCodeAssessment:
        assessment = self.get(viewer, assessment_id)
        if assessment.user_id != viewer.id:
            raise ForbiddenError('only the owner can update this assessment')
        return assessment

    def list_for_user(self, viewer: models.User, user_id: int) -> List[models.LeetCodeAssessment]:
        ensure_can_view(viewer, user_id)
        return self.repo.list_for_user(user_id)

    def verify(self, viewer: models.User, assessment_id: int) -> models.LeetCodeAssessment:
        """Confirm account ownership by finding the code on the public profile."""
        assessment = self._owned(viewer, assessment_id)
        if assessment.verification_status == 'verified':
            return assessment
        profile = self.client.get_profile(assessment.leetcode_username)
        if profile is None:
            raise InvalidInputError(f'LeetCode user {assessment.leetcode_username} not found')
        if not profile_contains(profile, assessment.verification_code):
            raise InvalidInputError('Verification code not found in your LeetCode profile',
                                    verification_code=assessment.verification_code)
        assessment.verification_status = 'verified'
        assessment.verified_at = models.utcnow()
        assessment.status = 'in_progress'
        return self.repo.save(assessment)

    def check_progress(self, viewer: models.User, assessment_id: int) -> models.LeetCodeAssessment:
        """Mark assigned problems solved from recent accepted submissions."""
        assessment = self._owned(viewer, assessment_id)
        self._require_verified(assessment)
        if assessment.status == 'completed':
            return assessment
        return self._apply_submissions(assessment)

    def check_problem(self, viewer: models.User, assessment_id: int, problem_id: str) -> dict:
        assessment = self._owned(viewer, assessment_id)
        self._require_verified(assessment)
        if not any(p['problem_id'] == problem_id for p in assessment.assigned_problems):
            raise NotFoundError(f'problem {problem_id} is not part of this assessment')
        if assessment.status != 'completed':
            assessment = self._apply_submissions(assessment, only=problem_id)
        problem = next(p for p in assessment.assigned_problems if p['problem_id'] == problem_id)
        return {'assessment': assessment, 'problem': problem}

    @staticmethod
    def _require_verified(assessment: models.LeetCodeAssessment) -> None:
        if assessment.verification_status != 'verified':
            raise InvalidInputError('LeetCode account must be verified first')

    def _apply_submissions(self, assessment: models.LeetCodeAssessment, only: Optional[str] = None):
        submissions = self.client.recent_submissions(assessment.leetcode_username)
        now = models.utcnow()
        problems = [dict(p) for p in assessment.assigned_problems]
        for p in problems:
            if p.get('completed') or (only is not None and p['problem_id'] != only):
                continue
            if any(submission_matches(s, p['title_slug'], p.get('title')) for s in submissions):
                p['completed'] = True
                p['completed_at'] = now.isoformat()
        done = sum(1 for p in problems if p.get('completed'))
        assessment.assigned_problems = problems
        flag_modified(assessment, 'assigned_problems')
        assessment.score = round(done / len(problems) * 100) if problems else 0
        if problems and done == len(problems):
            assessment.status = 'completed'
            assessment.completed_at = now
        return self.repo.save(assessment)


class PuzzleService:
    TYPE = "puzzle-game"

    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ResultRepository(session)

    def submit(self, user_id: int, puzzles: List[dict]) -> models.AssessmentResult:
        try:
            score, rating, details = score_puzzle_run(puzzles)
        except ValueError as e:
            raise InvalidInputError(str(e))
        details['puzzles'] = puzzles
        result = models.AssessmentResult(user_id=user_id, assessment_type=self.TYPE, score=score,
                                         rating=rating, details=details)
        return self.repo.create(result)

    def results(self, user_id: int) -> List[models.AssessmentResult]:
        return self.repo.list_for_user(user_id, self.TYPE)


class CatalogService:
    """Questionnaire catalog administration and scoring."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.AssessmentRepository(session)
        self.result_repo = repositories.ResultRepository(session)

    def list_active(self) -> List[models.Assessment]:
        return self.repo.list(active_only=True)

    def get(self, category: str) -> models.Assessment:
        assessment = self.repo.get_by_category(category)
        if not assessment:
            raise NotFoundError(f'assessment {category} not found')
        return assessment

    @staticmethod
    def _check_questions(questions: List[dict]) -> List[dict]:
        numbers = [q['question_number'] for q in questions]
        if len(numbers) != len(set(numbers)):
            raise InvalidInputError('question numbers must be unique')
        return sorted(questions, key=lambda q: q['question_number'])

    def create(self, title: str, description: str, category: str, duration: int = 30,
               questions: Optional[List[dict]] = None, is_active: bool = True) -> models.Assessment:
        if category not in models.CATALOG_CATEGORIES:
            raise InvalidInputError(f'invalid category: {category}')
        if self.repo.get_by_category(category):
            raise InvalidInputError(f'assessment for {category} already exists')
        if self.repo.get_by_title(title):
            raise InvalidInputError('assessment title already exists')
        assessment = models.Assessment(title=title, description=description, category=category, duration=duration,
                                       questions=self._check_questions(list(questions or [])), is_active=is_active)
        return self.repo.create(assessment)

    def update(self, category: str, changes: dict) -> models.Assessment:
        assessment = self.get(category)
        title = changes.get('title')
        if title and title != assessment.title and self.repo.get_by_title(title):
            raise InvalidInputError('assessment title already exists')
        for key in ('title', 'description', 'duration', 'is_active'):
            if changes.get(key) is not None:
                setattr(assessment, key, changes[key])
        if changes.get('questions') is not None:
            assessment.questions = self._check_questions(list(changes['questions']))
            flag_modified(assessment, 'questions')
        assessment.updated_at = models.utcnow()
        return self.repo.save(assessment)

    def delete(self, category: str) -> None:
        self.repo.delete(self.get(category))

    def submit(self, user_id: int, category: str, answers: List[dict]) -> models.AssessmentResult:
        assessment = self.get(category)
        if not assessment.is_active:
            raise InvalidInputError(f'assessment {category} is not active')
        try:
            score, items = score_questionnaire(assessment.questions, answers)
        except ValueError as e:
            raise InvalidInputError(str(e))
        result = models.AssessmentResult(user_id=user_id, assessment_type=category, score=score,
                                         details={'assessment_id': assessment.id, 'answers': items})
        return self.result_repo.create(result)

    def results(self, user_id: int, category: str) -> List[models.AssessmentResult]:
        return self.result_repo.list_for_user(user_id, category)


class ProgressService:
    """Aggregate the latest score of every assessment type for a user."""
    COMMUNICATION_TYPES = ("listening", "reading", "writing", "speaking")
    DEDICATED_TYPES = ("listening", "reading", "writing", "speaking", "presentation", "leetcode")

    def __init__(self, session: Session):
        self.session = session
        self.result_repo = repositories.ResultRepository(session)

    @classmethod
    def result_key(cls, assessment_type: str) -> str:
        """Progress key for a stored result; questionnaires never shadow a dedicated type."""
        if assessment_type in cls.DEDICATED_TYPES:
            return f"{assessment_type}-questionnaire"
        return assessment_type

    def _latest_scores(self, user_id: int) -> dict:
        out = {}
        for kind in ("listening", "reading"):
            rec = LanguageQuizService(self.session, kind).latest_for_user(user_id)
            if rec:
                out[kind] = (rec.score, rec.completed_at)
        writing = WritingService(self.session).latest_for_user(user_id)
        if writing:
            out['writing'] = (writing.score, writing.completed_at)
        speaking = repositories.SpeakingRepository(self.session).latest_evaluated_for_user(user_id)
        if speaking:
            out['speaking'] = (speaking.score, speaking.evaluated_at)
        presentation = PresentationService(self.session).overall_score(user_id)
        if presentation:
            out['presentation'] = (presentation['score'], presentation['completed_at'])
        leetcode = repositories.LeetCodeRepository(self.session).latest_completed_for_user(user_id)
        if leetcode:
            out['leetcode'] = (float(leetcode.score), leetcode.completed_at)
        for result in reversed(self.result_repo.list_for_user(user_id)):
            # newest last so it wins
            out[self.result_key(result.assessment_type)] = (result.score, result.completed_at)
        return out

    def tracked_types(self) -> List[str]:
        types = list(self.DEDICATED_TYPES) + [PuzzleService.TYPE]
        for a in repositories.AssessmentRepository(self.session).list(active_only=True):
            key = self.result_key(a.category)
            if a.questions and key not in types:
                types.append(key)
        return types

    def summary(self, viewer: models.User, user_id: int) -> dict:
        ensure_can_view(viewer, user_id)
        if not repositories.UserRepository(self.session).get(user_id):
            raise NotFoundError('user not found')
        tracked = self.tracked_types()
        latest = self._latest_scores(user_id)
        completed = [
            {'assessment_type': t, 'score': latest[t][0], 'completed_at': isoformat(latest[t][1])}
            for t in tracked if t in latest
        ]
        comm_scores = {t: latest[t][0] if t in latest else None for t in self.COMMUNICATION_TYPES}
        available = [s for s in comm_scores.values() if s is not None]
        return {
            'user_id': user_id,
            'completed_assessments': completed,
            'total_completed': len(completed),
            'total_available': len(tracked),
            'progress': round(len(completed) / len(tracked) * 100, 1) if tracked else 0.0,
            'communication': {
                'scores': comm_scores,
                'overall_score': round(sum(available) / len(available), 1) if available else 0.0,
                'completion_percentage': round(len(available) / len(self.COMMUNICATION_TYPES) * 100, 1),
            },
        }
