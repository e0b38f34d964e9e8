"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses. Every error is rendered as
`{"success": false, "message": ...}`; successful bodies carry
`"success": true`.

Endpoint groups:
- /auth, /users, /supervisors: accounts and roles
- /listening, /reading, /writing: language assessments with a weekly cooldown
- /speaking, /presentation: video submissions and supervisor review
- /leetcode: LeetCode practice assessments
- /puzzle, /assessments: puzzle game and questionnaire catalog
- /progress: per-user score aggregation
"""

from fastapi import APIRouter, FastAPI, Depends, UploadFile, File, HTTPException, Form, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlmodel import Session
from typing import Optional
import json
import logging
import os
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services, models
from .auth import get_current_user, require_admin, require_reviewer
from .config import settings
from .errors import ServiceError
from .schemas import (
    AssessmentIn, AssessmentUpdate, LanguageQuizIn, LeetCodeStartIn, LoginIn, PresentationQuestionIn,
    PresentationReviewIn, ProfileUpdate, PuzzleSubmission, QuestionnaireSubmission, RegisterIn,
    SpeakingEvaluationIn, SupervisorIn, SupervisorUpdate, WritingIn,
)
from .utils import storage
from .utils.cooldown import isoformat
from .utils.leetcode import LeetCodeClient
from .utils.rate_limit import SlidingWindowLimiter

app = FastAPI(title="EduSoft Skills Assessment API")
logger = logging.getLogger("edusoft.api")
if not logger.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
_login_limiter = SlidingWindowLimiter(settings.LOGIN_RATE_LIMIT_PER_MIN, 60)
_leetcode_limiter = SlidingWindowLimiter(settings.LEETCODE_RATE_LIMIT_PER_MIN, 60)

VIDEO_MEDIA_TYPES = {".mp4": "video/mp4", ".mov": "video/quicktime", ".webm": "video/webm"}

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    log_it = request.url.path != "/health"
    try:
        response = await call_next(request)
    except Exception:
        if log_it:
            logger.exception("request_failed %s", json.dumps({
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
                "client": request.client.host if request.client else "unknown",
            }, ensure_ascii=True))
        raise
    response.headers["X-Request-ID"] = req_id
    if log_it:
        logger.info("request_done %s", json.dumps({
            "request_id": req_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            "client": request.client.host if request.client else "unknown",
        }, ensure_ascii=True))
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code,
                        content=jsonable_encoder({"success": False, "message": exc.message, **exc.extra}))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "invalid request"))
    return JSONResponse(status_code=400, content={"success": False, "message": message,
                                                  "errors": jsonable_encoder(errors)})


def _enforce_rate_limit(limiter: SlidingWindowLimiter, key: str) -> None:
    allowed, retry_after = limiter.hit(key)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"rate limit exceeded; retry after {retry_after}s",
            headers={"Retry-After": str(retry_after)},
        )


def _read_video(file: UploadFile) -> bytes:
    storage.validate_filename(file.filename)
    return storage.read_limited(file.file, settings.MAX_VIDEO_UPLOAD_BYTES)


def _video_response(path, filename: str) -> FileResponse:
    return FileResponse(path, media_type=VIDEO_MEDIA_TYPES.get(path.suffix, "application/octet-stream"), filename=filename)


def get_leetcode_client() -> LeetCodeClient:
    """Dependency returning the LeetCode API client (overridden in tests)."""
    return LeetCodeClient(settings.LEETCODE_API_URL, timeout=settings.LEETCODE_TIMEOUT_SECONDS)


# serializers

def _user_out(u: models.User) -> dict:
    return {'id': u.id, 'username': u.username, 'email': u.email, 'full_name': u.full_name,
            'role': u.role, 'created_at': isoformat(u.created_at)}


def _quiz_out(r) -> dict:
    return {
        'id': r.id, 'user_id': r.user_id, 'level': r.level, 'language': r.language, 'score': r.score,
        'correct_answers': r.correct_answers, 'total_questions': r.total_questions, 'answers': r.answers,
        'feedback': r.feedback, 'time_spent': r.time_spent, 'completed_at': isoformat(r.completed_at),
        'next_available_date': isoformat(r.next_available_date),
    }


def _writing_out(r: models.WritingAssessment) -> dict:
    return {
        'id': r.id, 'user_id': r.user_id, 'level': r.level, 'language': r.language, 'prompt': r.prompt,
        'response': r.response, 'word_count': r.word_count, 'score': r.score, 'criteria': r.criteria,
        'feedback': r.feedback, 'completed_at': isoformat(r.completed_at),
        'next_available_date': isoformat(r.next_available_date),
    }


def _speaking_out(s: models.SpeakingSubmission, username: Optional[str] = None) -> dict:
    out = {
        'id': s.id, 'user_id': s.user_id, 'level': s.level, 'language': s.language, 'task_id': s.task_id,
        'prompt': s.prompt, 'status': s.status, 'score': s.score, 'criteria': s.criteria, 'feedback': s.feedback,
        'video_filename': s.video_filename, 'video_size': s.video_size, 'video_url': f'/speaking/{s.id}/video',
        'submitted_at': isoformat(s.submitted_at), 'evaluated_at': isoformat(s.evaluated_at),
        'evaluated_by': s.evaluated_by,
    }
    if username is not None:
        out['username'] = username
    return out


def _question_out(q: models.PresentationQuestion) -> dict:
    return {'id': q.id, 'question_number': q.question_number, 'question': q.question,
            'description': q.description, 'preparation_time': q.preparation_time,
            'recording_time': q.recording_time}


def _presentation_out(s: models.PresentationSubmission) -> dict:
    return {
        'id': s.id, 'user_id': s.user_id, 'question_number': s.question_number,
        'video_filename': s.video_filename, 'video_size': s.video_size,
        'video_url': f'/presentation/submissions/{s.id}/video', 'submitted_at': isoformat(s.submitted_at),
        'score': s.score, 'feedback': s.feedback, 'reviewed_by': s.reviewed_by,
        'reviewed_at': isoformat(s.reviewed_at), 'reviewed': s.reviewed_at is not None,
    }


def _leetcode_out(a: models.LeetCodeAssessment) -> dict:
    return {
        'id': a.id, 'user_id': a.user_id, 'leetcode_username': a.leetcode_username,
        'verification_code': a.verification_code, 'verification_method': a.verification_method,
        'verification_status': a.verification_status, 'verified_at': isoformat(a.verified_at),
        'status': a.status, 'assigned_problems': a.assigned_problems, 'score': a.score,
        'started_at': isoformat(a.started_at), 'completed_at': isoformat(a.completed_at),
    }


def _result_out(r: models.AssessmentResult) -> dict:
    return {'id': r.id, 'user_id': r.user_id, 'assessment_type': r.assessment_type, 'score': r.score,
            'rating': r.rating, 'details': r.details, 'completed_at': isoformat(r.completed_at)}


def _catalog_out(a: models.Assessment, include_questions: bool = True) -> dict:
    out = {'id': a.id, 'title': a.title, 'description': a.description, 'category': a.category,
           'duration': a.duration, 'is_active': a.is_active, 'question_count': len(a.questions or [])}
    if include_questions:
        out['questions'] = a.questions
    return out


# auth and users

@app.post('/auth/register', status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Register a new student account."""
    user = services.AuthService(db).register(payload.username, payload.password,
                                             email=payload.email, full_name=payload.full_name)
    return {'success': True, 'user': _user_out(user)}


@app.post('/auth/login')
def login(payload: LoginIn, request: Request, db: Session = Depends(get_session)):
    """Authenticate and return a JWT carrying `user_id`, `username` and `role`.

    Attempts are throttled per client address and username.
    """
    client = request.client.host if request.client else 'unknown'
    _enforce_rate_limit(_login_limiter, f'{client}:{payload.username}')
    token = services.AuthService(db).authenticate(payload.username, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return {'success': True, **token}


@app.get('/users/me')
def read_me(user: models.User = Depends(get_current_user)):
    return {'success': True, 'user': _user_out(user)}


@app.put('/users/me')
def update_me(payload: ProfileUpdate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    updated = services.UserService(db).update_profile(user.id, email=payload.email, full_name=payload.full_name)
    return {'success': True, 'user': _user_out(updated)}


@app.get('/users')
def list_users(role: Optional[str] = None, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    users = services.UserService(db).list_users(role)
    return {'success': True, 'users': [_user_out(u) for u in users]}


@app.delete('/users/{user_id}')
def delete_user(user_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    services.UserService(db).delete_user(admin, user_id)
    return {'success': True, 'message': 'user deleted'}


# supervisors

@app.post('/supervisors', status_code=201)
def create_supervisor(payload: SupervisorIn, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Create a supervisor account (admin only)."""
    sup = services.SupervisorService(db).create(payload.username, payload.email, payload.password, payload.full_name)
    return {'success': True, 'supervisor': _user_out(sup)}


@app.get('/supervisors')
def list_supervisors(db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    return {'success': True, 'supervisors': [_user_out(s) for s in services.SupervisorService(db).list()]}


@app.get('/supervisors/{supervisor_id}')
def get_supervisor(supervisor_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    return {'success': True, 'supervisor': _user_out(services.SupervisorService(db).get(supervisor_id))}


@app.put('/supervisors/{supervisor_id}')
def update_supervisor(supervisor_id: int, payload: SupervisorUpdate, db: Session = Depends(get_session),
                      admin: models.User = Depends(require_admin)):
    sup = services.SupervisorService(db).update(supervisor_id, email=payload.email, full_name=payload.full_name,
                                                password=payload.password)
    return {'success': True, 'supervisor': _user_out(sup)}


@app.delete('/supervisors/{supervisor_id}')
def delete_supervisor(supervisor_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    services.SupervisorService(db).delete(supervisor_id)
    return {'success': True, 'message': 'supervisor deleted'}


# listening / reading

def _quiz_router(kind: str) -> APIRouter:
    """Routes shared by the listening and reading quizzes."""
    router = APIRouter(prefix=f'/{kind}', tags=[kind])

    @router.post('/submit', status_code=201)
    def submit(payload: LanguageQuizIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        """Store a finished quiz; rejected with 403 while the cooldown is running."""
        record = services.LanguageQuizService(db, kind).submit(user.id, **payload.model_dump())
        return {'success': True, 'message': f'{kind} assessment submitted', 'assessment': _quiz_out(record)}

    @router.get('/availability/{level}/{language}')
    def availability(level: str, language: str, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        return {'success': True, **services.LanguageQuizService(db, kind).availability(user.id, level, language)}

    @router.get('/history')
    def my_history(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        records = services.LanguageQuizService(db, kind).history(user, user.id)
        return {'success': True, 'assessments': [_quiz_out(r) for r in records]}

    @router.get('/history/{user_id}')
    def user_history(user_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        records = services.LanguageQuizService(db, kind).history(user, user_id)
        return {'success': True, 'assessments': [_quiz_out(r) for r in records]}

    @router.get('/statistics')
    def my_statistics(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        return {'success': True, 'statistics': services.LanguageQuizService(db, kind).statistics(user, user.id)}

    @router.get('/statistics/{user_id}')
    def user_statistics(user_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        return {'success': True, 'statistics': services.LanguageQuizService(db, kind).statistics(user, user_id)}

    @router.get('/{assessment_id}')
    def get_one(assessment_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        record = services.LanguageQuizService(db, kind).get(user, assessment_id)
        return {'success': True, 'assessment': _quiz_out(record)}

    return router


app.include_router(_quiz_router('listening'))
app.include_router(_quiz_router('reading'))


# writing

@app.post('/writing/submit', status_code=201)
def submit_writing(payload: WritingIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Store a scored writing task; the score is the criteria mean when criteria are sent."""
    data = payload.model_dump()
    record = services.WritingService(db).submit(user.id, **data)
    return {'success': True, 'message': 'writing assessment submitted', 'assessment': _writing_out(record)}


@app.get('/writing/availability/{level}/{language}')
def writing_availability(level: str, language: str, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, **services.WritingService(db).availability(user.id, level, language)}


@app.get('/writing/history')
def writing_history(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    records = services.WritingService(db).history(user, user.id)
    return {'success': True, 'assessments': [_writing_out(r) for r in records]}


@app.get('/writing/{assessment_id}')
def get_writing(assessment_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, 'assessment': _writing_out(services.WritingService(db).get(user, assessment_id))}


# speaking

@app.post('/speaking/submit', status_code=201)
def submit_speaking(
    level: str = Form(...),
    language: str = Form(...),
    task_id: str = Form(...),
    prompt: Optional[str] = Form(default=None),
    file: UploadFile = File(...),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Upload a speaking video for supervisor review."""
    payload = _read_video(file)
    sub = services.SpeakingService(db).submit(user.id, level, language, task_id, prompt, payload, file.filename)
    return {'success': True, 'message': 'speaking submission received', 'submission': _speaking_out(sub)}


@app.get('/speaking/availability/{level}/{language}')
def speaking_availability(level: str, language: str, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, **services.SpeakingService(db).availability(user.id, level, language)}


@app.get('/speaking/history')
def speaking_history(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    subs = services.SpeakingService(db).history(user, user.id)
    return {'success': True, 'submissions': [_speaking_out(s) for s in subs]}


@app.get('/speaking/pending')
def speaking_pending(db: Session = Depends(get_session), reviewer: models.User = Depends(require_reviewer)):
    """Submissions waiting for a supervisor, oldest first."""
    items = services.SpeakingService(db).list_pending()
    return {'success': True, 'submissions': [_speaking_out(s, username) for s, username in items]}


@app.get('/speaking/{submission_id}')
def get_speaking(submission_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, 'submission': _speaking_out(services.SpeakingService(db).get(user, submission_id))}


@app.get('/speaking/{submission_id}/video')
def speaking_video(submission_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    path, filename = services.SpeakingService(db).video_file(user, submission_id)
    return _video_response(path, filename)


@app.post('/speaking/{submission_id}/evaluate')
def evaluate_speaking(submission_id: int, payload: SpeakingEvaluationIn, db: Session = Depends(get_session),
                      reviewer: models.User = Depends(require_reviewer)):
    """Record a supervisor evaluation (or rejection) of a speaking submission."""
    sub = services.SpeakingService(db).evaluate(
        reviewer, submission_id, status=payload.status, score=payload.score, feedback=payload.feedback,
        criteria=[c.model_dump() for c in payload.criteria],
    )
    return {'success': True, 'message': f'submission {sub.status}', 'submission': _speaking_out(sub)}


# presentation

@app.get('/presentation/questions')
def list_presentation_questions(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    questions = services.PresentationService(db).list_questions()
    return {'success': True, 'questions': [_question_out(q) for q in questions]}


@app.get('/presentation/questions/{question_number}')
def get_presentation_question(question_number: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, 'question': _question_out(services.PresentationService(db).get_question(question_number))}


@app.post('/presentation/questions', status_code=201)
def create_presentation_question(payload: PresentationQuestionIn, db: Session = Depends(get_session),
                                 admin: models.User = Depends(require_admin)):
    q = services.PresentationService(db).create_question(**payload.model_dump())
    return {'success': True, 'question': _question_out(q)}


@app.post('/presentation/questions/import')
def import_presentation_questions(file: UploadFile = File(...), db: Session = Depends(get_session),
                                  admin: models.User = Depends(require_admin)):
    """Import presentation questions from a JSON, CSV, TXT or DOCX file."""
    storage.validate_filename(file.filename)
    content = storage.read_limited(file.file, settings.MAX_IMPORT_BYTES)
    result = services.PresentationService(db).import_questions(content, file.filename)
    return {'success': True, **result}


@app.post('/presentation/submit', status_code=201)
def submit_presentation(
    question_number: int = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Upload the recorded answer to one presentation question."""
    payload = _read_video(file)
    sub = services.PresentationService(db).submit(user.id, question_number, payload, file.filename)
    return {'success': True, 'message': 'presentation submitted', 'submission': _presentation_out(sub)}


@app.get('/presentation/submissions')
def my_presentation_submissions(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    subs = services.PresentationService(db).list_for_user(user.id)
    return {'success': True, 'submissions': [_presentation_out(s) for s in subs]}


@app.get('/presentation/completion')
def presentation_completion(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, **services.PresentationService(db).completion(user.id)}


@app.get('/presentation/submissions/pending')
def pending_presentations(db: Session = Depends(get_session), reviewer: models.User = Depends(require_reviewer)):
    items = services.PresentationService(db).list_pending()
    out = []
    for sub, username, question in items:
        out.append({**_presentation_out(sub), 'username': username, 'question': question})
    return {'success': True, 'submissions': out}


@app.get('/presentation/submissions/{submission_id}/video')
def presentation_video(submission_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    path, filename = services.PresentationService(db).video_file(user, submission_id)
    return _video_response(path, filename)


@app.delete('/presentation/submissions/{submission_id}')
def delete_presentation_submission(submission_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Delete an unreviewed submission together with its video."""
    services.PresentationService(db).delete_submission(user, submission_id)
    return {'success': True, 'message': 'submission deleted'}


@app.post('/presentation/submissions/{submission_id}/review')
def review_presentation(submission_id: int, payload: PresentationReviewIn, db: Session = Depends(get_session),
                        reviewer: models.User = Depends(require_reviewer)):
    sub = services.PresentationService(db).review(reviewer, submission_id, payload.score, payload.feedback)
    return {'success': True, 'message': 'submission reviewed', 'submission': _presentation_out(sub)}


# leetcode

@app.post('/leetcode/start', status_code=201)
def start_leetcode(payload: LeetCodeStartIn, db: Session = Depends(get_session),
                   user: models.User = Depends(get_current_user),
                   client: LeetCodeClient = Depends(get_leetcode_client)):
    """Open a LeetCode assessment and return the profile verification code."""
    assessment = services.LeetCodeAssessmentService(db, client).start(user.id, payload.leetcode_username)
    return {
        'success': True,
        'assessment': _leetcode_out(assessment),
        'instructions': (f'Add the code {assessment.verification_code} to the "About Me" section of your '
                         f'LeetCode profile, then call /leetcode/{assessment.id}/verify.'),
    }


@app.get('/leetcode/user')
def my_leetcode_assessments(db: Session = Depends(get_session), user: models.User = Depends(get_current_user),
                            client: LeetCodeClient = Depends(get_leetcode_client)):
    items = services.LeetCodeAssessmentService(db, client).list_for_user(user, user.id)
    return {'success': True, 'assessments': [_leetcode_out(a) for a in items]}


@app.get('/leetcode/user/{user_id}')
def user_leetcode_assessments(user_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user),
                              client: LeetCodeClient = Depends(get_leetcode_client)):
    items = services.LeetCodeAssessmentService(db, client).list_for_user(user, user_id)
    return {'success': True, 'assessments': [_leetcode_out(a) for a in items]}


@app.get('/leetcode/{assessment_id}')
def get_leetcode(assessment_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user),
                 client: LeetCodeClient = Depends(get_leetcode_client)):
    return {'success': True, 'assessment': _leetcode_out(services.LeetCodeAssessmentService(db, client).get(user, assessment_id))}


@app.post('/leetcode/{assessment_id}/verify')
def verify_leetcode(assessment_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user),
                    client: LeetCodeClient = Depends(get_leetcode_client)):
    assessment = services.LeetCodeAssessmentService(db, client).verify(user, assessment_id)
    return {'success': True, 'message': 'LeetCode account verified', 'assessment': _leetcode_out(assessment)}


@app.post('/leetcode/{assessment_id}/progress')
def leetcode_progress(assessment_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user),
                      client: LeetCodeClient = Depends(get_leetcode_client)):
    """Re-check recent accepted submissions and update the score."""
    _enforce_rate_limit(_leetcode_limiter, f'leetcode:{user.id}')
    assessment = services.LeetCodeAssessmentService(db, client).check_progress(user, assessment_id)
    return {'success': True, 'assessment': _leetcode_out(assessment)}


@app.post('/leetcode/{assessment_id}/problems/{problem_id}/check')
def leetcode_check_problem(assessment_id: int, problem_id: str, db: Session = Depends(get_session),
                           user: models.User = Depends(get_current_user),
                           client: LeetCodeClient = Depends(get_leetcode_client)):
    _enforce_rate_limit(_leetcode_limiter, f'leetcode:{user.id}')
    result = services.LeetCodeAssessmentService(db, client).check_problem(user, assessment_id, problem_id)
    return {'success': True, 'problem': result['problem'], 'assessment': _leetcode_out(result['assessment'])}


# puzzle game

@app.post('/puzzle/submit', status_code=201)
def submit_puzzle(payload: PuzzleSubmission, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Score a puzzle-game session from moves, times and completion flags."""
    result = services.PuzzleService(db).submit(user.id, [p.model_dump() for p in payload.puzzles])
    return {'success': True, 'result': _result_out(result)}


@app.get('/puzzle/results')
def puzzle_results(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, 'results': [_result_out(r) for r in services.PuzzleService(db).results(user.id)]}


# questionnaire catalog

@app.get('/assessments')
def list_assessments(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    items = services.CatalogService(db).list_active()
    return {'success': True, 'assessments': [_catalog_out(a, include_questions=False) for a in items]}


@app.post('/assessments', status_code=201)
def create_assessment(payload: AssessmentIn, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    assessment = services.CatalogService(db).create(**payload.model_dump())
    return {'success': True, 'assessment': _catalog_out(assessment)}


@app.get('/assessments/{category}')
def get_assessment(category: str, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, 'assessment': _catalog_out(services.CatalogService(db).get(category))}


@app.put('/assessments/{category}')
def update_assessment(category: str, payload: AssessmentUpdate, db: Session = Depends(get_session),
                      admin: models.User = Depends(require_admin)):
    changes = payload.model_dump(exclude_unset=True)
    assessment = services.CatalogService(db).update(category, changes)
    return {'success': True, 'assessment': _catalog_out(assessment)}


@app.delete('/assessments/{category}')
def delete_assessment(category: str, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    services.CatalogService(db).delete(category)
    return {'success': True, 'message': 'assessment deleted'}


@app.post('/assessments/{category}/submit', status_code=201)
def submit_assessment(category: str, payload: QuestionnaireSubmission, db: Session = Depends(get_session),
                      user: models.User = Depends(get_current_user)):
    """Score questionnaire answers as a percentage of the best attainable total."""
    answers = [a.model_dump() for a in payload.answers]
    result = services.CatalogService(db).submit(user.id, category, answers)
    return {'success': True, 'result': _result_out(result)}


@app.get('/assessments/{category}/results')
def assessment_results(category: str, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    results = services.CatalogService(db).results(user.id, category)
    return {'success': True, 'results': [_result_out(r) for r in results]}


# progress

@app.get('/progress/me')
def my_progress(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, **services.ProgressService(db).summary(user, user.id)}


@app.get('/progress/{user_id}')
def user_progress(user_id: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return {'success': True, **services.ProgressService(db).summary(user, user_id)}


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
