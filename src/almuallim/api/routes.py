"""REST API routes exposing the progress store, quizzes and AI tutor."""

import asyncio
import uuid

import structlog
from fastapi import APIRouter, HTTPException, Request

from almuallim.api.schemas import (
    LoginRequest,
    NewCourseRequest,
    OptionRequest,
    QuizSessionResponse,
    RecitationRequest,
    RecitationResponse,
    TutorRequest,
    TutorResponse,
    XpRequest,
)
from almuallim.catalog import build_course, stub_login
from almuallim.errors import InvalidArgument
from almuallim.models.user import User
from almuallim.progress.quiz import QuizSession
from almuallim.progress.store import ProgressStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

MAX_QUIZ_SESSIONS = 32


def _store(request: Request) -> ProgressStore:
    return request.app.state.store


def _require_user(result: User | None) -> dict:
    if result is None:
        raise HTTPException(status_code=409, detail="No active user")
    return result.to_wire()


def _quiz_session(request: Request, session_id: str) -> QuizSession:
    session = request.app.state.quiz_sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Quiz session not found")
    return session


def _session_response(session_id: str, session: QuizSession) -> QuizSessionResponse:
    return QuizSessionResponse(
        session_id=session_id, quiz_id=session.quiz.id, state=session.snapshot()
    )


def _register_session(sessions: dict[str, QuizSession], session: QuizSession) -> str:
    """Keep one live session per user and quiz, and at most ``MAX_QUIZ_SESSIONS`` overall."""
    for session_id, existing in list(sessions.items()):
        if existing.owner_id == session.owner_id and existing.quiz.id == session.quiz.id:
            del sessions[session_id]
    while len(sessions) >= MAX_QUIZ_SESSIONS:
        evicted = next(iter(sessions))
        del sessions[evicted]
        logger.info("quiz_session_evicted", session_id=evicted)
    session_id = str(uuid.uuid4())
    sessions[session_id] = session
    return session_id


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> dict:
    """Sign in with the demo credentials stub."""
    user = stub_login(body.email, body.password)
    _store(request).set_user(user)
    request.app.state.quiz_sessions.clear()
    return user.to_wire()


@router.post("/logout")
async def logout(request: Request) -> dict:
    _store(request).set_user(None)
    request.app.state.quiz_sessions.clear()
    return {"status": "ok"}


@router.get("/user")
async def get_user(request: Request) -> dict | None:
    user = _store(request).user
    return user.to_wire() if user else None


@router.get("/profile")
async def get_profile(request: Request) -> dict:
    """Dashboard view: user, overall progress, level progress, badges, bookmarks."""
    store = _store(request)
    user = store.user
    if user is None:
        raise HTTPException(status_code=409, detail="No active user")
    return {
        "user": user.to_wire(),
        "progressPercentage": store.progress_percentage(),
        "levelProgress": store.level_progress(),
        "badges": [
            {"badge": status.badge.to_wire(), "earned": status.earned}
            for status in store.badge_board()
        ],
        "bookmarkedLessons": [lesson.to_wire() for lesson in store.bookmarked_lessons()],
    }


@router.get("/progress")
async def get_progress(request: Request) -> dict:
    store = _store(request)
    return {
        "progressPercentage": store.progress_percentage(),
        "levelProgress": store.level_progress(),
    }


@router.get("/courses")
async def list_courses(request: Request) -> list[dict]:
    return [course.to_wire() for course in _store(request).courses]


@router.get("/courses/{course_id}")
async def get_course(course_id: str, request: Request) -> dict:
    course = _store(request).find_course(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return course.to_wire()


@router.post("/courses", status_code=201)
async def add_course(body: NewCourseRequest, request: Request) -> dict:
    """Admin upload: waits for the simulated media upload, then appends the course."""
    store = _store(request)
    if store.user is None:
        raise HTTPException(status_code=409, detail="No active user")
    if not store.user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")

    delay = request.app.state.upload_delay_seconds
    if delay > 0:
        await asyncio.sleep(delay)

    course = build_course(body.title, body.description, body.level, body.category)
    try:
        store.add_course(course)
    except InvalidArgument as e:
        raise HTTPException(status_code=422, detail=str(e))
    return course.to_wire()


@router.get("/lessons/{lesson_id}")
async def get_lesson(lesson_id: str, request: Request) -> dict:
    lesson = _store(request).find_lesson(lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson.to_wire()


@router.post("/lessons/{lesson_id}/complete")
async def toggle_completion(lesson_id: str, request: Request) -> dict:
    return _require_user(_store(request).toggle_lesson_completion(lesson_id))


@router.post("/lessons/{lesson_id}/bookmark")
async def toggle_bookmark(lesson_id: str, request: Request) -> dict:
    return _require_user(_store(request).toggle_bookmark(lesson_id))


@router.post("/xp")
async def add_xp(body: XpRequest, request: Request) -> dict:
    return _require_user(_store(request).add_xp(body.amount))


@router.post("/quiz/{course_id}/sessions", status_code=201)
async def start_quiz(course_id: str, request: Request) -> QuizSessionResponse:
    """Start a quiz attempt; finishing it awards XP through the store."""
    store = _store(request)
    course = store.find_course(course_id)
    if course is None or course.quiz is None:
        raise HTTPException(status_code=404, detail="Quiz not found")

    policy = request.app.state.quiz_xp_policy
    owner_id = store.user.id if store.user is not None else None

    def on_complete(score: int, attempt: int) -> None:
        # XP only goes to the user who started the quiz.
        if owner_id is not None:
            store.quiz_completed(score, attempt, policy, user_id=owner_id)

    try:
        session = QuizSession(course.quiz, on_complete=on_complete, owner_id=owner_id)
    except InvalidArgument as e:
        raise HTTPException(status_code=422, detail=str(e))
    session_id = _register_session(request.app.state.quiz_sessions, session)
    logger.info("quiz_started", session_id=session_id, quiz_id=course.quiz.id, owner_id=owner_id)
    return _session_response(session_id, session)


@router.get("/quiz/sessions/{session_id}")
async def get_quiz(session_id: str, request: Request) -> QuizSessionResponse:
    return _session_response(session_id, _quiz_session(request, session_id))


@router.post("/quiz/sessions/{session_id}/select")
async def select_option(
    session_id: str, body: OptionRequest, request: Request
) -> QuizSessionResponse:
    session = _quiz_session(request, session_id)
    try:
        session.select_option(body.index)
    except InvalidArgument as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_response(session_id, session)


@router.post("/quiz/sessions/{session_id}/submit")
async def submit_answer(session_id: str, request: Request) -> QuizSessionResponse:
    session = _quiz_session(request, session_id)
    session.submit()
    return _session_response(session_id, session)


@router.post("/quiz/sessions/{session_id}/advance")
async def advance_quiz(session_id: str, request: Request) -> QuizSessionResponse:
    session = _quiz_session(request, session_id)
    session.advance()
    return _session_response(session_id, session)


@router.post("/quiz/sessions/{session_id}/restart")
async def restart_quiz(session_id: str, request: Request) -> QuizSessionResponse:
    session = _quiz_session(request, session_id)
    session.restart()
    return _session_response(session_id, session)


@router.post("/tutor/ask")
async def ask_tutor(body: TutorRequest, request: Request) -> TutorResponse:
    reply = await request.app.state.tutor.ask(body.prompt)
    return TutorResponse(reply=reply)


@router.post("/recitation/analyze")
async def analyze_recitation(body: RecitationRequest, request: Request) -> RecitationResponse:
    feedback = await request.app.state.recitation.analyze(body.audio, body.format)
    return RecitationResponse(feedback=feedback)


def _recorder(request: Request):
    recorder = request.app.state.recorder
    if recorder is None:
        raise HTTPException(status_code=503, detail="Audio input unavailable")
    return recorder


@router.post("/recitation/record/start")
async def start_recording(request: Request) -> dict:
    """Start a microphone take on the server's input device."""
    _recorder(request).start()
    return {"status": "recording"}


@router.post("/recitation/record/stop")
async def stop_recording(request: Request) -> RecitationResponse:
    """Stop the current take and send it for recitation feedback."""
    recorder = _recorder(request)
    if not recorder.is_recording:
        raise HTTPException(status_code=409, detail="Not recording")
    payload = recorder.stop()
    feedback = await request.app.state.recitation.analyze(payload, "wav")
    return RecitationResponse(feedback=feedback)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
