"""FastAPI application entry point."""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from almuallim.api.routes import router
from almuallim.config import Settings, get_settings
from almuallim.progress.quiz import QuizXpPolicy, xp_for_every_attempt
from almuallim.progress.store import ProgressStore
from almuallim.services.recitation import RecitationAnalyzer
from almuallim.services.tutor import AITutor
from almuallim.storage.kv import JsonFileStorage, KeyValueStorage

logger = structlog.get_logger()


def configure_logging() -> None:
    """Configure structlog: JSON in production, console output otherwise."""
    is_production = os.getenv("ENV", "development").lower() == "production"

    if is_production:
        renderer = structlog.processors.JSONRenderer()
        level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        level = logging.DEBUG

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _build_recorder(settings: Settings):
    """Microphone recorder from the audio settings, or None when PortAudio is missing."""
    try:
        from almuallim.audio.capture import RecitationRecorder
    except OSError:
        logger.warning("audio_input_unavailable")
        return None
    return RecitationRecorder(
        sample_rate=settings.audio_sample_rate,
        channels=settings.audio_channels,
        chunk_size=settings.audio_chunk_size,
        device=settings.audio_input_device,
    )


def create_app(
    settings: Settings | None = None,
    storage: KeyValueStorage | None = None,
    quiz_xp_policy: QuizXpPolicy = xp_for_every_attempt,
) -> FastAPI:
    """Build the application with its own progress store and AI services.

    Args:
        settings: Application settings (defaults to ``get_settings()``).
        storage: Key-value backend (defaults to JSON files under ``settings.state_dir``).
        quiz_xp_policy: Rule deciding how much XP a finished quiz attempt earns.
    """
    settings = settings or get_settings()
    storage = storage if storage is not None else JsonFileStorage(settings.state_dir)

    app = FastAPI(title="Al-Mu'allim", version="0.1.0")
    app.state.settings = settings
    app.state.store = ProgressStore.load(storage)
    app.state.tutor = AITutor(
        api_key=settings.openai_api_key,
        model=settings.tutor_model,
        temperature=settings.tutor_temperature,
    )
    app.state.recitation = RecitationAnalyzer(
        api_key=settings.openai_api_key,
        model=settings.recitation_model,
    )
    app.state.recorder = _build_recorder(settings)
    app.state.quiz_sessions = {}
    app.state.quiz_xp_policy = quiz_xp_policy
    app.state.upload_delay_seconds = settings.admin_upload_delay_seconds

    _allowed_origins_env = os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in _allowed_origins_env.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


def main() -> None:
    """Run the application."""
    configure_logging()
    settings = get_settings()
    uvicorn.run(
        "almuallim.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
