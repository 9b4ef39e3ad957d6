"""
Chatroom Application Entry Point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
import logging
import uvicorn

from chatroom.core.config import settings
from chatroom.core.database import Base, SessionLocal, engine
from chatroom.core.exceptions import ChatError, InvalidInput
from chatroom.core.middleware import ErrorBoundaryMiddleware, NoStoreMiddleware, RateLimitMiddleware
from chatroom.core.responses import error_response, json_response
from chatroom.ratelimit import build_rate_limiter
from chatroom.router import pages
from chatroom.router.endpoints import api_router
from chatroom.service.reaper import ReaperTask

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_SUPPORTED"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting application...")

    if settings.insecure_key_mode:
        logger.warning(
            "INSECURE MODE: CHAT_ENCRYPTION_KEY is missing or not 64 hex characters. "
            "Messages are encrypted at rest with a built-in fallback key anyone can derive."
        )

    # Check database connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection OK")

        # Auto-create tables for SQLite and debug runs (use Alembic migrations in production)
        if settings.DEBUG or engine.dialect.name == "sqlite":
            from chatroom.model import ChatMessage, ChatPresence  # noqa: F401
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")

    reaper = ReaperTask(
        SessionLocal,
        interval_seconds=settings.REAPER_INTERVAL_SECONDS,
        retention_ms=settings.MESSAGE_RETENTION_MS,
    )
    reaper.start()

    yield

    logger.info("Shutting down...")
    await reaper.stop()
    engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
)
app.state.rate_limiter = build_rate_limiter(settings)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    return error_response(exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return json_response({"error": str(exc.detail), "code": code}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(InvalidInput("Malformed request body."))


# Innermost first: rate limit runs before routing, error boundary wraps it, headers and CORS outermost
app.add_middleware(RateLimitMiddleware)
app.add_middleware(ErrorBoundaryMiddleware)
app.add_middleware(NoStoreMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(api_router)
app.include_router(pages.router)


@app.get("/health")
async def health():
    return {"status": "ok", "insecure_key_mode": settings.insecure_key_mode}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
