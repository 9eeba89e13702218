"""
Education Portal AI API - Main Application
AI mentor chat, test generation and progress tracking
FILE: edu_portal/main.py
"""
from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edu_portal.core.config import settings
from edu_portal.core.exceptions import PortalError
from edu_portal.db.mongodb import connect_to_mongo, close_mongo_connection
from edu_portal.services.llm_client import ProviderRegistry
from edu_portal.api.health import API_VERSION, router as health_router
from edu_portal.api.mentor import router as mentor_router
from edu_portal.api.quiz import router as quiz_router
from edu_portal.api.progress import router as progress_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Education Portal AI API...")

    await connect_to_mongo()

    # Credentials are read once here; handlers get the registry from app.state
    app.state.registry = ProviderRegistry.from_settings(settings)
    configured = [p.name for p in app.state.registry.eligible()]
    if configured:
        logger.info(f"✓ AI provider fallback order: {' -> '.join(configured)}")
    else:
        logger.warning("⚠ No AI provider configured, generation will answer 503")

    yield

    logger.info("🛑 Shutting down Education Portal AI API...")
    await close_mongo_connection()


app = FastAPI(
    title="Education Portal AI API",
    description="""
    AI core of the education portal.

    - **AI Mentor** `/api/ai-mentor`: chat grounded on training material and syllabus
    - **Tests** `/api/generate-test`: chapter tests from study material, saved as quizzes
    - **Progress** `/api/progress`, `/api/quiz-attempts`: chapter progress and resumable attempts
    - Providers are tried in a fixed order: Hugging Face, Gemini, Lovable, OpenAI, Anthropic
    """,
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_and_time_requests(request: Request, call_next):
    """Log each request with its status and duration, and expose the duration as a header"""
    started = time.perf_counter()
    logger.info(f"📨 {request.method} {request.url.path}")

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Process-Time-Ms"] = str(elapsed_ms)
    logger.info(f"📤 {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms} ms)")
    return response


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Domain errors become {error, code} with the error's own status"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(health_router)
app.include_router(mentor_router, prefix="/api", tags=["Mentor"])
app.include_router(quiz_router, prefix="/api", tags=["Tests"])
app.include_router(progress_router, prefix="/api", tags=["Progress"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("edu_portal.main:app", host="0.0.0.0", port=8080, log_level="info")
