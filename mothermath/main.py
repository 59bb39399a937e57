import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mothermath.api import (
    analyze,
    chatbot,
    curriculum,
    interviews,
    lesson_plan,
    saved_lesson_plans,
    story_lesson_plan,
    student_work,
)
from mothermath.core.config import CORS_ORIGINS
from mothermath.core.database import init_db
from mothermath.core.errors import (
    AIClientError,
    ConfigurationError,
    ExportError,
    InputValidationError,
    MotherOfMathError,
    NotFoundError,
    OperationCancelledError,
    OperationInProgressError,
    PersistenceError,
)

logger = logging.getLogger("mothermath")
logger.setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Mother of Math API", lifespan=lifespan)

# CORS settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# Error mapping
# -------------------------
ERROR_STATUS = [
    (InputValidationError, 400),
    (NotFoundError, 404),
    (OperationInProgressError, 409),
    (OperationCancelledError, 409),
    (PersistenceError, 500),
    (ExportError, 500),
    (AIClientError, 502),
    (ConfigurationError, 503),
]


def status_for(exc: MotherOfMathError) -> int:
    for exc_type, status_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 500


@app.exception_handler(MotherOfMathError)
async def handle_app_error(request: Request, exc: MotherOfMathError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(status_code=status_code, content={"detail": exc.user_message})


# Routers
app.include_router(analyze.router, tags=["analyze"])
app.include_router(lesson_plan.router, prefix="/api/lesson-plans", tags=["lesson_plan"])
app.include_router(story_lesson_plan.router, prefix="/api/story-lesson-plans", tags=["story_lesson_plan"])
app.include_router(saved_lesson_plans.router, prefix="/api/users/me/lesson-plans", tags=["saved_lesson_plans"])
app.include_router(chatbot.router, prefix="/api/chatbot", tags=["chatbot"])
app.include_router(student_work.router, prefix="/api/student-work", tags=["student_work"])
app.include_router(interviews.router, prefix="/api/interviews", tags=["interviews"])
app.include_router(curriculum.router, prefix="/api", tags=["curriculum"])


@app.get("/")
def read_root():
    return {"message": "Mother of Math API is running"}
