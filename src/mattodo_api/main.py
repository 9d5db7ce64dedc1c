import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import DatabaseInitializer, SqliteConnectionFactory
from .errors import DuplicateTaskIdError, TaskValidationError
from .logging_setup import configure_logging
from .routers import tasks as tasks_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "tasks", "description": "Create, read, replace and delete todo tasks."},
]

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging and create the tasks table if it is missing.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    factory = SqliteConnectionFactory.from_connection_string(settings.connection_string)
    DatabaseInitializer(factory).initialize()
    logger.info("Mattodo API started auth=%s", "api-key" if settings.enable_api_key_auth else "off")
    yield


app = FastAPI(
    title="Mattodo API",
    description="Backend API service for managing todo tasks stored in SQLite.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for malformed request bodies.

    Response format:
        {
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": [... pydantic/fastapi error details ...]
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(TaskValidationError)
async def task_validation_exception_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
    """
    Field rule violations: 400 with the list of failures.
    """
    return JSONResponse(
        status_code=400,
        content=[f.model_dump(by_alias=True, mode="json") for f in exc.failures],
    )


@app.exception_handler(DuplicateTaskIdError)
async def duplicate_id_exception_handler(request: Request, exc: DuplicateTaskIdError) -> JSONResponse:
    """
    Identity collision on create: 400 with a single Id failure.
    """
    return JSONResponse(
        status_code=400,
        content=[exc.as_failure().model_dump(by_alias=True, mode="json")],
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy"}


app.include_router(tasks_router.router)
