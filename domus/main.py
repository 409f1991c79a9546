import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from domus.core.bootstrap import bootstrap
from domus.core.config import settings
from domus.core.database import SessionLocal
from domus.core.exceptions import DomusError, ValidationError
from domus.core.logging_config import setup_logging
from domus.core.responses import PasswordSafeJSONResponse
from domus.routers import auth, geography, properties, seeder, user_profile, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR, to_file=not settings.DEBUG)
    if not settings.SECRET_KEY:
        logger.warning("SECRET_KEY is empty; tokens are signed with an insecure key")
    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            bootstrap(db)
        finally:
            db.close()
    logger.info(f"{settings.APP_NAME} started")
    yield
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Real-estate management: properties, users, profiles and geography",
    version="1.0.0",
    lifespan=lifespan,
    default_response_class=PasswordSafeJSONResponse,
)

# Uploaded assets when STORAGE_BACKEND=local
os.makedirs(settings.MEDIA_ROOT, exist_ok=True)
app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT), name="media")


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response


# ─── Error mapping ────────────────────────────────────────────────────────────

def _error_body(status_code: int, message: str, errors=None) -> dict:
    body = {"statusCode": status_code, "message": message}
    if errors:
        body["errors"] = errors
    return body


@app.exception_handler(DomusError)
async def domus_error_handler(request: Request, exc: DomusError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return PasswordSafeJSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.message, errors),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return PasswordSafeJSONResponse(status_code=400, content=_error_body(400, "Validation failed", errors))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return PasswordSafeJSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return PasswordSafeJSONResponse(status_code=500, content=_error_body(500, "Internal server error"))


# ─── Routers ──────────────────────────────────────────────────────────────────

app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(user_profile.router, prefix="/api/v1")
app.include_router(geography.router, prefix="/api/v1")
app.include_router(properties.router, prefix="/api/v1")
app.include_router(seeder.router, prefix="/api/v1")


@app.get("/")
def root():
    return {
        "message": settings.APP_NAME,
        "version": "1.0.0",
        "status": "active",
        "documentation": "/docs"
    }


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "timestamp": datetime.now(timezone.utc)
    }
