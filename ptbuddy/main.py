from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from ptbuddy.audit import log_event
from ptbuddy.database import session_scope
from ptbuddy.migrations import run_migrations
from ptbuddy.models import Trainer
from ptbuddy.observability import configure_logging, request_logging_middleware
from ptbuddy.routers import (
    api_v1,
    appointments,
    auth,
    community,
    health,
    member_portal,
    members,
    memberships,
    password_reset,
    supplements,
    workouts,
)
from ptbuddy.security import hash_password
from ptbuddy.settings import get_settings

settings = get_settings()
logger = configure_logging()

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.redoc_enabled else None,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age_seconds,
    same_site=settings.session_same_site,
    https_only=settings.session_https_only,
)

app.include_router(auth.router)
app.include_router(password_reset.router)
app.include_router(members.router)
app.include_router(memberships.router)
app.include_router(appointments.router)
app.include_router(member_portal.router)
app.include_router(community.router)
app.include_router(supplements.router)
app.include_router(workouts.router)
app.include_router(api_v1.router)
app.include_router(health.router)


def ensure_admin_user() -> None:
    admin_email = settings.admin_email
    admin_password = settings.admin_password
    if not admin_email or not admin_password:
        return

    with session_scope() as db:
        admin = db.query(Trainer).filter(Trainer.email == admin_email).first()
        if admin:
            if admin.role != "admin":
                admin.role = "admin"
                db.commit()
            return

        user = Trainer(
            email=admin_email,
            password=hash_password(admin_password),
            name=settings.admin_name,
            role="admin",
        )
        db.add(user)
        db.commit()
        log_event(
            db,
            "ADMIN_BOOTSTRAP_CREATED",
            actor=user,
            details="Admin trainer created from environment configuration.",
        )


def validate_runtime_configuration() -> None:
    if not settings.smtp_enabled:
        return

    missing = []
    if not settings.smtp_host:
        missing.append("SMTP_HOST")
    if not settings.smtp_sender_email:
        missing.append("SMTP_SENDER_EMAIL")
    if not settings.smtp_username:
        missing.append("SMTP_USERNAME")
    if not settings.smtp_password:
        missing.append("SMTP_PASSWORD")

    if missing:
        raise RuntimeError(
            "SMTP_ENABLED=1 but required SMTP settings are missing: " + ", ".join(missing)
        )


if settings.auto_run_migrations:
    run_migrations()
validate_runtime_configuration()
ensure_admin_user()


app.middleware("http")(request_logging_middleware(logger))


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid input", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception(
        "Unhandled error request_id=%s method=%s path=%s",
        request_id,
        request.method,
        request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
    )
