import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file() -> None:
    """Load ``KEY=value`` pairs from PTBUDDY_ENV_FILE or ``<repo>/.env``.

    Variables already present in the environment win. ``export`` prefixes and
    quoted values are accepted so the same file can be sourced from a shell.
    """
    default_path = Path(__file__).resolve().parent.parent / ".env"
    env_path = Path(os.getenv("PTBUDDY_ENV_FILE", default_path))
    if not env_path.is_file():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        if key:
            os.environ.setdefault(key, value)


_load_env_file()


def _as_bool(value: str, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: str
    database_url: str
    secret_key: str
    session_cookie_name: str
    session_max_age_seconds: int
    session_https_only: bool
    session_same_site: str
    docs_enabled: bool
    redoc_enabled: bool
    auto_run_migrations: bool
    log_level: str
    request_id_header: str
    login_max_attempts: int
    login_window_seconds: int
    login_lockout_seconds: int
    password_min_length: int
    reset_code_ttl_minutes: int
    reset_verified_grace_minutes: int
    expose_reset_code_in_response: bool
    default_appointment_minutes: int
    smtp_enabled: bool
    smtp_host: str
    smtp_port: int
    smtp_username: str
    smtp_password: str
    smtp_use_tls: bool
    smtp_sender_email: str
    smtp_sender_name: str
    admin_email: str
    admin_password: str
    admin_name: str


@lru_cache
def get_settings() -> Settings:
    environment = os.getenv("ENVIRONMENT", "development")
    docs_default = environment != "production"
    session_https_default = environment == "production"
    session_same_site_default = "strict" if environment == "production" else "lax"
    docs_enabled = _as_bool(os.getenv("DOCS_ENABLED"), default=docs_default)
    redoc_enabled = _as_bool(os.getenv("REDOC_ENABLED"), default=docs_default)
    auto_run_migrations = _as_bool(
        os.getenv("AUTO_RUN_MIGRATIONS"),
        default=environment != "production",
    )

    return Settings(
        app_name=os.getenv("APP_NAME", "PT Buddy API"),
        environment=environment,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./ptbuddy.db"),
        secret_key=os.getenv("PTBUDDY_SECRET_KEY", "ptbuddy-secret-key"),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "ptbuddy_session"),
        session_max_age_seconds=_as_int(
            os.getenv("SESSION_MAX_AGE_SECONDS"),
            default=60 * 60 * 24 * 7,
        ),
        session_https_only=_as_bool(
            os.getenv("SESSION_HTTPS_ONLY"),
            default=session_https_default,
        ),
        session_same_site=os.getenv("SESSION_SAMESITE", session_same_site_default).strip().lower(),
        docs_enabled=docs_enabled,
        redoc_enabled=redoc_enabled,
        auto_run_migrations=auto_run_migrations,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        request_id_header=os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
        login_max_attempts=_as_int(os.getenv("LOGIN_MAX_ATTEMPTS"), default=5),
        login_window_seconds=_as_int(os.getenv("LOGIN_WINDOW_SECONDS"), default=900),
        login_lockout_seconds=_as_int(os.getenv("LOGIN_LOCKOUT_SECONDS"), default=900),
        password_min_length=_as_int(os.getenv("PASSWORD_MIN_LENGTH"), default=8),
        reset_code_ttl_minutes=_as_int(os.getenv("RESET_CODE_TTL_MINUTES"), default=10),
        reset_verified_grace_minutes=_as_int(
            os.getenv("RESET_VERIFIED_GRACE_MINUTES"),
            default=5,
        ),
        expose_reset_code_in_response=_as_bool(
            os.getenv("EXPOSE_RESET_CODE_IN_RESPONSE"),
            default=environment != "production",
        ),
        default_appointment_minutes=_as_int(
            os.getenv("DEFAULT_APPOINTMENT_MINUTES"),
            default=60,
        ),
        smtp_enabled=_as_bool(os.getenv("SMTP_ENABLED"), default=False),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_as_int(os.getenv("SMTP_PORT"), default=587),
        smtp_username=os.getenv("SMTP_USERNAME", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_use_tls=_as_bool(os.getenv("SMTP_USE_TLS"), default=True),
        smtp_sender_email=os.getenv("SMTP_SENDER_EMAIL", ""),
        smtp_sender_name=os.getenv("SMTP_SENDER_NAME", "PT Buddy"),
        admin_email=os.getenv("PTBUDDY_ADMIN_EMAIL", ""),
        admin_password=os.getenv("PTBUDDY_ADMIN_PASSWORD", ""),
        admin_name=os.getenv("PTBUDDY_ADMIN_NAME", "Administrator"),
    )
