import hashlib
import hmac
import re
import secrets

from ptbuddy.settings import get_settings

settings = get_settings()

PHONE_PATTERN = re.compile(r"^01[016789]-?\d{3,4}-?\d{4}$")

HASH_ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = 100_000


def _pbkdf2(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    ).hex()


def hash_password(password: str) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    salt = secrets.token_hex(16)
    digest = _pbkdf2(password, salt, HASH_ITERATIONS)
    return f"{HASH_ALGORITHM}${HASH_ITERATIONS}${salt}${digest}"


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False

    parts = hashed_password.split("$")
    if len(parts) != 4 or parts[0] != HASH_ALGORITHM or not parts[1].isdigit():
        return False

    _, iterations, salt, digest = parts
    return hmac.compare_digest(_pbkdf2(plain_password, salt, int(iterations)), digest)


def validate_password_policy(password: str) -> tuple[bool, str]:
    if len(password) < settings.password_min_length:
        return False, f"Password must be at least {settings.password_min_length} characters."
    if len(password) > 100:
        return False, "Password must be at most 100 characters."
    if not re.search(r"[A-Z]", password):
        return False, "Password must include at least one uppercase letter."
    if not re.search(r"[a-z]", password):
        return False, "Password must include at least one lowercase letter."
    if not re.search(r"\d", password):
        return False, "Password must include at least one number."
    if not re.search(r"[^A-Za-z0-9]", password):
        return False, "Password must include at least one special character."
    return True, ""


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(phone))


def generate_verification_code() -> str:
    return str(100_000 + secrets.randbelow(900_000))


def generate_temporary_password() -> str:
    return secrets.token_urlsafe(18)
