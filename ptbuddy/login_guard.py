import threading
import time
from dataclasses import dataclass
from typing import Callable

from ptbuddy.settings import get_settings


@dataclass
class _Attempts:
    first_failure: float
    failures: int = 0
    locked_until: float = 0.0


class LoginGuard:
    """In-process failed-login throttle keyed by (email, role, client ip).

    After ``max_attempts`` failures inside ``window_seconds`` the key is locked
    for ``lockout_seconds``. A successful login clears the key.
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: int,
        lockout_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._attempts: dict[tuple[str, str, str], _Attempts] = {}

    @staticmethod
    def _key(email: str, role: str, client_ip: str) -> tuple[str, str, str]:
        return email.strip().lower(), role, client_ip

    def check(self, email: str, role: str, client_ip: str) -> tuple[bool, int]:
        """Return ``(allowed, retry_after_seconds)``."""
        key = self._key(email, role, client_ip)
        now = self._clock()
        with self._lock:
            record = self._attempts.get(key)
            if record is None:
                return True, 0
            if record.locked_until > now:
                return False, int(record.locked_until - now)
            if record.locked_until or now - record.first_failure > self.window_seconds:
                del self._attempts[key]
        return True, 0

    def register_failure(self, email: str, role: str, client_ip: str) -> tuple[bool, int]:
        """Count a failure. Returns ``(still_allowed, lockout_seconds)``."""
        key = self._key(email, role, client_ip)
        now = self._clock()
        with self._lock:
            record = self._attempts.get(key)
            if record is None or now - record.first_failure > self.window_seconds:
                record = _Attempts(first_failure=now)
                self._attempts[key] = record
            record.failures += 1
            if record.failures >= self.max_attempts:
                record.locked_until = now + self.lockout_seconds
                return False, self.lockout_seconds
        return True, 0

    def register_success(self, email: str, role: str, client_ip: str) -> None:
        with self._lock:
            self._attempts.pop(self._key(email, role, client_ip), None)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


def _from_settings() -> LoginGuard:
    settings = get_settings()
    return LoginGuard(
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
        lockout_seconds=settings.login_lockout_seconds,
    )


login_guard = _from_settings()
