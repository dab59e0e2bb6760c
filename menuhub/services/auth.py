"""
Admin Session Gate

Admins log in with a 4-digit PIN (bcrypt hash stored on ``AdminUser``)
and receive an HTTP-only cookie holding a signed, timestamped token:

    <issued-at-unix-seconds>.<hex hmac-sha256>

Every admin-scoped handler depends on ``require_admin`` which rejects
the request with 401 before any database access when the token is
missing, forged or expired.

``admin_guard`` is the same check expressed as a pure function of
(route, token) for server-rendered admin pages: it allows the login
route unconditionally and redirects everything else to it when the
session is not valid.

Author: Khalil Bannouri
Version: 1.0.0
"""

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

import bcrypt
from fastapi import HTTPException, Request, Response

from menuhub.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/admin/login"
_SESSION_SUBJECT = "admin"


# =============================================================================
# PIN HASHING
# =============================================================================

def hash_pin(pin: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_pin(pin: str, pin_hash: str) -> bool:
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored PIN hash is malformed")
        return False


# =============================================================================
# SESSION TOKENS
# =============================================================================

def _sign(secret: str, issued_at: int) -> str:
    message = f"{_SESSION_SUBJECT}:{issued_at}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), msg=message, digestmod=hashlib.sha256).hexdigest()


def create_session_token(secret: str, issued_at: Optional[int] = None) -> str:
    """Create a signed session token issued at ``issued_at`` (default: now)."""
    if issued_at is None:
        issued_at = int(time.time())
    return f"{issued_at}.{_sign(secret, issued_at)}"


def verify_session_token(
    token: Optional[str],
    secret: str,
    ttl_seconds: int,
    now: Optional[float] = None,
) -> bool:
    """Check signature and age of a session token."""
    if not token:
        return False

    issued_raw, _, signature = token.partition(".")
    if not signature or not issued_raw.isdigit():
        return False

    issued_at = int(issued_raw)
    if not hmac.compare_digest(signature, _sign(secret, issued_at)):
        return False

    now = time.time() if now is None else now
    return 0 <= now - issued_at < ttl_seconds


@dataclass(frozen=True)
class GuardResult:
    allowed: bool
    redirect_to: Optional[str] = None


def admin_guard(
    route: str,
    token: Optional[str],
    *,
    secret: str,
    ttl_seconds: int,
    now: Optional[float] = None,
) -> GuardResult:
    """Decide whether an admin page may render for this route and token."""
    if route.rstrip("/") == LOGIN_ROUTE:
        return GuardResult(allowed=True)
    if verify_session_token(token, secret, ttl_seconds, now=now):
        return GuardResult(allowed=True)
    return GuardResult(allowed=False, redirect_to=LOGIN_ROUTE)


# =============================================================================
# REQUEST HELPERS / DEPENDENCIES
# =============================================================================

def is_admin_request(request: Request, settings: Optional[Settings] = None) -> bool:
    """Is the current request carrying a valid admin session?"""
    settings = settings or get_settings()
    token = request.cookies.get(settings.admin_session_cookie)
    return verify_session_token(
        token,
        settings.admin_session_secret,
        settings.admin_session_ttl_seconds,
    )


async def require_admin(request: Request) -> None:
    """FastAPI dependency: 401 unless the request has a valid admin session."""
    if not is_admin_request(request):
        raise HTTPException(status_code=401, detail="Unauthorized")


def set_session_cookie(response: Response, settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    response.set_cookie(
        settings.admin_session_cookie,
        create_session_token(settings.admin_session_secret),
        max_age=settings.admin_session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    response.delete_cookie(settings.admin_session_cookie)


# =============================================================================
# LOGIN RATE LIMITING
# =============================================================================

@dataclass
class _Attempts:
    count: int
    reset_at: float


@dataclass
class LoginRateLimiter:
    """
    In-memory fixed-window limiter keyed by client address.

    Attributes:
        max_attempts: Attempts allowed per window
        window_seconds: Window length
    """
    max_attempts: int = 5
    window_seconds: float = 15 * 60
    _attempts: dict[str, _Attempts] = field(default_factory=dict)

    def check(self, client: str, now: Optional[float] = None) -> tuple[bool, float]:
        """
        Register an attempt for ``client``.

        Returns:
            (allowed, seconds until the window resets)
        """
        now = time.time() if now is None else now
        self._purge(now)
        attempt = self._attempts.get(client)

        if attempt is None or now > attempt.reset_at:
            self._attempts[client] = _Attempts(count=1, reset_at=now + self.window_seconds)
            return True, self.window_seconds

        if attempt.count >= self.max_attempts:
            return False, attempt.reset_at - now

        attempt.count += 1
        return True, attempt.reset_at - now

    @property
    def tracked_clients(self) -> int:
        return len(self._attempts)

    def _purge(self, now: float) -> None:
        expired = [client for client, attempt in self._attempts.items() if now > attempt.reset_at]
        for client in expired:
            del self._attempts[client]

    def reset(self) -> None:
        self._attempts.clear()


@lru_cache()
def get_rate_limiter() -> LoginRateLimiter:
    settings = get_settings()
    return LoginRateLimiter(
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
    )


def client_address(request: Request, settings: Optional[Settings] = None) -> str:
    """
    Client identifier for rate limiting.

    Forwarding headers are client-controlled, so they are only read when
    ``trust_proxy_headers`` says a proxy in front of the app sets them.
    """
    settings = settings or get_settings()
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else "unknown"
