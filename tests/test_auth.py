"""
Admin session gate: PIN hashing, signed session tokens, the page
guard, the login rate limiter and the login/logout flow.
"""

import pytest
from starlette.requests import Request

from menuhub.core.config import Settings, get_settings
from menuhub.services.auth import (
    LOGIN_ROUTE,
    LoginRateLimiter,
    admin_guard,
    client_address,
    create_session_token,
    hash_pin,
    verify_pin,
    get_rate_limiter,
    verify_session_token,
)
from tests.factories import add_admin

SECRET = "test-secret"
TTL = 3600


# ---------------------------------------------------------------------------
# PIN hashing
# ---------------------------------------------------------------------------

def test_pin_hash_round_trip():
    pin_hash = hash_pin("4321", rounds=4)
    assert pin_hash != "4321"
    assert verify_pin("4321", pin_hash)
    assert not verify_pin("1234", pin_hash)


def test_malformed_hash_is_rejected():
    assert not verify_pin("1234", "not-a-bcrypt-hash")


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def test_fresh_token_is_valid():
    token = create_session_token(SECRET, issued_at=1_000)
    assert verify_session_token(token, SECRET, TTL, now=1_000 + 10)


def test_expired_token_is_rejected():
    token = create_session_token(SECRET, issued_at=1_000)
    assert not verify_session_token(token, SECRET, TTL, now=1_000 + TTL)
    assert not verify_session_token(token, SECRET, TTL, now=1_000 + TTL + 1)


def test_token_from_the_future_is_rejected():
    token = create_session_token(SECRET, issued_at=5_000)
    assert not verify_session_token(token, SECRET, TTL, now=4_000)


def test_token_signed_with_other_secret_is_rejected():
    token = create_session_token("other-secret", issued_at=1_000)
    assert not verify_session_token(token, SECRET, TTL, now=1_001)


def test_tampered_timestamp_is_rejected():
    token = create_session_token(SECRET, issued_at=1_000)
    signature = token.split(".", 1)[1]
    assert not verify_session_token(f"2000.{signature}", SECRET, TTL, now=2_001)


@pytest.mark.parametrize("token", [None, "", "garbage", "abc.def", "1000.", ".deadbeef"])
def test_malformed_tokens_are_rejected(token):
    assert not verify_session_token(token, SECRET, TTL, now=1_001)


# ---------------------------------------------------------------------------
# Page guard
# ---------------------------------------------------------------------------

def test_guard_always_allows_login_route():
    result = admin_guard(LOGIN_ROUTE, None, secret=SECRET, ttl_seconds=TTL)
    assert result.allowed
    assert result.redirect_to is None


def test_guard_redirects_without_session():
    result = admin_guard("/admin", None, secret=SECRET, ttl_seconds=TTL)
    assert not result.allowed
    assert result.redirect_to == LOGIN_ROUTE


def test_guard_allows_valid_session():
    token = create_session_token(SECRET, issued_at=1_000)
    result = admin_guard("/admin", token, secret=SECRET, ttl_seconds=TTL, now=1_500)
    assert result.allowed


def test_guard_redirects_expired_session():
    token = create_session_token(SECRET, issued_at=1_000)
    result = admin_guard("/admin", token, secret=SECRET, ttl_seconds=TTL, now=1_000 + TTL + 5)
    assert result.redirect_to == LOGIN_ROUTE


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------

def test_rate_limiter_blocks_after_max_attempts():
    limiter = LoginRateLimiter(max_attempts=3, window_seconds=60)

    assert [limiter.check("1.2.3.4", now=0)[0] for _ in range(3)] == [True, True, True]
    allowed, retry_after = limiter.check("1.2.3.4", now=10)

    assert not allowed
    assert retry_after == pytest.approx(50)


def test_rate_limiter_is_per_client():
    limiter = LoginRateLimiter(max_attempts=1, window_seconds=60)
    assert limiter.check("a", now=0)[0]
    assert not limiter.check("a", now=1)[0]
    assert limiter.check("b", now=1)[0]


def test_rate_limiter_window_resets():
    limiter = LoginRateLimiter(max_attempts=1, window_seconds=60)
    limiter.check("a", now=0)
    assert not limiter.check("a", now=30)[0]
    assert limiter.check("a", now=61)[0]


def test_rate_limiter_forgets_expired_clients():
    limiter = LoginRateLimiter(max_attempts=5, window_seconds=60)
    for i in range(20):
        limiter.check(f"10.0.0.{i}", now=0)
    assert limiter.tracked_clients == 20

    limiter.check("10.0.0.99", now=61)

    assert limiter.tracked_clients == 1


def _request(headers, host="203.0.113.7"):
    return Request({
        "type": "http",
        "headers": [(name.encode(), value.encode()) for name, value in headers.items()],
        "client": (host, 51000),
    })


def test_client_address_ignores_forwarding_headers_by_default():
    request = _request({"x-forwarded-for": "10.0.0.1", "x-real-ip": "10.0.0.2"})
    assert client_address(request, Settings(trust_proxy_headers=False)) == "203.0.113.7"


def test_client_address_honours_trusted_proxy():
    trusted = Settings(trust_proxy_headers=True)
    assert client_address(_request({"x-forwarded-for": "10.0.0.1, 172.16.0.1"}), trusted) == "10.0.0.1"
    assert client_address(_request({"x-real-ip": "10.0.0.2"}), trusted) == "10.0.0.2"
    assert client_address(_request({}), trusted) == "203.0.113.7"


# ---------------------------------------------------------------------------
# Login flow
# ---------------------------------------------------------------------------

async def test_login_sets_session_cookie(client, session_maker):
    await add_admin(session_maker, pin="1234")

    response = await client.post("/api/admin/login", json={"pin": "1234"})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{get_settings().admin_session_cookie}=")
    assert "HttpOnly" in cookie

    check = await client.get("/api/admin/check-session")
    assert check.status_code == 200
    assert check.json() == {"authenticated": True}


async def test_login_wrong_pin(client, session_maker):
    await add_admin(session_maker, pin="1234")

    response = await client.post("/api/admin/login", json={"pin": "9999"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid PIN"}
    assert "set-cookie" not in response.headers


async def test_login_without_admin(client):
    response = await client.post("/api/admin/login", json={"pin": "1234"})

    assert response.status_code == 404
    assert response.json() == {"error": "Admin not found"}


@pytest.mark.parametrize("pin", ["123", "12345", "abcd", ""])
async def test_login_rejects_malformed_pin(client, pin):
    response = await client.post("/api/admin/login", json={"pin": pin})

    assert response.status_code == 400
    assert response.json() == {"error": "PIN must be 4 digits"}


async def test_login_rate_limited_after_five_attempts(client, session_maker):
    await add_admin(session_maker, pin="1234")

    for _ in range(5):
        response = await client.post("/api/admin/login", json={"pin": "0000"})
        assert response.status_code == 401

    response = await client.post("/api/admin/login", json={"pin": "1234"})

    assert response.status_code == 429
    assert response.json() == {"error": "Too many login attempts. Please try again later."}
    assert int(response.headers["retry-after"]) > 0


async def test_rate_limit_not_bypassed_by_forwarded_header(client, session_maker):
    await add_admin(session_maker, pin="1234")

    statuses = [
        (await client.post(
            "/api/admin/login",
            json={"pin": "0000"},
            headers={"x-forwarded-for": f"10.0.0.{i}"},
        )).status_code
        for i in range(6)
    ]

    assert statuses == [401] * 5 + [429]
    assert get_rate_limiter().tracked_clients == 1


async def test_check_session_without_cookie(client):
    response = await client.get("/api/admin/check-session")

    assert response.status_code == 401
    assert response.json() == {"authenticated": False}


async def test_check_session_with_forged_cookie(client):
    client.cookies.set(get_settings().admin_session_cookie, "1000.forged")

    response = await client.get("/api/admin/check-session")

    assert response.status_code == 401


async def test_logout_clears_cookie(admin_client):
    response = await admin_client.post("/api/admin/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert f'{get_settings().admin_session_cookie}=""' in response.headers["set-cookie"]


# ---------------------------------------------------------------------------
# Gate on admin endpoints and pages
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("method,path", [
    ("GET", "/api/admin/menu"),
    ("GET", "/api/admin/feedback"),
    ("GET", "/api/admin/branding"),
    ("GET", "/api/admin/theme"),
    ("POST", "/api/admin/sections"),
    ("POST", "/api/admin/sections/reorder"),
    ("DELETE", "/api/admin/items/whatever"),
    ("PUT", "/api/admin/ui-settings"),
    ("POST", "/api/admin/backfill-slugs"),
])
async def test_admin_endpoints_require_session(client, method, path):
    # The body is invalid on purpose: the gate must answer before validation
    response = await client.request(method, path, json={"bogus": True})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


async def test_admin_page_redirects_to_login(client):
    response = await client.get("/admin")

    assert response.status_code == 303
    assert response.headers["location"] == LOGIN_ROUTE


async def test_admin_page_renders_with_session(admin_client):
    response = await admin_client.get("/admin")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]


async def test_login_page_is_public(client):
    response = await client.get("/admin/login")

    assert response.status_code == 200
