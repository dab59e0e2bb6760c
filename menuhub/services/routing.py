"""
Slug-to-Route Rewriter

Public restaurant URLs are bare slugs (``/pizza-palace``). The
middleware rewrites such a path to the canonical welcome route
(``/welcome/pizza-palace``) inside the ASGI scope, so the browser keeps
the original URL. Everything else passes through untouched:

- reserved prefixes (menu, admin, API, login, framework assets, ...)
- static files recognised by extension
- the root path
- anything that is not exactly one path segment

``rewrite_path`` is the pure classification step; it never touches
the database. Whether the slug exists is decided by the welcome route.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

WELCOME_ROUTE = "/welcome"

RESERVED_PREFIXES = (
    "/menu",
    "/feedback",
    "/admin",
    "/admin-portal",
    "/api",
    "/data",
    "/assets",
    "/login",
    "/welcome",
    "/static",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/health",
    "/favicon.ico",
    "/favicon.png",
    "/robots.txt",
    "/sitemap.xml",
)

STATIC_FILE_PATTERN = re.compile(
    r"\.(?:ico|png|jpe?g|gif|svg|webp|avif|mp4|webm|css|js|map|txt|xml|json|"
    r"woff2?|ttf|otf|eot|pdf|webmanifest)$",
    re.IGNORECASE,
)


def is_reserved(path: str) -> bool:
    """True when ``path`` equals a reserved prefix or is nested under one."""
    return any(path == prefix or path.startswith(prefix + "/") for prefix in RESERVED_PREFIXES)


def rewrite_path(path: str) -> Optional[str]:
    """
    Classify a request path.

    Returns:
        The internal welcome route for a bare slug, or None when the
        request should pass through unchanged.
    """
    if is_reserved(path):
        return None
    if STATIC_FILE_PATTERN.search(path):
        return None
    if path == "/":
        return None

    candidate = path[1:] if path.startswith("/") else path
    if not candidate or "/" in candidate:
        return None

    return f"{WELCOME_ROUTE}/{candidate}"


class SlugRewriteMiddleware:
    """ASGI middleware applying ``rewrite_path`` to every HTTP request."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            target = rewrite_path(scope["path"])
            if target is not None:
                logger.debug(f"Rewriting {scope['path']} -> {target}")
                scope = dict(scope)
                scope["path"] = target
                scope["raw_path"] = target.encode("utf-8")
        await self.app(scope, receive, send)


# =============================================================================
# SLUG GENERATION
# =============================================================================

def slugify(name: str) -> str:
    """
    Build a URL-safe slug from a display name.

    >>> slugify("  Legends Restaurant! ")
    'legends-restaurant'
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def disambiguate_slug(slug: str, record_id: str) -> str:
    """Suffix a colliding slug with the last six characters of the record id."""
    return f"{slug}-{record_id[-6:]}"
