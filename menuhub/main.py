"""
FastAPI Application Entry Point

Multi-language restaurant menu: public welcome/menu/feedback pages,
the public JSON API they read from, and the admin API (see
``menuhub.admin``).

Endpoints:
    - GET /{slug}: Welcome page (rewritten to /welcome/{slug})
    - GET /menu, /feedback, /admin, /admin/login: Server-rendered pages
    - GET /api/menu, /data/menu: Active menu tree
    - GET /api/restaurant, /data/restaurant, /api/restaurant/{slug}: Profile
    - GET /data/theme, /api/ui-settings: Display singletons
    - POST /api/feedback: Customer feedback
    - GET /api/media/{id}, /assets/{id}: Media bytes
    - GET /health: System health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from menuhub.admin import router as admin_router
from menuhub.core.config import get_settings, setup_logging
from menuhub.database import dispose_db, get_db, init_db
from menuhub.models import Feedback, Restaurant
from menuhub.schemas import (
    ErrorResponse,
    FeedbackCreate,
    FeedbackCreateResponse,
    HealthResponse,
    RestaurantDetail,
    RestaurantOut,
    SlugEntry,
    SlugListResponse,
    ThemeOut,
    ThemeResponse,
    UiSettingsOut,
)
from menuhub.services.auth import LOGIN_ROUTE, admin_guard
from menuhub.services.cache import MENU_SECTIONS_KEY, MENU_TAG, get_menu_cache
from menuhub.services.display import default_theme, get_or_create_theme, get_ui_settings
from menuhub.services.errors import MediaRejectedError, NotFoundError, RangeNotSatisfiableError
from menuhub.services.i18n import (
    LANGUAGES,
    format_price,
    get_localized_description,
    get_localized_name,
    is_rtl,
    normalize_language,
)
from menuhub.services.media import get_media, media_headers, parse_byte_range
from menuhub.services.menu import fetch_menu_tree, load_menu_sections
from menuhub.services.restaurant import get_first_restaurant, get_restaurant_by_slug, list_slugs
from menuhub.services.routing import SlugRewriteMiddleware

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

# Template configuration
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.globals.update(
    localized_name=get_localized_name,
    localized_description=get_localized_description,
    format_price=format_price,
    languages=LANGUAGES,
)

DEFAULT_TAGLINE = "WHERE EVERY MOMENT BECOMES LEGENDARY"

# Cache directives per resource volatility
MENU_CACHE_CONTROL = "public, s-maxage=5, stale-while-revalidate=10"
RESTAURANT_CACHE_CONTROL = "public, s-maxage=120, stale-while-revalidate=240"
NO_STORE = "no-store, no-cache, must-revalidate, proxy-revalidate"
NO_STORE_HEADERS = {
    "Cache-Control": NO_STORE,
    "Pragma": "no-cache",
    "Expires": "0",
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Settings still at insecure defaults: {missing}")

    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await dispose_db()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Multi-language (Kurdish / English / Arabic) restaurant menu with "
        "customer feedback and an admin panel for menu, branding and theme."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Bare /{slug} paths are served by the welcome route
app.add_middleware(SlugRewriteMiddleware)

app.include_router(admin_router)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def describe_validation_error(errors: list[dict[str, Any]]) -> str:
    """Human-readable message for the first validation failure."""
    if not errors:
        return "Invalid request"

    first = errors[0]
    custom = (first.get("ctx") or {}).get("error")
    if custom:
        return str(custom)

    field = ".".join(
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    )
    message = first.get("msg", "Invalid request")
    return f"{field}: {message}" if field else message


def welcome_context(restaurant: Restaurant) -> dict[str, Any]:
    background = restaurant.welcome_background
    return {
        "restaurant": restaurant,
        "tagline": restaurant.welcome_text_en or DEFAULT_TAGLINE,
        "logo_url": f"/assets/{restaurant.logo_media_id}" if restaurant.logo_media_id else None,
        "background_url": f"/assets/{background.id}" if background else None,
        "background_is_video": bool(background and background.mime_type.startswith("video/")),
    }


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", response_class=HTMLResponse, tags=["Pages"])
async def root(request: Request, db: AsyncSession = Depends(get_db)) -> HTMLResponse:
    """Welcome page of the deployment's restaurant."""
    restaurant = await get_first_restaurant(db, with_media=True)
    if restaurant is None:
        return templates.TemplateResponse(
            request, "not_found.html", {"slug": None}, status_code=404
        )
    return templates.TemplateResponse(request, "welcome.html", welcome_context(restaurant))


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify the database is reachable."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get("/api/menu", tags=["Menu"], summary="Active Menu Tree (uncached)")
async def menu_direct(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Active sections → categories → items, queried on every request.

    Never fails with a 5xx: a database error yields an empty tree.
    """
    try:
        sections = await load_menu_sections(db)
    except SQLAlchemyError as e:
        logger.exception(f"Error fetching menu: {e}")
        return JSONResponse(
            {"sections": [], "error": "Failed to load menu data"},
            headers={"Cache-Control": "no-cache"},
        )

    return JSONResponse(
        {"sections": sections, "timestamp": int(time.time() * 1000)},
        headers={**NO_STORE_HEADERS, "Cache-Control": f"{NO_STORE}, max-age=0"},
    )


@app.get("/data/menu", tags=["Menu"], summary="Active Menu Tree (cached)")
async def menu_cached(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Active menu tree served from the tagged in-process cache.

    Admin mutations invalidate the ``menu`` tag; otherwise entries
    expire after a few seconds.
    """
    try:
        sections = await get_menu_cache().get_or_load(
            MENU_SECTIONS_KEY,
            lambda: load_menu_sections(db),
            tags=[MENU_TAG],
        )
    except SQLAlchemyError as e:
        logger.exception(f"Error fetching menu: {e}")
        return JSONResponse(
            {"sections": [], "error": "Failed to load menu data"},
            headers={"Cache-Control": "no-cache"},
        )

    return JSONResponse({"sections": sections}, headers={"Cache-Control": MENU_CACHE_CONTROL})


# =============================================================================
# RESTAURANT ENDPOINTS
# =============================================================================

@app.get(
    "/api/restaurant",
    response_model=RestaurantOut,
    responses={404: {"model": ErrorResponse}},
    tags=["Restaurant"],
)
async def restaurant_profile(
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> RestaurantOut:
    """The deployment's restaurant profile."""
    restaurant = await get_first_restaurant(db)
    if restaurant is None:
        raise NotFoundError("Restaurant not found")

    response.headers["Cache-Control"] = RESTAURANT_CACHE_CONTROL
    return RestaurantOut.model_validate(restaurant)


@app.get(
    "/api/restaurant/{slug}",
    response_model=RestaurantDetail,
    tags=["Restaurant"],
)
async def restaurant_by_slug(
    slug: str,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Restaurant profile by slug, with logo/background metadata."""
    restaurant = await get_restaurant_by_slug(db, slug)
    if restaurant is None:
        return JSONResponse(
            {"error": "Restaurant not found", "slug": slug},
            status_code=404,
            headers={"Cache-Control": "no-store"},
        )

    response.headers["Cache-Control"] = "no-store"
    return RestaurantDetail.model_validate(restaurant)


@app.get(
    "/data/restaurant",
    response_model=RestaurantDetail,
    responses={404: {"model": ErrorResponse}},
    tags=["Restaurant"],
)
async def restaurant_data(
    response: Response,
    slug: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> RestaurantDetail:
    """Restaurant profile by ``slug`` when given, otherwise the singleton."""
    if slug:
        restaurant = await get_restaurant_by_slug(db, slug)
        if restaurant is None:
            raise NotFoundError(f"Restaurant not found for slug: {slug}")
    else:
        restaurant = await get_first_restaurant(db, with_media=True)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")

    response.headers["Cache-Control"] = NO_STORE
    return RestaurantDetail.model_validate(restaurant)


@app.get("/api/restaurants/slugs", response_model=SlugListResponse, tags=["Restaurant"])
async def restaurant_slugs(response: Response, db: AsyncSession = Depends(get_db)):
    """
    Debug listing of every restaurant slug.

    Unauthenticated; access in production is logged.
    """
    if settings.is_production:
        logger.warning("⚠️ Debug endpoint /api/restaurants/slugs accessed in production")

    try:
        restaurants = await list_slugs(db)
    except SQLAlchemyError as e:
        logger.exception(f"Error fetching restaurant slugs: {e}")
        return JSONResponse(
            {"error": "Internal server error", "details": str(e)},
            status_code=500,
        )

    response.headers["Cache-Control"] = "no-store"
    return SlugListResponse(
        count=len(restaurants),
        restaurants=[SlugEntry.model_validate(r) for r in restaurants],
    )


# =============================================================================
# DISPLAY SETTINGS ENDPOINTS
# =============================================================================

@app.get("/data/theme", response_model=ThemeResponse, tags=["Display"])
async def theme_data(response: Response, db: AsyncSession = Depends(get_db)) -> ThemeResponse:
    """Theme singleton, created with the default background on first read."""
    response.headers["Cache-Control"] = NO_STORE
    try:
        theme = await get_or_create_theme(db)
    except SQLAlchemyError as e:
        logger.exception(f"Error fetching theme: {e}")
        await db.rollback()
        return ThemeResponse(theme=default_theme())
    return ThemeResponse(theme=ThemeOut.model_validate(theme))


@app.get("/api/ui-settings", response_model=UiSettingsOut, tags=["Display"])
async def ui_settings(response: Response, db: AsyncSession = Depends(get_db)) -> UiSettingsOut:
    """Display sizes; the defaults when nothing has been saved yet."""
    response.headers.update(NO_STORE_HEADERS)
    return await get_ui_settings(db)


# =============================================================================
# FEEDBACK ENDPOINTS
# =============================================================================

@app.post(
    "/api/feedback",
    response_model=FeedbackCreateResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Feedback"],
)
async def create_feedback(
    feedback_data: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
) -> FeedbackCreateResponse:
    """Store a customer feedback submission."""
    feedback = Feedback(**feedback_data.model_dump())
    db.add(feedback)
    await db.commit()
    await db.refresh(feedback)

    logger.info(
        f"Feedback {feedback.id} received "
        f"({feedback.staff_rating}/{feedback.service_rating}/{feedback.hygiene_rating})"
    )
    return FeedbackCreateResponse(id=feedback.id, success=True)


# =============================================================================
# MEDIA ENDPOINTS
# =============================================================================

@app.api_route("/api/media/{media_id}", methods=["GET", "HEAD"], tags=["Media"])
async def media_by_id(media_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    """Raw media bytes with an immutable cache lifetime."""
    media = await get_media(db, media_id)
    if media is None:
        return PlainTextResponse("Media not found", status_code=404)
    return Response(content=media.bytes, headers=media_headers(media, cors=True))


@app.api_route("/assets/{media_id}", methods=["GET", "HEAD"], tags=["Media"])
async def asset_by_id(
    media_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Same bytes as /api/media/{id}; videos also answer single byte ranges."""
    media = await get_media(db, media_id)
    if media is None:
        return PlainTextResponse("Media not found", status_code=404)

    headers = media_headers(media, ranges=True)
    if "Accept-Ranges" not in headers:
        return Response(content=media.bytes, headers=headers)

    try:
        byte_range = parse_byte_range(request.headers.get("range"), media.size)
    except RangeNotSatisfiableError:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{media.size}"})
    if byte_range is None:
        return Response(content=media.bytes, headers=headers)

    start, end = byte_range
    headers["Content-Range"] = f"bytes {start}-{end}/{media.size}"
    headers["Content-Length"] = str(end - start + 1)
    return Response(content=media.bytes[start:end + 1], status_code=206, headers=headers)


# =============================================================================
# PAGES
# =============================================================================

@app.get("/welcome/{slug}", response_class=HTMLResponse, tags=["Pages"])
async def welcome_page(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Welcome screen for a restaurant slug, or the not-found page."""
    restaurant = await get_restaurant_by_slug(db, slug)
    if restaurant is None:
        logger.info(f"Welcome page requested for unknown slug '{slug}'")
        return templates.TemplateResponse(
            request, "not_found.html", {"slug": slug}, status_code=404
        )
    return templates.TemplateResponse(request, "welcome.html", welcome_context(restaurant))


@app.get("/menu", response_class=HTMLResponse, tags=["Pages"])
async def menu_page(
    request: Request,
    lang: str = Query("en"),
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Active menu rendered in the requested language."""
    language = normalize_language(lang)

    try:
        sections = await fetch_menu_tree(db)
        restaurant = await get_first_restaurant(db)
    except SQLAlchemyError as e:
        logger.exception(f"Error rendering menu page: {e}")
        await db.rollback()
        sections, restaurant = [], None

    return templates.TemplateResponse(
        request,
        "menu.html",
        {
            "lang": language.value,
            "rtl": is_rtl(language),
            "sections": sections,
            "restaurant": restaurant,
            "brand_colors": (restaurant.brand_colors if restaurant else None) or {},
            "ui": await get_ui_settings(db),
        },
    )


@app.get("/feedback", response_class=HTMLResponse, tags=["Pages"])
async def feedback_page(request: Request, lang: str = Query("en")) -> HTMLResponse:
    language = normalize_language(lang)
    return templates.TemplateResponse(
        request,
        "feedback.html",
        {"lang": language.value, "rtl": is_rtl(language)},
    )


@app.get("/admin/login", response_class=HTMLResponse, tags=["Pages"])
async def admin_login_page(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "admin_login.html", {})


@app.get("/admin", response_class=HTMLResponse, tags=["Pages"])
async def admin_page(request: Request, db: AsyncSession = Depends(get_db)) -> Response:
    """Admin dashboard; redirects to the login page without a valid session."""
    guard = admin_guard(
        request.url.path,
        request.cookies.get(settings.admin_session_cookie),
        secret=settings.admin_session_secret,
        ttl_seconds=settings.admin_session_ttl_seconds,
    )
    if not guard.allowed:
        return RedirectResponse(guard.redirect_to or LOGIN_ROUTE, status_code=303)

    sections = await fetch_menu_tree(db, active_only=False)
    result = await db.execute(select(Feedback).order_by(Feedback.created_at.desc()).limit(10))
    return templates.TemplateResponse(
        request,
        "admin.html",
        {"sections": sections, "feedbacks": result.scalars().all()},
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies: 400 citing the first violated rule."""
    message = describe_validation_error(exc.errors())
    logger.info(f"Validation failed on {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(MediaRejectedError)
async def media_rejected_handler(request: Request, exc: MediaRejectedError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
