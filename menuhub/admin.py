"""
Admin API Router

Every endpoint under ``/api/admin`` except login, logout and the
session probe is gated by ``require_admin``; the gate runs before the
request body is read and before any database access.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, Response, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from menuhub.database import get_db, get_session_maker
from menuhub.models import AdminUser, Category, Feedback, Item, Section
from menuhub.schemas import (
    BrandingResponse,
    BrandingUpdate,
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    ErrorResponse,
    FeedbackListResponse,
    FeedbackOut,
    ItemCreate,
    ItemOut,
    ItemUpdate,
    LoginRequest,
    MediaInfo,
    ReorderRequest,
    ReorderResponse,
    SectionCreate,
    SectionOut,
    SectionTree,
    SectionUpdate,
    SessionStatus,
    SettingsResponse,
    SettingsUpdate,
    SuccessResponse,
    ThemeOut,
    ThemeUpdate,
    UiSettingsOut,
)
from menuhub.services import menu as menu_service
from menuhub.services.auth import (
    clear_session_cookie,
    client_address,
    get_rate_limiter,
    is_admin_request,
    require_admin,
    set_session_cookie,
    verify_pin,
)
from menuhub.services.display import (
    get_or_create_theme,
    get_ui_settings,
    save_theme,
    save_ui_settings,
    validate_ui_settings,
)
from menuhub.services.errors import MissingRecordsError
from menuhub.services.media import create_media, read_upload
from menuhub.services.reorder import reorder_atomic, reorder_independent
from menuhub.services.restaurant import (
    backfill_slugs,
    require_first_restaurant,
    settings_view,
    update_brand_colors,
    update_settings,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

AdminOnly = [Depends(require_admin)]


# =============================================================================
# AUTHENTICATION
# =============================================================================

async def enforce_login_rate_limit(request: Request) -> None:
    """429 once a client exhausts its PIN attempts for the window."""
    client = client_address(request)
    allowed, retry_after = get_rate_limiter().check(client)
    if not allowed:
        logger.warning(f"Login rate limit hit for {client}")
        raise HTTPException(
            status_code=429,
            detail="Too many login attempts. Please try again later.",
            headers={"Retry-After": str(int(retry_after) + 1)},
        )


@router.post(
    "/login",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    responses={401: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    dependencies=[Depends(enforce_login_rate_limit)],
)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    """Exchange the admin PIN for a session cookie."""
    result = await db.execute(select(AdminUser).order_by(AdminUser.created_at).limit(1))
    admin = result.scalar_one_or_none()
    if admin is None:
        raise HTTPException(status_code=404, detail="Admin not found")

    if not verify_pin(credentials.pin, admin.pin_hash):
        logger.warning("Admin login failed: invalid PIN")
        raise HTTPException(status_code=401, detail="Invalid PIN")

    admin.last_login_at = datetime.now(timezone.utc)
    await db.commit()

    set_session_cookie(response)
    logger.info("Admin logged in")
    return SuccessResponse(success=True)


@router.post("/logout", response_model=SuccessResponse, response_model_exclude_none=True)
async def logout(response: Response) -> SuccessResponse:
    clear_session_cookie(response)
    return SuccessResponse(success=True)


@router.get("/check-session", response_model=SessionStatus)
async def check_session(request: Request):
    """Lets the admin UI verify its session before rendering."""
    if is_admin_request(request):
        return SessionStatus(authenticated=True)
    return JSONResponse({"authenticated": False}, status_code=401)


# =============================================================================
# MENU TREE
# =============================================================================

@router.get("/menu", dependencies=AdminOnly)
async def admin_menu(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Full tree including inactive sections, categories and items."""
    sections = await menu_service.fetch_menu_tree(db, active_only=False)
    return {
        "sections": [
            SectionTree.model_validate(s).model_dump(by_alias=True, mode="json") for s in sections
        ]
    }


# =============================================================================
# REORDERING
# =============================================================================

def _reorder_failure(noun: str, outcome) -> JSONResponse:
    return JSONResponse(
        {
            "error": f"Some {noun} failed to update",
            "details": outcome.errors,
            "failedCount": outcome.failed,
            "totalCount": outcome.total,
        },
        status_code=500,
    )


def _reorder_success(updated) -> ReorderResponse:
    return ReorderResponse(updated=list(updated))


@router.post(
    "/sections/reorder",
    response_model=ReorderResponse,
    response_model_exclude_none=True,
    dependencies=AdminOnly,
)
async def reorder_sections(
    payload: ReorderRequest,
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
):
    """Independent per-section updates; one bad id does not undo the others."""
    outcome = await reorder_independent(session_maker, Section, payload.items)
    if not outcome.success:
        return _reorder_failure("sections", outcome)
    return _reorder_success(outcome.updated)


@router.post(
    "/categories/reorder",
    response_model=ReorderResponse,
    response_model_exclude_none=True,
    dependencies=AdminOnly,
)
async def reorder_categories(
    payload: ReorderRequest,
    db: AsyncSession = Depends(get_db),
):
    """All-or-nothing: unknown ids reject the whole batch."""
    try:
        updated = await reorder_atomic(db, Category, payload.items)
    except MissingRecordsError as e:
        logger.error(f"Category reorder rejected, unknown ids: {e.ids}")
        return JSONResponse(
            {"error": "Some category IDs do not exist", "missingIds": e.ids},
            status_code=400,
        )
    return _reorder_success(updated)


@router.post(
    "/items/reorder",
    response_model=ReorderResponse,
    response_model_exclude_none=True,
    dependencies=AdminOnly,
)
async def reorder_items(
    payload: ReorderRequest,
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
):
    outcome = await reorder_independent(session_maker, Item, payload.items)
    if not outcome.success:
        return _reorder_failure("items", outcome)
    return _reorder_success(outcome.updated)


# =============================================================================
# SECTIONS
# =============================================================================

@router.post("/sections", response_model=SectionOut, dependencies=AdminOnly)
async def create_section(data: SectionCreate, db: AsyncSession = Depends(get_db)) -> SectionOut:
    section = await menu_service.create_section(db, data)
    return SectionOut.model_validate(section)


@router.patch("/sections/{section_id}", response_model=SectionOut, dependencies=AdminOnly)
async def update_section(
    section_id: str,
    data: SectionUpdate,
    db: AsyncSession = Depends(get_db),
) -> SectionOut:
    section = await menu_service.update_section(db, section_id, data)
    return SectionOut.model_validate(section)


@router.delete(
    "/sections/{section_id}",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    dependencies=AdminOnly,
)
async def delete_section(section_id: str, db: AsyncSession = Depends(get_db)) -> SuccessResponse:
    await menu_service.delete_section(db, section_id)
    return SuccessResponse(success=True)


# =============================================================================
# CATEGORIES
# =============================================================================

@router.post("/categories", response_model=CategoryOut, dependencies=AdminOnly)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)) -> CategoryOut:
    category = await menu_service.create_category(db, data)
    return CategoryOut.model_validate(category)


@router.patch("/categories/{category_id}", response_model=CategoryOut, dependencies=AdminOnly)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
) -> CategoryOut:
    category = await menu_service.update_category(db, category_id, data)
    return CategoryOut.model_validate(category)


@router.delete(
    "/categories/{category_id}",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    dependencies=AdminOnly,
)
async def delete_category(category_id: str, db: AsyncSession = Depends(get_db)) -> SuccessResponse:
    await menu_service.delete_category(db, category_id)
    return SuccessResponse(success=True)


# =============================================================================
# ITEMS
# =============================================================================

@router.post("/items", response_model=ItemOut, dependencies=AdminOnly)
async def create_item(data: ItemCreate, db: AsyncSession = Depends(get_db)) -> ItemOut:
    item = await menu_service.create_item(db, data)
    return ItemOut.model_validate(item)


@router.patch("/items/{item_id}", response_model=ItemOut, dependencies=AdminOnly)
async def update_item(
    item_id: str,
    data: ItemUpdate,
    db: AsyncSession = Depends(get_db),
) -> ItemOut:
    item = await menu_service.update_item(db, item_id, data)
    return ItemOut.model_validate(item)


@router.delete(
    "/items/{item_id}",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    dependencies=AdminOnly,
)
async def delete_item(item_id: str, db: AsyncSession = Depends(get_db)) -> SuccessResponse:
    await menu_service.delete_item(db, item_id)
    return SuccessResponse(success=True)


# =============================================================================
# BRANDING & SETTINGS
# =============================================================================

@router.get("/branding", response_model=BrandingResponse, dependencies=AdminOnly)
async def get_branding(db: AsyncSession = Depends(get_db)) -> BrandingResponse:
    restaurant = await require_first_restaurant(db)
    return BrandingResponse(brand_colors=restaurant.brand_colors)


@router.put("/branding", response_model=BrandingResponse, dependencies=AdminOnly)
async def put_branding(data: BrandingUpdate, db: AsyncSession = Depends(get_db)) -> BrandingResponse:
    restaurant = await update_brand_colors(db, data.brand_colors)
    return BrandingResponse(brand_colors=restaurant.brand_colors)


@router.get("/settings", response_model=SettingsResponse, dependencies=AdminOnly)
async def get_restaurant_settings(db: AsyncSession = Depends(get_db)) -> SettingsResponse:
    return settings_view(await require_first_restaurant(db))


@router.put("/settings", response_model=SettingsResponse, dependencies=AdminOnly)
async def put_restaurant_settings(
    data: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> SettingsResponse:
    return settings_view(await update_settings(db, data))


# =============================================================================
# THEME & UI SETTINGS
# =============================================================================

@router.get("/theme", dependencies=AdminOnly)
async def get_theme(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    theme = await get_or_create_theme(db)
    return {"theme": ThemeOut.model_validate(theme).model_dump(by_alias=True)}


@router.put("/theme", dependencies=AdminOnly)
async def put_theme(data: ThemeUpdate, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    theme = await save_theme(db, data)
    return {"theme": ThemeOut.model_validate(theme).model_dump(by_alias=True), "success": True}


@router.get("/ui-settings", response_model=UiSettingsOut, dependencies=AdminOnly)
async def get_admin_ui_settings(db: AsyncSession = Depends(get_db)) -> UiSettingsOut:
    return await get_ui_settings(db)


@router.put("/ui-settings", response_model=UiSettingsOut, dependencies=AdminOnly)
async def put_admin_ui_settings(
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Save display sizes; every out-of-range value is reported at once."""
    values, errors = validate_ui_settings(payload)
    if errors:
        return JSONResponse({"error": "Validation failed", "details": errors}, status_code=400)
    return await save_ui_settings(db, values)


# =============================================================================
# FEEDBACK
# =============================================================================

@router.get("/feedback", response_model=FeedbackListResponse, dependencies=AdminOnly)
async def list_feedback(db: AsyncSession = Depends(get_db)) -> FeedbackListResponse:
    """All feedback, newest first."""
    result = await db.execute(select(Feedback).order_by(Feedback.created_at.desc()))
    return FeedbackListResponse(
        feedbacks=[FeedbackOut.model_validate(f) for f in result.scalars().all()]
    )


# =============================================================================
# MEDIA & MAINTENANCE
# =============================================================================

@router.post("/media/upload", response_model=MediaInfo, dependencies=AdminOnly)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
) -> MediaInfo:
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    data = await read_upload(file)
    media = await create_media(db, file.content_type, data)
    return MediaInfo.model_validate(media)


@router.post("/backfill-slugs", dependencies=AdminOnly)
async def backfill_restaurant_slugs(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Recompute every restaurant slug from its English name."""
    results, total = await backfill_slugs(db)
    return {
        "success": True,
        "message": f"Backfilled slugs for {len(results)} restaurant(s)",
        "results": results,
        "totalRestaurants": total,
    }
