"""
Restaurant Service

Profile lookups (singleton or by slug), branding and settings updates,
and slug maintenance.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from menuhub.models import Media, Restaurant
from menuhub.schemas import SettingsResponse, SettingsUpdate
from menuhub.services.errors import NotFoundError
from menuhub.services.routing import disambiguate_slug, slugify

logger = logging.getLogger(__name__)


def _with_media(query):
    """Eager-load logo/background metadata without the binary payload."""
    return query.options(
        selectinload(Restaurant.logo).load_only(Media.id, Media.mime_type, Media.size),
        selectinload(Restaurant.welcome_background).load_only(Media.id, Media.mime_type, Media.size),
    )


async def get_first_restaurant(session: AsyncSession, with_media: bool = False) -> Optional[Restaurant]:
    """The deployment's restaurant (first row)."""
    query = select(Restaurant).order_by(Restaurant.created_at, Restaurant.id).limit(1)
    if with_media:
        query = _with_media(query)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def require_first_restaurant(session: AsyncSession) -> Restaurant:
    restaurant = await get_first_restaurant(session)
    if restaurant is None:
        raise NotFoundError("Restaurant not found")
    return restaurant


async def get_restaurant_by_slug(
    session: AsyncSession,
    slug: str,
    with_media: bool = True,
) -> Optional[Restaurant]:
    query = select(Restaurant).where(Restaurant.slug == slug)
    if with_media:
        query = _with_media(query)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_slugs(session: AsyncSession) -> list[Restaurant]:
    result = await session.execute(select(Restaurant).order_by(Restaurant.name_en))
    return list(result.scalars().all())


# =============================================================================
# BRANDING
# =============================================================================

async def update_brand_colors(session: AsyncSession, brand_colors: dict[str, Any]) -> Restaurant:
    restaurant = await require_first_restaurant(session)
    restaurant.brand_colors = brand_colors
    await session.commit()
    await session.refresh(restaurant)
    logger.info(f"Brand colours updated for {restaurant.slug}")
    return restaurant


# =============================================================================
# SETTINGS
# =============================================================================

_NULLABLE_TEXT = ("google_maps_url", "phone_number")
_REQUIRED_TEXT = ("name_ku", "name_en", "name_ar", "welcome_overlay_color")


def settings_view(restaurant: Restaurant) -> SettingsResponse:
    """Admin settings projection; unset optional text is shown as ''."""
    return SettingsResponse(
        name_ku=restaurant.name_ku,
        name_en=restaurant.name_en,
        name_ar=restaurant.name_ar,
        google_maps_url=restaurant.google_maps_url or "",
        phone_number=restaurant.phone_number or "",
        welcome_overlay_color=restaurant.welcome_overlay_color,
        welcome_overlay_opacity=restaurant.welcome_overlay_opacity,
        welcome_text_en=restaurant.welcome_text_en or "",
        logo_media_id=restaurant.logo_media_id,
        welcome_background_media_id=restaurant.welcome_background_media_id,
    )


async def update_settings(session: AsyncSession, data: SettingsUpdate) -> Restaurant:
    """
    Apply a partial settings update.

    Only keys present in the request are touched. Empty strings clear
    the optional text fields; required fields ignore null.
    """
    restaurant = await require_first_restaurant(session)
    supplied = data.model_dump(exclude_unset=True)

    for key in _REQUIRED_TEXT:
        if supplied.get(key) is not None:
            setattr(restaurant, key, supplied[key])

    for key in _NULLABLE_TEXT:
        if key in supplied:
            setattr(restaurant, key, supplied[key] or None)

    if supplied.get("welcome_overlay_opacity") is not None:
        restaurant.welcome_overlay_opacity = supplied["welcome_overlay_opacity"]

    if "welcome_text_en" in supplied:
        text = (supplied["welcome_text_en"] or "").strip()
        restaurant.welcome_text_en = text or None

    for key in ("logo_media_id", "welcome_background_media_id"):
        if key in supplied:
            setattr(restaurant, key, supplied[key] or None)

    await session.commit()
    await session.refresh(restaurant)
    logger.info(f"Settings updated for {restaurant.slug}: {sorted(supplied)}")
    return restaurant


# =============================================================================
# SLUGS
# =============================================================================

async def backfill_slugs(session: AsyncSession) -> tuple[list[dict[str, str]], int]:
    """
    Recompute every restaurant's slug from its English name.

    Returns:
        (changes made, total restaurants)
    """
    restaurants = await list_slugs(session)
    taken = {r.slug: r.id for r in restaurants}
    changes = []

    for restaurant in restaurants:
        expected = slugify(restaurant.name_en or "restaurant") or "restaurant"
        if restaurant.slug == expected:
            continue

        owner = taken.get(expected)
        final = expected
        if owner is not None and owner != restaurant.id:
            final = disambiguate_slug(expected, restaurant.id)
        if final == restaurant.slug:
            continue

        changes.append({
            "id": restaurant.id,
            "nameEn": restaurant.name_en,
            "oldSlug": restaurant.slug or "(missing)",
            "newSlug": final,
        })
        taken.pop(restaurant.slug, None)
        taken[final] = restaurant.id
        restaurant.slug = final

    await session.commit()
    logger.info(f"Backfilled slugs for {len(changes)} of {len(restaurants)} restaurant(s)")
    return changes, len(restaurants)
