"""
Theme & UI Settings Service

Both are singletons with fixed ids. The theme row is created lazily
with the configured default background on first read. UI settings are
never created on read: when the row is missing (or the table cannot
be queried) the hardcoded defaults are served instead, so a public
page never fails over optional styling data.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Any, Mapping, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from menuhub.core.config import get_settings
from menuhub.models import THEME_ID, UI_SETTINGS_ID, Media, Theme, UiSettings
from menuhub.schemas import ThemeOut, ThemeUpdate, UiSettingsOut

logger = logging.getLogger(__name__)


# =============================================================================
# THEME
# =============================================================================

def default_theme() -> ThemeOut:
    """Theme served when the row cannot be read."""
    return ThemeOut(id=THEME_ID, app_bg=get_settings().default_theme_bg)


async def _load_theme(session: AsyncSession) -> Optional[Theme]:
    result = await session.execute(
        select(Theme)
        .where(Theme.id == THEME_ID)
        .options(
            selectinload(Theme.background_image).load_only(Media.id, Media.mime_type, Media.size)
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_theme(session: AsyncSession) -> Theme:
    """Return the theme singleton, creating it with the default colour if absent."""
    theme = await _load_theme(session)
    if theme is not None:
        return theme

    session.add(Theme(id=THEME_ID, app_bg=get_settings().default_theme_bg))
    await session.commit()
    logger.info(f"Theme {THEME_ID} created with default background")
    return await _load_theme(session)


async def save_theme(session: AsyncSession, data: ThemeUpdate) -> Theme:
    """Upsert the theme singleton."""
    theme = await session.get(Theme, THEME_ID)
    if theme is None:
        theme = Theme(id=THEME_ID, app_bg=data.app_bg)
        session.add(theme)

    theme.app_bg = data.app_bg
    if "background_image_media_id" in data.model_fields_set:
        theme.background_image_media_id = data.background_image_media_id or None

    await session.commit()
    logger.info(f"Theme updated: appBg={data.app_bg}")
    return await _load_theme(session)


# =============================================================================
# UI SETTINGS
# =============================================================================

DEFAULT_UI_SETTINGS = {
    "section_title_size": 22,
    "category_title_size": 18,
    "item_name_size": 16,
    "item_description_size": 14,
    "item_price_size": 16,
    "header_logo_size": 32,
}

# Accepted range per setting (inclusive)
UI_SETTING_LIMITS = {
    "section_title_size": (10, 40),
    "category_title_size": (10, 40),
    "item_name_size": (10, 40),
    "item_description_size": (10, 40),
    "item_price_size": (10, 40),
    "header_logo_size": (16, 80),
}


def _as_int(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def default_ui_settings() -> UiSettingsOut:
    return UiSettingsOut(**DEFAULT_UI_SETTINGS)


async def get_ui_settings(session: AsyncSession) -> UiSettingsOut:
    """Stored UI settings, or the defaults when absent or unreadable."""
    try:
        row = await session.get(UiSettings, UI_SETTINGS_ID)
    except SQLAlchemyError as e:
        logger.warning(f"UI settings unavailable, serving defaults: {e}")
        await session.rollback()
        return default_ui_settings()

    if row is None:
        return default_ui_settings()
    return UiSettingsOut.model_validate(row)


def validate_ui_settings(payload: Mapping[str, Any]) -> tuple[dict[str, int], list[str]]:
    """
    Check a camelCase UI settings payload.

    Omitted settings are left unchanged; numeric strings are accepted.
    All problems are collected rather than stopping at the first one.

    Returns:
        (clean snake_case values, error messages)
    """
    values = {}
    errors = []

    for name, (low, high) in UI_SETTING_LIMITS.items():
        key = to_camel(name)
        raw = payload.get(key, payload.get(name))
        if raw is None:
            continue

        number = _as_int(raw)
        if number is None:
            errors.append(f"{key} must be a number")
        elif not low <= number <= high:
            errors.append(f"{key} must be between {low} and {high}")
        else:
            values[name] = number

    return values, errors


async def save_ui_settings(session: AsyncSession, values: Mapping[str, int]) -> UiSettingsOut:
    """Upsert the UI settings singleton with already-validated values."""
    row = await session.get(UiSettings, UI_SETTINGS_ID)
    if row is None:
        row = UiSettings(id=UI_SETTINGS_ID)
        session.add(row)

    for name, value in values.items():
        setattr(row, name, value)

    await session.commit()
    await session.refresh(row)
    logger.info("UI settings updated")
    return UiSettingsOut.model_validate(row)
