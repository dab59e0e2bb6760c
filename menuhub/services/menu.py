"""
Menu Service

Reads the Section → Category → Item tree and performs the single-row
create/update/delete operations behind the admin menu builder.

Every mutation invalidates the cached public menu.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Any, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from menuhub.models import Category, Item, Restaurant, Section
from menuhub.schemas import (
    CategoryCreate,
    CategoryUpdate,
    ItemCreate,
    ItemUpdate,
    SectionCreate,
    SectionTree,
    SectionUpdate,
)
from menuhub.services.cache import invalidate_menu
from menuhub.services.errors import NotFoundError

logger = logging.getLogger(__name__)


# =============================================================================
# MENU TREE
# =============================================================================

async def fetch_menu_tree(session: AsyncSession, active_only: bool = True) -> list[Section]:
    """Load sections with their categories and items, ordered by sort order."""
    query = select(Section).order_by(Section.sort_order, Section.created_at)

    if active_only:
        query = query.where(Section.is_active.is_(True)).options(
            selectinload(Section.categories.and_(Category.is_active.is_(True)))
            .selectinload(Category.items.and_(Item.is_active.is_(True)))
        )

    result = await session.execute(query)
    return list(result.scalars().unique().all())


async def load_menu_sections(session: AsyncSession, active_only: bool = True) -> list[dict[str, Any]]:
    """Menu tree as JSON-ready dictionaries (camelCase keys)."""
    sections = await fetch_menu_tree(session, active_only=active_only)
    return [
        SectionTree.model_validate(section).model_dump(by_alias=True, mode="json")
        for section in sections
    ]


# =============================================================================
# HELPERS
# =============================================================================

async def _next_sort_order(session: AsyncSession, model: Type, parent_column, parent_id: str) -> int:
    """One past the highest sort order among siblings (0 for the first)."""
    result = await session.execute(
        select(func.max(model.sort_order)).where(parent_column == parent_id)
    )
    current = result.scalar()
    return 0 if current is None else current + 1


async def _get_or_404(session: AsyncSession, model: Type, record_id: str):
    record = await session.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{model.__name__} not found")
    return record


async def _apply_update(session: AsyncSession, model: Type, record_id: str, changes: dict[str, Any]):
    record = await _get_or_404(session, model, record_id)
    columns = model.__table__.c
    for key, value in changes.items():
        if value is None and not columns[key].nullable:
            continue
        setattr(record, key, value)
    await session.commit()
    await session.refresh(record)
    invalidate_menu()
    return record


async def _delete(session: AsyncSession, model: Type, record_id: str) -> None:
    record = await _get_or_404(session, model, record_id)
    await session.delete(record)
    await session.commit()
    invalidate_menu()
    logger.info(f"Deleted {model.__name__} {record_id}")


# =============================================================================
# SECTIONS
# =============================================================================

async def create_section(session: AsyncSession, data: SectionCreate) -> Section:
    result = await session.execute(select(Restaurant).order_by(Restaurant.created_at).limit(1))
    restaurant = result.scalar_one_or_none()
    if restaurant is None:
        raise NotFoundError("Restaurant not found")

    sort_order = data.sort_order
    if sort_order is None:
        sort_order = await _next_sort_order(session, Section, Section.restaurant_id, restaurant.id)

    section = Section(
        restaurant_id=restaurant.id,
        name_ku=data.name_ku,
        name_en=data.name_en,
        name_ar=data.name_ar,
        sort_order=sort_order,
        is_active=True if data.is_active is None else data.is_active,
    )
    session.add(section)
    await session.commit()
    await session.refresh(section)
    invalidate_menu()

    logger.info(f"Section {section.id} created ({section.name_en})")
    return section


async def update_section(session: AsyncSession, section_id: str, data: SectionUpdate) -> Section:
    return await _apply_update(session, Section, section_id, data.model_dump(exclude_unset=True))


async def delete_section(session: AsyncSession, section_id: str) -> None:
    await _delete(session, Section, section_id)


# =============================================================================
# CATEGORIES
# =============================================================================

async def create_category(session: AsyncSession, data: CategoryCreate) -> Category:
    await _get_or_404(session, Section, data.section_id)

    sort_order = data.sort_order
    if sort_order is None:
        sort_order = await _next_sort_order(session, Category, Category.section_id, data.section_id)

    category = Category(
        section_id=data.section_id,
        name_ku=data.name_ku,
        name_en=data.name_en,
        name_ar=data.name_ar,
        image_media_id=data.image_media_id,
        sort_order=sort_order,
        is_active=True if data.is_active is None else data.is_active,
    )
    session.add(category)
    await session.commit()
    await session.refresh(category)
    invalidate_menu()

    logger.info(f"Category {category.id} created ({category.name_en})")
    return category


async def update_category(session: AsyncSession, category_id: str, data: CategoryUpdate) -> Category:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("section_id"):
        await _get_or_404(session, Section, changes["section_id"])
    return await _apply_update(session, Category, category_id, changes)


async def delete_category(session: AsyncSession, category_id: str) -> None:
    await _delete(session, Category, category_id)


# =============================================================================
# ITEMS
# =============================================================================

async def create_item(session: AsyncSession, data: ItemCreate) -> Item:
    await _get_or_404(session, Category, data.category_id)

    sort_order = data.sort_order
    if sort_order is None:
        sort_order = await _next_sort_order(session, Item, Item.category_id, data.category_id)

    item = Item(
        category_id=data.category_id,
        name_ku=data.name_ku,
        name_en=data.name_en,
        name_ar=data.name_ar,
        description_ku=data.description_ku,
        description_en=data.description_en,
        description_ar=data.description_ar,
        price=data.price,
        image_media_id=data.image_media_id,
        sort_order=sort_order,
        is_active=True if data.is_active is None else data.is_active,
    )
    session.add(item)
    await session.commit()
    await session.refresh(item)
    invalidate_menu()

    logger.info(f"Item {item.id} created ({item.name_en})")
    return item


async def update_item(session: AsyncSession, item_id: str, data: ItemUpdate) -> Item:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("category_id"):
        await _get_or_404(session, Category, changes["category_id"])
    return await _apply_update(session, Item, item_id, changes)


async def delete_item(session: AsyncSession, item_id: str) -> None:
    await _delete(session, Item, item_id)
