"""
Demo Data

Idempotent seed used by ``scripts/seed.py``: an admin (PIN 1234), the
Legends restaurant with its brand palette, three sections with
categories and items, and the theme singleton.

Running it again leaves existing rows untouched.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from menuhub.core.config import get_settings
from menuhub.models import THEME_ID, AdminUser, Category, Item, Restaurant, Section, Theme
from menuhub.services.auth import hash_pin

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PIN = "1234"
RESTAURANT_SLUG = "legends-restaurant"

BRAND_COLORS = {
    "menuGradientStart": "#5C0015",
    "menuGradientEnd": "#800020",
    "headerText": "#FFFFFF",
    "headerIcons": "#FFFFFF",
    "activeTab": "#FFFFFF",
    "inactiveTab": "#CCCCCC",
    "categoryCardBg": "#4A5568",
    "itemCardBg": "#4A5568",
    "itemNameText": "#FFFFFF",
    "itemDescText": "#E2E8F0",
    "priceText": "#FBBF24",
    "dividerLine": "#718096",
    "modalBg": "#2D3748",
    "modalOverlay": "rgba(0,0,0,0.7)",
    "buttonBg": "#800020",
    "buttonText": "#FFFFFF",
    "feedbackCardBg": "#4A5568",
    "feedbackCardText": "#FFFFFF",
    "welcomeOverlayColor": "#000000",
    "welcomeOverlayOpacity": 0.5,
}

# (ku, en, ar) -> categories -> items as (ku, en, ar, description_en, price)
MENU = [
    (("مێنوو", "Menu", "قائمة الطعام"), [
        (("پێشخوارد", "Appetizers", "المقبلات"), [
            ("هوموس", "Hummus", "حمص", "Fresh hummus with olives", 5.00),
            ("تابولی", "Tabbouleh", "تبولة", "Parsley, bulgur and lemon salad", 4.50),
        ]),
        (("خواردنی سەرەکی", "Main Dishes", "الأطباق الرئيسية"), [
            ("کەباب", "Kebab", "كباب", "Grilled minced lamb skewers", 12.00),
            ("شاوەرما", "Shawarma", "شاورما", "Chicken shawarma with garlic sauce", 8.00),
        ]),
    ]),
    (("شیشە", "Shisha", "الشيشة"), [
        (("کلاسیک", "Classic", "كلاسيكي"), [
            ("شیشەی کلاسیک", "Classic Shisha", "شيشة كلاسيكية", "Double apple", 15.00),
        ]),
    ]),
    (("خواردنەوەکان", "Drinks", "المشروبات"), [
        (("خواردنەوەی گەرم", "Hot Drinks", "مشروبات ساخنة"), [
            ("چای", "Tea", "شاي", None, 2.00),
            ("قاوە", "Coffee", "قهوة", None, 3.00),
        ]),
        (("خواردنەوەی سارد", "Cold Drinks", "مشروبات باردة"), [
            ("لیمۆناد", "Lemonade", "ليمونادة", None, 3.50),
            ("جوس", "Juice", "عصير", None, 4.00),
        ]),
    ]),
]


async def _ensure_admin(session: AsyncSession) -> None:
    count = await session.scalar(select(func.count(AdminUser.id)))
    if count:
        logger.info("Admin user already exists")
        return
    session.add(AdminUser(pin_hash=hash_pin(DEFAULT_ADMIN_PIN)))
    logger.info(f"Admin user created (PIN {DEFAULT_ADMIN_PIN})")


async def _ensure_restaurant(session: AsyncSession) -> Restaurant:
    result = await session.execute(select(Restaurant).where(Restaurant.slug == RESTAURANT_SLUG))
    restaurant = result.scalar_one_or_none()
    if restaurant is not None:
        logger.info(f"Restaurant '{restaurant.name_en}' already exists")
        return restaurant

    restaurant = Restaurant(
        slug=RESTAURANT_SLUG,
        name_ku="رێستۆرانتی لێجەندز",
        name_en="Legends Restaurant",
        name_ar="مطعم الأساطير",
        google_maps_url="https://maps.google.com",
        phone_number="+9647501234567",
        brand_colors=BRAND_COLORS,
    )
    session.add(restaurant)
    await session.flush()
    logger.info(f"Restaurant '{restaurant.name_en}' created (slug: {restaurant.slug})")
    return restaurant


async def _ensure_menu(session: AsyncSession, restaurant: Restaurant) -> None:
    count = await session.scalar(
        select(func.count(Section.id)).where(Section.restaurant_id == restaurant.id)
    )
    if count:
        logger.info(f"Restaurant already has {count} section(s), skipping menu")
        return

    for section_order, (section_names, categories) in enumerate(MENU):
        section = Section(
            restaurant_id=restaurant.id,
            name_ku=section_names[0],
            name_en=section_names[1],
            name_ar=section_names[2],
            sort_order=section_order,
        )
        for category_order, (category_names, items) in enumerate(categories):
            category = Category(
                name_ku=category_names[0],
                name_en=category_names[1],
                name_ar=category_names[2],
                sort_order=category_order,
            )
            for item_order, (ku, en, ar, description, price) in enumerate(items):
                category.items.append(Item(
                    name_ku=ku,
                    name_en=en,
                    name_ar=ar,
                    description_en=description,
                    price=price,
                    sort_order=item_order,
                ))
            section.categories.append(category)
        session.add(section)
    logger.info(f"Sample menu created ({len(MENU)} sections)")


async def _ensure_theme(session: AsyncSession) -> None:
    if await session.get(Theme, THEME_ID) is None:
        session.add(Theme(id=THEME_ID, app_bg=get_settings().default_theme_bg))
        logger.info("Theme created")


async def seed_database(session: AsyncSession) -> Restaurant:
    """Insert the demo data that is missing and commit."""
    await _ensure_admin(session)
    restaurant = await _ensure_restaurant(session)
    await _ensure_menu(session, restaurant)
    await _ensure_theme(session)
    await session.commit()
    return restaurant
