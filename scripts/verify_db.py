"""
Database Verification Script

Prints row counts and the singleton records for every table, and
optionally smoke-tests a running server's public endpoints.
Run from project root: python scripts/verify_db.py [--api]

Author: Khalil_Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import os
import sys
from datetime import datetime

import httpx

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select

from menuhub.database import dispose_db, get_session_maker
from menuhub.models import (
    THEME_ID,
    UI_SETTINGS_ID,
    AdminUser,
    Category,
    Feedback,
    Item,
    Media,
    Restaurant,
    Section,
    Theme,
    UiSettings,
)

# Configuration
API_BASE_URL = "http://localhost:8001"
TABLES = [Restaurant, Section, Category, Item, Feedback, Media, Theme, UiSettings, AdminUser]


async def verify_database() -> bool:
    print("=" * 60)
    print("🔍 DATABASE VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 60)

    try:
        async with get_session_maker()() as session:
            print("\n📊 ROW COUNTS:")
            for model in TABLES:
                count = await session.scalar(select(func.count()).select_from(model))
                print(f"   {model.__tablename__:<14} {count}")

            print("\n🏠 RESTAURANTS:")
            result = await session.execute(select(Restaurant).order_by(Restaurant.name_en))
            for restaurant in result.scalars():
                print(f"   /{restaurant.slug:<25} {restaurant.name_en}")

            theme = await session.get(Theme, THEME_ID)
            print(f"\n🎨 Theme: {theme.app_bg if theme else '(not created yet)'}")

            ui = await session.get(UiSettings, UI_SETTINGS_ID)
            print(f"🔠 UI settings: {'stored' if ui else 'defaults'}")
    except Exception as e:
        print(f"\n❌ Could not query database: {e}")
        return False
    finally:
        await dispose_db()

    print("\n✅ Schema in place")
    return True


async def verify_api(base_url: str) -> bool:
    print("\n" + "=" * 60)
    print(f"🌐 API CHECKS ({base_url})")
    print("=" * 60)

    ok = True
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        for path in ("/health", "/api/menu", "/data/theme", "/api/ui-settings"):
            try:
                response = await client.get(path)
            except httpx.HTTPError as e:
                print(f"   ❌ {path}: {e}")
                ok = False
                continue
            mark = "✅" if response.status_code == 200 else "❌"
            ok = ok and response.status_code == 200
            print(f"   {mark} {path}: {response.status_code}")
    return ok


def main() -> None:
    parser = argparse.ArgumentParser(description="Database Verification Script")
    parser.add_argument("--api", action="store_true", help="Also check a running server")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    success = asyncio.run(verify_database())
    if args.api:
        success = asyncio.run(verify_api(args.url)) and success

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
