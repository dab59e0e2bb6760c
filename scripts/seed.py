"""
Database Seed Script

Creates the tables and inserts demo data (admin PIN 1234, Legends
Restaurant, sample menu, theme). Safe to run repeatedly.
Run from project root: python scripts/seed.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from menuhub.core.config import setup_logging
from menuhub.database import dispose_db, get_session_maker, init_db
from menuhub.seed import seed_database


async def main() -> None:
    print("=" * 60)
    print("🌱 SEEDING DATABASE")
    print("=" * 60)

    await init_db()
    try:
        async with get_session_maker()() as session:
            restaurant = await seed_database(session)
    finally:
        await dispose_db()

    print(f"\n✅ Restaurant: {restaurant.name_en}")
    print(f"   Welcome page: /{restaurant.slug}")
    print("   Admin PIN: 1234")
    print("\n🎉 Seeding completed!")


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"\n❌ Seeding failed: {e}")
        sys.exit(1)
