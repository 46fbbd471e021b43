"""
Database Setup Script
Creates the database tables for the configured DB_URL
"""

import asyncio
import sys

from dotenv import load_dotenv

from yt_commenter.app.config import get_config, setup_logging, validate_config
from yt_commenter.infrastructure.database.connection import db_manager


async def _create_tables() -> None:
    try:
        await db_manager.create_tables()
    finally:
        await db_manager.close()


def main():
    """Initialize database and validate configuration"""
    load_dotenv()

    print("=" * 60)
    print("🔧 YouTube Comment Assistant - Database Setup")
    print("=" * 60)

    setup_logging()

    print("\n🔍 Validating Configuration...")
    validation = validate_config()

    if not validation["valid"]:
        print("\n❌ Configuration validation failed:")
        for error in validation["errors"]:
            print(f"  - {error}")
        sys.exit(1)

    if validation["warnings"]:
        print("\n⚠️  Configuration warnings:")
        for warning in validation["warnings"]:
            print(f"  - {warning}")

    config = get_config()
    print(f"\n📦 Using database: {config.database.url}")

    try:
        print("\n📊 Creating database tables...")
        asyncio.run(_create_tables())
    except Exception as e:
        print(f"\n❌ Database setup failed: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("✅ Database setup complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
