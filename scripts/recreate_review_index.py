#!/usr/bin/env python3
"""
Migration Script: Recreate the review uniqueness index

Older databases carry a full unique index on (productId, userId), which
blocks a user from reviewing again after deleting their review. This drops it
and creates the partial unique index that only covers published and hidden
reviews.

Usage:
    python scripts/recreate_review_index.py
"""

import asyncio
import os
import sys

from dotenv import load_dotenv

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
load_dotenv()

from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import config
from app.core.logger import logger
from app.db.indexes import recreate_active_review_index


async def recreate_review_index() -> dict:
    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        result = await recreate_active_review_index(client[config.mongodb_database])
        logger.info(
            "Review uniqueness index recreated",
            metadata={"event": "review_index_recreated", **result}
        )
        return result
    finally:
        client.close()


if __name__ == "__main__":
    print("🔄 Recreating partial unique index on reviews")
    print("=" * 60)

    try:
        result = asyncio.run(recreate_review_index())
        print(f"Indexes before: {', '.join(result['before'])}")
        print(f"Indexes after:  {', '.join(result['after'])}")
        print("\n✅ Users can now review a product again after deleting their review")
    except Exception as e:
        logger.error("Recreate review index failed", error=e,
                     metadata={"event": "review_index_failed"})
        print(f"\n❌ Migration failed: {e}")
        sys.exit(1)
