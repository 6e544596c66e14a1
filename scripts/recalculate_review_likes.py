#!/usr/bin/env python3
"""
Maintenance Script: Recalculate Review Like Counters

The like record and the review's ``likesCount`` are written separately, so
the counter can drift under failures. This resets every ``likesCount`` to the
number of matching documents in ``review_likes``. Idempotent.

Usage:
    python scripts/recalculate_review_likes.py
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
from app.repositories.review import ReviewRepository
from app.repositories.review_like import ReviewLikeRepository
from app.services.recompute import LikeCountRepairJob, RecomputeReport


async def recalculate_review_likes() -> RecomputeReport:
    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        db = client[config.mongodb_database]
        job = LikeCountRepairJob(
            reviews=ReviewRepository(db[config.reviews_collection]),
            likes=ReviewLikeRepository(db[config.review_likes_collection]),
        )
        return await job.run()
    finally:
        client.close()


if __name__ == "__main__":
    print("🔄 Recalculating review like counters")
    print("=" * 60)

    try:
        report = asyncio.run(recalculate_review_likes())
        print(f"\n✅ Checked {report.processed} reviews, repaired {report.changed}")
    except Exception as e:
        logger.error("Recalculate review likes failed", error=e,
                     metadata={"event": "likes_repair_failed"})
        print(f"\n❌ Repair failed: {e}")
        sys.exit(1)
