#!/usr/bin/env python3
"""
Maintenance Script: Recalculate Product Ratings

Rebuilds ``ratingStats`` (sum, count, distribution, avg) on every product
from its published reviews. Use it to repair drift in the incrementally
maintained snapshot or to bootstrap it after a schema change. Idempotent and
safe to run while the service is live.

Usage:
    python scripts/recalculate_product_ratings.py
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
from app.repositories.product import ProductRatingRepository
from app.repositories.review import ReviewRepository
from app.services.rating import ProductRatingService
from app.services.recompute import RatingRecomputeJob, RecomputeReport


async def recalculate_product_ratings() -> RecomputeReport:
    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        db = client[config.mongodb_database]
        products = ProductRatingRepository(db[config.products_collection])
        job = RatingRecomputeJob(
            products=products,
            reviews=ReviewRepository(db[config.reviews_collection]),
            ratings=ProductRatingService(products),
        )
        return await job.run()
    finally:
        client.close()


if __name__ == "__main__":
    print("🔄 Recalculating product rating snapshots")
    print("=" * 60)

    try:
        report = asyncio.run(recalculate_product_ratings())
        print(f"\n✅ Processed {report.processed} products, {report.changed} had drifted")
    except Exception as e:
        logger.error("Recalculate product ratings failed", error=e,
                     metadata={"event": "rating_recompute_failed"})
        print(f"\n❌ Recalculation failed: {e}")
        sys.exit(1)
