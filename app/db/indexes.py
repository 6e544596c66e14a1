"""
Database index management for MongoDB.

The uniqueness rules of the review subsystem live here as store-level
constraints: one active review per (product, user) and one like per
(review, user). Services rely on the resulting DuplicateKeyError instead of
check-then-insert. Indexes are created at application startup.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

from app.core.config import config
from app.core.logger import logger
from app.models.review import ReviewStatus

ACTIVE_REVIEW_INDEX = "uniq_active_review_per_user"
LEGACY_REVIEW_INDEX = "productId_1_userId_1"
REVIEW_LIKE_INDEX = "uniq_like_per_user"


def active_review_index() -> IndexModel:
    """Partial unique index: deleted reviews do not block a new review"""
    return IndexModel(
        [("productId", ASCENDING), ("userId", ASCENDING)],
        unique=True,
        partialFilterExpression={
            "status": {"$in": [s.value for s in ReviewStatus.counted_for_uniqueness()]}
        },
        name=ACTIVE_REVIEW_INDEX,
    )


REVIEW_INDEXES = [
    IndexModel([("productId", ASCENDING), ("createdAt", DESCENDING)], name="idx_product_created"),
    IndexModel(
        [("productId", ASCENDING), ("status", ASCENDING), ("rating", DESCENDING)],
        name="idx_product_status_rating",
    ),
    IndexModel([("userId", ASCENDING)], name="idx_user"),
    # Most-liked sort
    IndexModel(
        [
            ("productId", ASCENDING),
            ("status", ASCENDING),
            ("likesCount", DESCENDING),
            ("createdAt", DESCENDING),
        ],
        name="idx_product_status_likes_created",
    ),
]

REVIEW_LIKE_INDEXES = [
    IndexModel(
        [("reviewId", ASCENDING), ("userId", ASCENDING)],
        unique=True,
        name=REVIEW_LIKE_INDEX,
    ),
    IndexModel([("userId", ASCENDING)], name="idx_like_user"),
]


async def create_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create all review and review-like indexes. Safe to call repeatedly.

    Args:
        db: MongoDB database instance
    """
    reviews = db[config.reviews_collection]
    likes = db[config.review_likes_collection]

    try:
        await reviews.create_indexes(REVIEW_INDEXES + [active_review_index()])
        logger.info(
            "Review indexes ensured",
            metadata={"event": "indexes_created", "collection": reviews.name}
        )

        await likes.create_indexes(REVIEW_LIKE_INDEXES)
        logger.info(
            "Review like indexes ensured",
            metadata={"event": "indexes_created", "collection": likes.name}
        )
    except Exception as e:
        logger.error("Failed to create database indexes", error=e,
                     metadata={"event": "indexes_failed"})
        raise


async def recreate_active_review_index(db: AsyncIOMotorDatabase) -> dict:
    """
    Replace the legacy full unique (productId, userId) index with the partial one.

    Returns the index names before and after the migration.
    """
    reviews = db[config.reviews_collection]

    before = await reviews.index_information()
    if LEGACY_REVIEW_INDEX in before:
        await reviews.drop_index(LEGACY_REVIEW_INDEX)
        logger.info(f"Dropped legacy index {LEGACY_REVIEW_INDEX}",
                    metadata={"event": "index_dropped", "index": LEGACY_REVIEW_INDEX})
    if ACTIVE_REVIEW_INDEX in before:
        await reviews.drop_index(ACTIVE_REVIEW_INDEX)

    await reviews.create_indexes([active_review_index()])
    after = await reviews.index_information()

    return {"before": sorted(before), "after": sorted(after)}
