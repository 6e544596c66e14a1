"""
Repository for review likes.

One document per (reviewId, userId); the unique index on that pair makes
``add`` the race-safe test for "already liked".
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, Set

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.errors import DatabaseError
from app.core.logger import logger
from app.models.review import to_object_id


class ReviewLikeRepository:
    """Repository for review like records"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def add(self, review_id: str, user_id: str) -> bool:
        """Insert a like. False if the user already likes the review."""
        try:
            await self.collection.insert_one({
                "reviewId": to_object_id(review_id),
                "userId": to_object_id(user_id),
                "createdAt": datetime.now(timezone.utc),
            })
        except DuplicateKeyError:
            return False
        except PyMongoError as e:
            logger.error("MongoDB error adding like", error=e)
            raise DatabaseError("Database error during like creation")
        return True

    async def remove(self, review_id: str, user_id: str) -> bool:
        try:
            result = await self.collection.delete_one({
                "reviewId": to_object_id(review_id),
                "userId": to_object_id(user_id),
            })
        except PyMongoError as e:
            logger.error("MongoDB error removing like", error=e)
            raise DatabaseError("Database error during like removal")
        return result.deleted_count > 0

    async def exists(self, review_id: str, user_id: str) -> bool:
        try:
            doc = await self.collection.find_one({
                "reviewId": to_object_id(review_id),
                "userId": to_object_id(user_id),
            })
        except PyMongoError as e:
            logger.error("MongoDB error checking like", error=e)
            raise DatabaseError("Database error during like lookup")
        return doc is not None

    async def liked_review_ids(self, review_ids: Iterable[str], user_id: str) -> Set[str]:
        """Subset of ``review_ids`` the user has liked"""
        review_ids = list(review_ids)
        if not review_ids:
            return set()
        try:
            cursor = self.collection.find(
                {
                    "reviewId": {"$in": [to_object_id(rid) for rid in review_ids]},
                    "userId": to_object_id(user_id),
                },
                {"reviewId": 1},
            )
            docs = await cursor.to_list(length=len(review_ids))
        except PyMongoError as e:
            logger.error("MongoDB error checking likes", error=e)
            raise DatabaseError("Database error during like lookup")
        return {str(doc["reviewId"]) for doc in docs}

    async def count_for_review(self, review_id: str) -> int:
        try:
            return await self.collection.count_documents({"reviewId": to_object_id(review_id)})
        except PyMongoError as e:
            logger.error("MongoDB error counting likes", error=e)
            raise DatabaseError("Database error during like count")

    async def counts_by_review(self) -> Dict[str, int]:
        """Number of like records per review id"""
        pipeline = [{"$group": {"_id": "$reviewId", "count": {"$sum": 1}}}]
        try:
            rows = await self.collection.aggregate(pipeline).to_list(length=None)
        except PyMongoError as e:
            logger.error("MongoDB error counting likes", error=e)
            raise DatabaseError("Database error during like count")
        return {str(row["_id"]): row["count"] for row in rows}
