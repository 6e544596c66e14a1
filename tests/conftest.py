"""Shared test fixtures"""
import asyncio
from typing import Dict, List, Optional, Set, Tuple

import pytest
from bson import ObjectId
from pymongo import DESCENDING

from app.models.rating import RatingSnapshot, STAR_VALUES
from app.models.review import Review, ReviewStatus, utc_now
from app.models.user import User
from app.repositories.review import DuplicateReviewError
from app.services.rating import ProductRatingService
from app.services.review import ReviewService

PRODUCT_ID = "507f1f77bcf86cd799439011"
OTHER_PRODUCT_ID = "507f1f77bcf86cd799439022"
USER_ID = "65a1b2c3d4e5f6a7b8c9d0e1"
OTHER_USER_ID = "65a1b2c3d4e5f6a7b8c9d0e2"
ADMIN_ID = "65a1b2c3d4e5f6a7b8c9d0ff"

_SORT_FIELDS = {"createdAt": "created_at", "rating": "rating", "likesCount": "likes_count", "_id": "id"}


class InMemoryReviewRepository:
    """ReviewRepository double with the same uniqueness and guard semantics as the Mongo one"""

    def __init__(self):
        self.reviews: Dict[str, Review] = {}

    def _active(self, product_id: str, user_id: str) -> Optional[Review]:
        for review in self.reviews.values():
            if (review.product_id == product_id and review.user_id == user_id
                    and review.status in ReviewStatus.counted_for_uniqueness()):
                return review
        return None

    def _published(self, product_id: str, rating: Optional[int] = None) -> List[Review]:
        return [
            r for r in self.reviews.values()
            if r.product_id == product_id and r.status is ReviewStatus.PUBLISHED
            and (not rating or r.rating == rating)
        ]

    async def insert(self, review: Review) -> Review:
        await asyncio.sleep(0)
        existing = self._active(review.product_id, review.user_id)
        if existing is not None:
            raise DuplicateReviewError(existing.id)
        saved = review.model_copy(update={"id": str(ObjectId())})
        self.reviews[saved.id] = saved
        return saved

    async def find_by_id(self, review_id: str) -> Optional[Review]:
        await asyncio.sleep(0)
        return self.reviews.get(review_id)

    async def find_active_for_user(self, product_id: str, user_id: str) -> Optional[Review]:
        await asyncio.sleep(0)
        return self._active(product_id, user_id)

    async def apply_patch(self, review_id: str, changes: dict) -> Optional[Tuple[Review, Review]]:
        await asyncio.sleep(0)
        before = self.reviews.get(review_id)
        if before is None or before.status is not ReviewStatus.PUBLISHED:
            return None
        after = before.model_copy(update={**changes, "updated_at": utc_now()})
        self.reviews[review_id] = after
        return before, after

    async def mark_deleted(self, review_id: str) -> Optional[Tuple[Review, Review]]:
        await asyncio.sleep(0)
        before = self.reviews.get(review_id)
        if before is None or before.status is ReviewStatus.DELETED:
            return None
        after = before.model_copy(update={"status": ReviewStatus.DELETED, "updated_at": utc_now()})
        self.reviews[review_id] = after
        return before, after

    async def increment_likes(self, review_id: str) -> bool:
        await asyncio.sleep(0)
        review = self.reviews.get(review_id)
        if review is None:
            return False
        self.reviews[review_id] = review.model_copy(update={"likes_count": review.likes_count + 1})
        return True

    async def decrement_likes(self, review_id: str) -> bool:
        await asyncio.sleep(0)
        review = self.reviews.get(review_id)
        if review is None or review.likes_count <= 0:
            return False
        self.reviews[review_id] = review.model_copy(update={"likes_count": review.likes_count - 1})
        return True

    async def set_likes_count(self, review_id: str, likes_count: int) -> bool:
        review = self.reviews.get(review_id)
        if review is None or review.likes_count == likes_count:
            return False
        self.reviews[review_id] = review.model_copy(update={"likes_count": likes_count})
        return True

    async def find_published(self, product_id, sort, skip=0, limit=None, rating=None) -> List[Review]:
        await asyncio.sleep(0)
        items = self._published(product_id, rating)
        # Stable sorts applied from the last key to the first give a multi-key order
        for field, direction in reversed(list(sort)):
            items.sort(key=lambda r, f=_SORT_FIELDS[field]: getattr(r, f), reverse=direction == DESCENDING)
        items = items[skip:]
        return items[:limit] if limit is not None else items

    async def count_published(self, product_id: str, rating: Optional[int] = None) -> int:
        await asyncio.sleep(0)
        return len(self._published(product_id, rating))

    async def summarize_published(self, product_id: str) -> List[dict]:
        await asyncio.sleep(0)
        rows: Dict[int, dict] = {}
        for review in self._published(product_id):
            row = rows.setdefault(review.rating, {"rating": review.rating, "count": 0, "sum": 0})
            row["count"] += 1
            row["sum"] += review.rating
        return list(rows.values())

    async def iter_likes_counts(self):
        for review_id, review in list(self.reviews.items()):
            yield review_id, review.likes_count


class InMemoryReviewLikeRepository:
    """ReviewLikeRepository double; the set plays the role of the unique index"""

    def __init__(self):
        self.likes: Set[Tuple[str, str]] = set()

    async def add(self, review_id: str, user_id: str) -> bool:
        await asyncio.sleep(0)
        if (review_id, user_id) in self.likes:
            return False
        self.likes.add((review_id, user_id))
        return True

    async def remove(self, review_id: str, user_id: str) -> bool:
        await asyncio.sleep(0)
        if (review_id, user_id) not in self.likes:
            return False
        self.likes.discard((review_id, user_id))
        return True

    async def exists(self, review_id: str, user_id: str) -> bool:
        return (review_id, user_id) in self.likes

    async def liked_review_ids(self, review_ids, user_id: str) -> Set[str]:
        return {rid for rid in review_ids if (rid, user_id) in self.likes}

    async def count_for_review(self, review_id: str) -> int:
        return sum(1 for liked_id, _ in self.likes if liked_id == review_id)

    async def counts_by_review(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for review_id, _ in self.likes:
            counts[review_id] = counts.get(review_id, 0) + 1
        return counts


def empty_rating_stats() -> dict:
    return {"sum": 0, "count": 0, "distribution": {str(s): 0 for s in STAR_VALUES}, "avg": 0}


class InMemoryProductRatingRepository:
    """ProductRatingRepository double storing ``ratingStats`` as nested dicts"""

    def __init__(self, product_ids=()):
        self.products: Dict[str, dict] = {pid: {"ratingStats": empty_rating_stats()} for pid in product_ids}

    def stats(self, product_id: str) -> dict:
        return self.products[product_id]["ratingStats"]

    async def increment_rating_stats(self, product_id, increments, require_positive_count=False) -> bool:
        await asyncio.sleep(0)
        product = self.products.get(product_id)
        if product is None:
            return False
        stats = product.setdefault("ratingStats", {})
        if require_positive_count and stats.get("count", 0) <= 0:
            return False
        for path, value in increments.items():
            target = stats
            *parents, leaf = path.split(".")
            for key in parents:
                target = target.setdefault(key, {})
            target[leaf] = target.get(leaf, 0) + value
        return True

    async def get_rating_totals(self, product_id):
        await asyncio.sleep(0)
        product = self.products.get(product_id)
        if product is None:
            return None
        stats = product.get("ratingStats") or {}
        return {"sum": stats.get("sum", 0), "count": stats.get("count", 0)}

    async def set_rating_average(self, product_id, avg) -> bool:
        product = self.products.get(product_id)
        if product is None:
            return False
        product.setdefault("ratingStats", {})["avg"] = avg
        product["rating"] = avg
        return True

    async def set_rating_snapshot(self, product_id, snapshot: RatingSnapshot) -> bool:
        product = self.products.get(product_id)
        if product is None:
            return False
        product["rating"] = snapshot.avg
        product["ratingStats"] = snapshot.to_document()
        return True

    async def get_rating_snapshot(self, product_id) -> Optional[RatingSnapshot]:
        product = self.products.get(product_id)
        if product is None:
            return None
        return RatingSnapshot.model_validate(product.get("ratingStats") or {})

    async def iter_product_ids(self):
        for product_id in list(self.products):
            yield product_id


@pytest.fixture
def product_id():
    """Sample product ID for testing"""
    return PRODUCT_ID


@pytest.fixture
def review_repository():
    return InMemoryReviewRepository()


@pytest.fixture
def like_repository():
    return InMemoryReviewLikeRepository()


@pytest.fixture
def product_repository():
    return InMemoryProductRatingRepository([PRODUCT_ID, OTHER_PRODUCT_ID])


@pytest.fixture
def rating_service(product_repository):
    return ProductRatingService(product_repository)


@pytest.fixture
def review_service(review_repository, like_repository, rating_service):
    """ReviewService wired to in-memory repositories"""
    return ReviewService(review_repository, like_repository, rating_service)


@pytest.fixture
def acting_user():
    """Sample acting user for testing"""
    return User(id=USER_ID, email="jane@example.com", first_name="Jane", roles=["customer"])


@pytest.fixture
def other_user():
    return User(id=OTHER_USER_ID, email="bob@example.com", first_name="Bob", roles=["customer"])


@pytest.fixture
def admin_user():
    """Sample admin user for testing"""
    return User(id=ADMIN_ID, email="admin@example.com", first_name="Admin", roles=["admin", "customer"])


@pytest.fixture
def sample_review_doc():
    """Review document as stored in MongoDB"""
    now = utc_now()
    return {
        "_id": ObjectId("66aa00000000000000000001"),
        "productId": ObjectId(PRODUCT_ID),
        "userId": ObjectId(USER_ID),
        "userName": "Jane",
        "rating": 4,
        "text": "Solid product",
        "status": "published",
        "likesCount": 2,
        "createdAt": now,
        "updatedAt": now,
    }
