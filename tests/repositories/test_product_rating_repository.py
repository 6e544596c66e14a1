"""Tests for ProductRatingRepository"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from app.models.rating import RatingDistribution, RatingSnapshot
from app.repositories.product import ProductRatingRepository

PRODUCT_ID = "507f1f77bcf86cd799439011"


@pytest.fixture
def mock_collection():
    collection = MagicMock()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
    collection.find_one = AsyncMock()
    return collection


@pytest.fixture
def repository(mock_collection):
    return ProductRatingRepository(mock_collection)


class TestIncrementRatingStats:
    """Tests for the atomic delta write"""

    @pytest.mark.asyncio
    async def test_increment_prefixes_rating_stats(self, repository, mock_collection):
        matched = await repository.increment_rating_stats(
            PRODUCT_ID, {"sum": 5, "count": 1, "distribution.5": 1}
        )

        assert matched is True
        mock_collection.update_one.assert_called_once_with(
            {"_id": ObjectId(PRODUCT_ID)},
            {"$inc": {"ratingStats.sum": 5, "ratingStats.count": 1, "ratingStats.distribution.5": 1}},
        )

    @pytest.mark.asyncio
    async def test_guard_is_part_of_the_filter(self, repository, mock_collection):
        """count > 0 is checked by the same write that decrements"""
        mock_collection.update_one.return_value = MagicMock(matched_count=0)

        matched = await repository.increment_rating_stats(
            PRODUCT_ID, {"sum": -5, "count": -1, "distribution.5": -1}, require_positive_count=True
        )

        assert matched is False
        query = mock_collection.update_one.call_args.args[0]
        assert query == {"_id": ObjectId(PRODUCT_ID), "ratingStats.count": {"$gt": 0}}


class TestRatingReads:
    """Tests for snapshot reads"""

    @pytest.mark.asyncio
    async def test_get_rating_totals(self, repository, mock_collection):
        mock_collection.find_one.return_value = {"_id": ObjectId(PRODUCT_ID), "ratingStats": {"sum": 9, "count": 2}}

        assert await repository.get_rating_totals(PRODUCT_ID) == {"sum": 9, "count": 2}

    @pytest.mark.asyncio
    async def test_get_rating_totals_without_stats(self, repository, mock_collection):
        """Products created before ratings existed read as zero"""
        mock_collection.find_one.return_value = {"_id": ObjectId(PRODUCT_ID)}

        assert await repository.get_rating_totals(PRODUCT_ID) == {"sum": 0, "count": 0}

    @pytest.mark.asyncio
    async def test_get_rating_totals_missing_product(self, repository, mock_collection):
        mock_collection.find_one.return_value = None

        assert await repository.get_rating_totals(PRODUCT_ID) is None

    @pytest.mark.asyncio
    async def test_get_rating_snapshot(self, repository, mock_collection):
        mock_collection.find_one.return_value = {
            "_id": ObjectId(PRODUCT_ID),
            "ratingStats": {"sum": 9, "count": 2, "avg": 4.5, "distribution": {"4": 1, "5": 1}},
        }

        snapshot = await repository.get_rating_snapshot(PRODUCT_ID)

        assert snapshot.avg == 4.5
        assert snapshot.distribution.as_dict() == {"1": 0, "2": 0, "3": 0, "4": 1, "5": 1}


class TestRatingWrites:
    """Tests for average and snapshot overwrites"""

    @pytest.mark.asyncio
    async def test_set_rating_average_updates_legacy_rating(self, repository, mock_collection):
        await repository.set_rating_average(PRODUCT_ID, 4.5)

        update = mock_collection.update_one.call_args.args[1]["$set"]
        assert update["ratingStats.avg"] == 4.5
        assert update["rating"] == 4.5
        assert "ratingStats.updatedAt" in update

    @pytest.mark.asyncio
    async def test_set_rating_snapshot(self, repository, mock_collection):
        snapshot = RatingSnapshot(
            sum=9, count=2, avg=4.5, distribution=RatingDistribution.from_counts({4: 1, 5: 1})
        )

        assert await repository.set_rating_snapshot(PRODUCT_ID, snapshot) is True

        update = mock_collection.update_one.call_args.args[1]["$set"]
        assert update["rating"] == 4.5
        assert update["ratingStats"]["distribution"] == {"1": 0, "2": 0, "3": 0, "4": 1, "5": 1}
        assert update["ratingStats"]["updatedAt"] is not None
