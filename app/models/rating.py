"""
Product rating snapshot embedded in product documents as ``ratingStats``
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.review import RATING_MAX, RATING_MIN, utc_now

STAR_VALUES = tuple(range(RATING_MIN, RATING_MAX + 1))


def round_average(total: int, count: int) -> float:
    """Average rounded half-up to one decimal; 0 when nothing is counted"""
    if count <= 0:
        return 0
    avg = (Decimal(total) / Decimal(count)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(avg)


class RatingDistribution(BaseModel):
    """Number of reviews per star value"""
    one_star: int = Field(default=0, alias="1")
    two_star: int = Field(default=0, alias="2")
    three_star: int = Field(default=0, alias="3")
    four_star: int = Field(default=0, alias="4")
    five_star: int = Field(default=0, alias="5")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_counts(cls, counts: Dict[int, int]) -> "RatingDistribution":
        return cls.model_validate({str(star): counts.get(star, 0) for star in STAR_VALUES})

    def as_dict(self) -> Dict[str, int]:
        return self.model_dump(by_alias=True)

    def total(self) -> int:
        return sum(self.as_dict().values())


class RatingSnapshot(BaseModel):
    """Denormalized {sum, count, distribution, avg} cache of published reviews"""
    sum: int = Field(default=0)
    count: int = Field(default=0)
    distribution: RatingDistribution = Field(default_factory=RatingDistribution)
    avg: float = Field(default=0)
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True)
        doc["updatedAt"] = self.updated_at or utc_now()
        return doc


def build_rating_snapshot(rows: Iterable[dict]) -> RatingSnapshot:
    """
    Build a snapshot from per-star aggregation rows ``{"rating", "count", "sum"}``.

    Rows with a rating outside 1..5 are ignored.
    """
    counts: Dict[int, int] = {}
    total_sum = 0
    total_count = 0

    for row in rows:
        rating = row["rating"]
        if rating not in STAR_VALUES:
            continue
        counts[rating] = counts.get(rating, 0) + row["count"]
        total_count += row["count"]
        total_sum += row["sum"]

    return RatingSnapshot(
        sum=total_sum,
        count=total_count,
        distribution=RatingDistribution.from_counts(counts),
        avg=round_average(total_sum, total_count),
    )
