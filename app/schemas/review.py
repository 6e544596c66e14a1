"""
API schemas for Review endpoints
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.review import (
    RATING_MAX,
    RATING_MIN,
    TEXT_MAX_LENGTH,
    TEXT_MIN_LENGTH,
    Review,
)


class ReviewSortBy(str, Enum):
    """Supported review list orderings"""
    NEWEST = "newest"
    OLDEST = "oldest"
    RATING_DESC = "rating_desc"
    RATING_ASC = "rating_asc"
    MOST_LIKED = "most_liked"


class ReviewCreate(BaseModel):
    """Schema for creating a new review"""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId")
    rating: int = Field(..., ge=RATING_MIN, le=RATING_MAX, strict=True)
    text: str = Field(..., min_length=TEXT_MIN_LENGTH, max_length=TEXT_MAX_LENGTH)

    @field_validator("product_id")
    @classmethod
    def product_id_valid(cls, v):
        if not ObjectId.is_valid(v):
            raise ValueError("Invalid product ID")
        return v

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class ReviewUpdate(BaseModel):
    """Schema for updating a review; omitted fields are left unchanged"""

    rating: Optional[int] = Field(None, ge=RATING_MIN, le=RATING_MAX, strict=True)
    text: Optional[str] = Field(None, min_length=TEXT_MIN_LENGTH, max_length=TEXT_MAX_LENGTH)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    def changes(self) -> dict:
        """Fields the caller actually sent"""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class ReviewResponse(BaseModel):
    """Display shape of a review; ``isLiked`` is always present"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    product_id: str = Field(..., alias="productId")
    user_id: str = Field(..., alias="userId")
    user_name: str = Field(..., alias="userName")
    rating: int
    text: str
    likes_count: int = Field(0, alias="likesCount")
    is_liked: bool = Field(False, alias="isLiked")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @classmethod
    def from_review(cls, review: Review, is_liked: bool = False) -> "ReviewResponse":
        return cls(
            id=review.id,
            product_id=review.product_id,
            user_id=review.user_id,
            user_name=review.user_name,
            rating=review.rating,
            text=review.text,
            likes_count=review.likes_count or 0,
            is_liked=bool(is_liked),
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class ReviewsSummary(BaseModel):
    """Live aggregate over a product's published reviews"""
    avg: float = 0
    count: int = 0
    distribution: Dict[str, int] = Field(
        default_factory=lambda: {str(star): 0 for star in range(RATING_MIN, RATING_MAX + 1)}
    )


class ReviewsPaginatedResponse(BaseModel):
    """Response schema for a page of reviews with its summary"""

    model_config = ConfigDict(populate_by_name=True)

    items: List[ReviewResponse]
    page: int
    page_size: int = Field(..., alias="pageSize")
    total: int
    summary: ReviewsSummary
