"""
Review domain model and its visibility state machine
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

RATING_MIN = 1
RATING_MAX = 5
TEXT_MIN_LENGTH = 3
TEXT_MAX_LENGTH = 1000


def utc_now():
    """Helper function for Pydantic default_factory to get current UTC time"""
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> Any:
    """Store foreign keys as ObjectId when they look like one, as-is otherwise"""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


class ReviewStatus(str, Enum):
    """
    Review visibility states.

    published -> hidden (moderation), published -> deleted (owner/admin)
    hidden -> published (moderation), hidden -> deleted (owner/admin)
    deleted is terminal.
    """
    PUBLISHED = "published"
    HIDDEN = "hidden"
    DELETED = "deleted"

    @classmethod
    def counted_for_uniqueness(cls):
        """States that block the same user from reviewing the product again"""
        return (cls.PUBLISHED, cls.HIDDEN)

    @property
    def counts_toward_rating(self) -> bool:
        return self is ReviewStatus.PUBLISHED

    @property
    def is_editable(self) -> bool:
        return self is ReviewStatus.PUBLISHED

    @property
    def is_likeable(self) -> bool:
        return self is ReviewStatus.PUBLISHED

    def can_transition_to(self, target: "ReviewStatus") -> bool:
        return target in _TRANSITIONS[self]

    @classmethod
    def sources_of(cls, target: "ReviewStatus"):
        """States from which ``target`` is reachable, in declaration order"""
        return tuple(s for s in cls if s.can_transition_to(target))


_TRANSITIONS = {
    ReviewStatus.PUBLISHED: {ReviewStatus.HIDDEN, ReviewStatus.DELETED},
    ReviewStatus.HIDDEN: {ReviewStatus.PUBLISHED, ReviewStatus.DELETED},
    ReviewStatus.DELETED: set(),
}


class Review(BaseModel):
    """Review record as stored in the ``reviews`` collection (camelCase on disk)"""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    product_id: str = Field(..., alias="productId")
    user_id: str = Field(..., alias="userId")
    # Snapshot of the author's name at creation time
    user_name: str = Field(..., alias="userName")
    rating: int = Field(..., ge=RATING_MIN, le=RATING_MAX)
    text: str = Field(..., min_length=TEXT_MIN_LENGTH, max_length=TEXT_MAX_LENGTH)
    status: ReviewStatus = ReviewStatus.PUBLISHED
    likes_count: int = Field(default=0, ge=0, alias="likesCount")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("product_id", "user_id", "id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if isinstance(v, ObjectId) else v

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Review":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        # Older documents may predate the counter
        doc.setdefault("likesCount", 0)
        return cls.model_validate(doc)

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(by_alias=True, exclude={"id"})
        doc["productId"] = to_object_id(self.product_id)
        doc["userId"] = to_object_id(self.user_id)
        doc["status"] = self.status.value
        return doc
