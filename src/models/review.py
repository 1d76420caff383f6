"""
Review data models.

A Review is a single testimonial, either pulled from Google Places or
entered by hand through the admin path. ReviewCollection is the single
JSON document kept in the key-value store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class ReviewSourceTag(str, Enum):
    """Where a review came from. Manual reviews keep the legacy wire tag."""
    GOOGLE = "google"
    MANUAL = "facebook"

    @classmethod
    def parse(cls, value) -> "ReviewSourceTag":
        try:
            return cls(value)
        except ValueError:
            return cls.GOOGLE


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Review:
    """
    Immutable review record.

    `id` is generated at ingestion time and is not used for identity;
    see src.accumulation.accumulator.dedup_key.
    """
    id: str
    source: ReviewSourceTag
    author: str
    rating: int  # 1-5, not strictly validated
    text: str
    date: str  # ISO-8601 timestamp or YYYY-MM-DD
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        """Create Review from a stored JSON dict, filling in missing fields."""
        try:
            rating = int(data.get("rating", 5))
        except (TypeError, ValueError, OverflowError):
            rating = 5

        url = data.get("url")
        return cls(
            id=str(data.get("id", "")),
            source=ReviewSourceTag.parse(data.get("source")),
            author=str(data.get("author") or "Anonymous"),
            rating=rating,
            text=str(data.get("text") or ""),
            date=str(data.get("date") or ""),
            url=str(url) if url else None
        )

    def to_dict(self) -> dict:
        """Convert to the persisted JSON shape."""
        data = {
            "id": self.id,
            "source": self.source.value,
            "author": self.author,
            "rating": self.rating,
            "text": self.text,
            "date": self.date,
        }
        if self.url:
            data["url"] = self.url
        return data


def _reviews_from_list(items) -> List[Review]:
    if not isinstance(items, list):
        return []
    return [Review.from_dict(item) for item in items if isinstance(item, dict)]


@dataclass
class ReviewCollection:
    """
    The persisted aggregate.

    Always written back wholesale; the manual bucket is stored under
    `facebookReviews` for compatibility with existing documents.
    """
    last_updated: str
    google_reviews: List[Review] = field(default_factory=list)
    manual_reviews: List[Review] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ReviewCollection":
        return cls(last_updated=utc_now_iso())

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewCollection":
        return cls(
            last_updated=str(data.get("lastUpdated") or utc_now_iso()),
            google_reviews=_reviews_from_list(data.get("googleReviews")),
            manual_reviews=_reviews_from_list(data.get("facebookReviews"))
        )

    def to_dict(self) -> dict:
        return {
            "lastUpdated": self.last_updated,
            "googleReviews": [r.to_dict() for r in self.google_reviews],
            "facebookReviews": [r.to_dict() for r in self.manual_reviews]
        }

    def touch(self) -> None:
        """Stamp a new lastUpdated before a write."""
        self.last_updated = utc_now_iso()
