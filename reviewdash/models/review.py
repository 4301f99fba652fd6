"""
Review data models.

Represents raw Hostaway reviews as received from the API and the
canonical review entity produced by normalization.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

REVIEW_TYPES = ("host-to-guest", "guest-to-host")
MIN_RATING = 0
MAX_RATING = 10


@dataclass
class CategoryRating:
    """
    A single per-category score (e.g. cleanliness: 10).
    """
    category: str
    rating: float

    def __post_init__(self):
        if not isinstance(self.category, str) or not self.category.strip():
            raise ValueError(f"Invalid category name: {self.category!r}")

        if isinstance(self.rating, bool) or not isinstance(self.rating, (int, float)):
            raise ValueError(f"Invalid rating for {self.category}: {self.rating!r}")

        if math.isnan(self.rating):
            raise ValueError(f"Rating for {self.category} is NaN")

    @classmethod
    def from_dict(cls, data: dict) -> "CategoryRating":
        return cls(category=data["category"], rating=data["rating"])

    def to_dict(self) -> dict:
        return {"category": self.category, "rating": self.rating}


@dataclass
class HostawayReview:
    """
    Raw review record from the Hostaway reviews endpoint.

    Fields are kept as loosely typed as the source sends them;
    coercion happens in the normalization agent.
    """
    id: Any  # Numeric or string identifier, unique per source
    type: Optional[str] = None  # "host-to-guest" or "guest-to-host"
    status: Optional[str] = None
    rating: Optional[float] = None  # Overall 0-10 rating, often null
    public_review: Optional[str] = None
    review_category: List[Any] = field(default_factory=list)  # Free-form category payloads
    submitted_at: Optional[str] = None  # Loosely ISO date/time text
    guest_name: Optional[str] = None
    listing_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "HostawayReview":
        """
        Create HostawayReview from an API/JSON dict.

        Accepts the alternative keys seen in Hostaway exports:
        `listingMapName` for the listing and `date` for the submission time.
        """
        if "id" not in data or data["id"] is None:
            raise ValueError("Hostaway review is missing its id")

        categories = data.get("reviewCategory")
        if categories is None:
            categories = data.get("categoryRatings")

        return cls(
            id=data["id"],
            type=data.get("type"),
            status=data.get("status"),
            rating=data.get("rating"),
            public_review=data.get("publicReview"),
            review_category=list(categories) if isinstance(categories, (list, tuple)) else [],
            submitted_at=data.get("submittedAt") or data.get("date"),
            guest_name=data.get("guestName"),
            listing_name=data.get("listingName") or data.get("listingMapName")
        )

    def to_dict(self) -> dict:
        """Convert back to the Hostaway wire format."""
        return {
            "id": self.id,
            "type": self.type,
            "status": self.status,
            "rating": self.rating,
            "publicReview": self.public_review,
            "reviewCategory": self.review_category,
            "submittedAt": self.submitted_at,
            "guestName": self.guest_name,
            "listingName": self.listing_name
        }


@dataclass
class Review:
    """
    Canonical review used throughout the dashboard.
    Output of the normalization agent, persisted by StorageManager.
    """
    id: str
    property_id: str
    guest_name: str
    rating: Optional[float]  # 0-10, None when no rating data exists
    public_review: str
    channel: str  # Data source, e.g. "hostaway"
    review_type: Optional[str]
    status: Optional[str]
    submitted_at: datetime
    display_on_website: bool = False  # Manager curation flag
    categories: List[CategoryRating] = field(default_factory=list)
    created_at: Optional[datetime] = None  # Set by storage
    updated_at: Optional[datetime] = None  # Set by storage

    def __post_init__(self):
        if self.rating is not None and not (MIN_RATING <= self.rating <= MAX_RATING):
            raise ValueError(
                f"Invalid rating: {self.rating}. Must be {MIN_RATING}-{MAX_RATING} or None"
            )

        if not self.guest_name:
            raise ValueError(f"Review {self.id} has an empty guest name")

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        """Create Review from its JSON dict (camelCase keys)."""
        return cls(
            id=str(data["id"]),
            property_id=data["propertyId"],
            guest_name=data["guestName"],
            rating=data.get("rating"),
            public_review=data.get("publicReview", ""),
            channel=data["channel"],
            review_type=data.get("reviewType"),
            status=data.get("status"),
            submitted_at=datetime.fromisoformat(data["submittedAt"]),
            display_on_website=bool(data.get("displayOnWebsite", False)),
            categories=[CategoryRating.from_dict(c) for c in data.get("categories", [])],
            created_at=_parse_optional(data.get("createdAt")),
            updated_at=_parse_optional(data.get("updatedAt"))
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict (camelCase keys, ISO dates)."""
        data = {
            "id": self.id,
            "propertyId": self.property_id,
            "guestName": self.guest_name,
            "rating": self.rating,
            "publicReview": self.public_review,
            "channel": self.channel,
            "reviewType": self.review_type,
            "status": self.status,
            "displayOnWebsite": self.display_on_website,
            "categories": [c.to_dict() for c in self.categories],
            "submittedAt": self.submitted_at.isoformat()
        }
        if self.created_at:
            data["createdAt"] = self.created_at.isoformat()
        if self.updated_at:
            data["updatedAt"] = self.updated_at.isoformat()
        return data


def _parse_optional(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
