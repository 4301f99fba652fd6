"""
Review filtering and sorting.

Filter and sort options for fetching reviews from storage.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from reviewdash.models.review import Review
from reviewdash.utils.dates import ensure_utc

SORT_FIELDS = ("submittedAt", "rating", "guestName", "channel")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass
class ReviewFilters:
    """
    Criteria for selecting reviews. Unset fields match everything.
    """
    property_id: Optional[str] = None
    channel: Optional[str] = None
    review_type: Optional[str] = None  # "host-to-guest", "guest-to-host" or "all"
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    status: Optional[str] = None
    display_on_website: Optional[bool] = None
    search: Optional[str] = None  # Case-insensitive match on guest name or review text

    def matches(self, review: Review) -> bool:
        if self.property_id is not None and review.property_id != self.property_id:
            return False
        if self.channel is not None and review.channel != self.channel:
            return False
        if self.review_type not in (None, "all") and review.review_type != self.review_type:
            return False
        if self.status is not None and review.status != self.status:
            return False
        if self.display_on_website is not None and review.display_on_website != self.display_on_website:
            return False

        # Unrated reviews never satisfy a rating bound
        if self.min_rating is not None and (review.rating is None or review.rating < self.min_rating):
            return False
        if self.max_rating is not None and (review.rating is None or review.rating > self.max_rating):
            return False

        submitted = ensure_utc(review.submitted_at)
        if self.date_from is not None and submitted < ensure_utc(self.date_from):
            return False
        if self.date_to is not None and submitted > ensure_utc(self.date_to):
            return False

        if self.search:
            query = self.search.lower()
            if query not in review.guest_name.lower() and query not in review.public_review.lower():
                return False

        return True


@dataclass
class SortOptions:
    field: str = "submittedAt"
    direction: str = "desc"

    def __post_init__(self):
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {self.field}. Must be one of {SORT_FIELDS}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"Invalid sort direction: {self.direction}. Must be 'asc' or 'desc'")


def filter_reviews(reviews: List[Review], filters: Optional[ReviewFilters] = None) -> List[Review]:
    if filters is None:
        return list(reviews)
    return [r for r in reviews if filters.matches(r)]


def sort_reviews(reviews: List[Review], options: Optional[SortOptions] = None) -> List[Review]:
    """
    Sort reviews; unrated reviews always go last when sorting by rating.
    """
    options = options or SortOptions()
    reverse = options.direction == "desc"

    if options.field == "rating":
        rated = [r for r in reviews if r.rating is not None]
        unrated = [r for r in reviews if r.rating is None]
        return sorted(rated, key=lambda r: r.rating, reverse=reverse) + unrated

    if options.field == "guestName":
        key = lambda r: r.guest_name.lower()
    elif options.field == "channel":
        key = lambda r: r.channel
    else:
        key = lambda r: ensure_utc(r.submitted_at)

    return sorted(reviews, key=key, reverse=reverse)
