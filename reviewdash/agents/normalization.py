"""
Review Normalization Agent.

Converts raw Hostaway review records into canonical Review objects:
stable IDs, slug property IDs, resolved ratings, parsed dates and
default values for internal fields.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple, Union

from reviewdash.models.review import (
    MAX_RATING,
    MIN_RATING,
    CategoryRating,
    HostawayReview,
    Review,
)
from reviewdash.registry.property_registry import InvalidInputError, map_listing_to_property_id
from reviewdash.utils.dates import ensure_utc, parse_timestamp, utc_now
from reviewdash.utils.ratings import calculate_average_rating, is_valid_rating
import config.settings as settings

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = settings.REVIEW_CHANNEL
ANONYMOUS_GUEST_NAME = settings.ANONYMOUS_GUEST_NAME
UNKNOWN_PROPERTY_ID = settings.UNKNOWN_PROPERTY_ID

RawReview = Union[HostawayReview, dict]


def coerce_categories(payload: Any, review_id: Any = None) -> List[CategoryRating]:
    """
    Coerce a free-form category payload into CategoryRating objects.

    Entries without a non-empty string category, or whose rating is not a
    number within 0-10 (numeric strings are converted), are dropped.

    Args:
        payload: Sequence of {"category": ..., "rating": ...} items (anything else yields [])
        review_id: Review ID for logging

    Returns:
        List of valid CategoryRating objects, in source order
    """
    if not isinstance(payload, (list, tuple)):
        return []

    categories = []
    for item in payload:
        if not isinstance(item, dict):
            logger.debug(f"Dropping non-object category entry for review {review_id}: {item!r}")
            continue

        rating = _coerce_number(item.get("rating"))

        if not is_valid_rating(rating) or not (MIN_RATING <= rating <= MAX_RATING):
            logger.debug(f"Dropping category {item.get('category')!r} for review {review_id}: no valid rating")
            continue

        try:
            categories.append(CategoryRating(category=item.get("category"), rating=rating))
        except ValueError as e:
            logger.debug(f"Dropping category entry for review {review_id}: {e}")

    return categories


def _coerce_number(value: Any) -> Any:
    """Numeric strings ("8.5") become floats, other strings None; non-strings pass through."""
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return value


def resolve_rating(
    explicit_rating: Any,
    categories: List[CategoryRating],
    review_id: Any = None
) -> Optional[float]:
    """
    Pick the review's overall rating.

    An explicit rating within 0-10 always wins (numeric strings are
    converted); otherwise the rounded mean of the category ratings is
    used (None when there are none).
    """
    if explicit_rating is not None:
        rating = _coerce_number(explicit_rating)
        if is_valid_rating(rating) and MIN_RATING <= rating <= MAX_RATING:
            return rating
        logger.warning(
            f"Ignoring invalid explicit rating {explicit_rating!r} for review {review_id}, "
            f"using category average"
        )

    return calculate_average_rating(categories)


def parse_submitted_at(text: Any, review_id: Any = None, now: Optional[datetime] = None) -> datetime:
    """
    Parse the submission timestamp, falling back to `now`.

    An unparseable value is a recoverable condition: it is logged as a
    warning and the record keeps going with the current time.
    """
    parsed = parse_timestamp(text)
    if parsed is not None:
        return parsed

    logger.warning(f"Invalid date format for review {review_id}: {text!r}, using current time")
    return ensure_utc(now) if now else utc_now()


def normalize_review(
    raw: RawReview,
    now: Optional[datetime] = None,
    channel: str = DEFAULT_CHANNEL,
    anonymous_name: str = ANONYMOUS_GUEST_NAME
) -> Review:
    """
    Normalize one Hostaway review to the internal format.

    Args:
        raw: HostawayReview (or its wire dict)
        now: Current time, used when the date cannot be parsed
        channel: Source channel recorded on the review
        anonymous_name: Guest name used when the source has none

    Returns:
        Normalized Review, always with display_on_website=False

    Raises:
        InvalidInputError: If the listing name is missing or unusable
    """
    if isinstance(raw, dict):
        raw = HostawayReview.from_dict(raw)

    property_id = map_listing_to_property_id(raw.listing_name)
    categories = coerce_categories(raw.review_category, raw.id)

    return Review(
        id=str(raw.id),
        property_id=property_id,
        guest_name=_guest_name(raw.guest_name, anonymous_name),
        rating=resolve_rating(raw.rating, categories, raw.id),
        public_review=raw.public_review if isinstance(raw.public_review, str) else "",
        channel=channel,
        review_type=raw.type,
        status=raw.status,
        submitted_at=parse_submitted_at(raw.submitted_at, raw.id, now),
        display_on_website=False,
        categories=categories
    )


def _guest_name(value: Any, anonymous_name: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return anonymous_name


class ReviewNormalizationAgent:
    """
    Normalizes batches of Hostaway reviews.

    A record that cannot be normalized never aborts the batch: it is
    replaced by a placeholder review under the "unknown" property.
    """

    def __init__(
        self,
        channel: str = DEFAULT_CHANNEL,
        anonymous_name: str = ANONYMOUS_GUEST_NAME,
        unknown_property_id: str = UNKNOWN_PROPERTY_ID
    ):
        """
        Initialize normalization agent.

        Args:
            channel: Source channel recorded on every review
            anonymous_name: Guest name used when the source has none
            unknown_property_id: Property ID assigned to placeholder reviews
        """
        self.channel = channel
        self.anonymous_name = anonymous_name
        self.unknown_property_id = unknown_property_id

        logger.info(f"Initialized ReviewNormalizationAgent with channel={channel}")

    def normalize(self, raw: RawReview, now: Optional[datetime] = None) -> Review:
        """
        Normalize a single review.

        Raises:
            InvalidInputError: If the listing name is missing or unusable
        """
        return normalize_review(raw, now=now, channel=self.channel, anonymous_name=self.anonymous_name)

    def normalize_batch(
        self,
        raws: Iterable[RawReview],
        now: Optional[datetime] = None
    ) -> Tuple[List[Review], int]:
        """
        Normalize a batch of reviews with per-record fallback.

        Args:
            raws: HostawayReview objects or wire dicts
            now: Current time for date fallbacks

        Returns:
            (reviews, placeholder_count). Records without an id cannot be
            represented at all and are skipped.
        """
        now = ensure_utc(now) if now else utc_now()
        reviews = []
        placeholders = 0

        for raw in raws:
            if isinstance(raw, dict):
                try:
                    raw = HostawayReview.from_dict(raw)
                except ValueError as e:
                    logger.error(f"Skipping unidentifiable review record: {e}")
                    continue

            try:
                reviews.append(self.normalize(raw, now=now))
            except (InvalidInputError, ValueError, TypeError) as e:
                logger.error(f"Error normalizing review {raw.id}: {e}")
                reviews.append(self.build_placeholder(raw, now))
                placeholders += 1

        logger.info(
            f"Normalized {len(reviews)} reviews ({placeholders} placeholders)"
        )
        return reviews, placeholders

    def build_placeholder(self, raw: HostawayReview, now: Optional[datetime] = None) -> Review:
        """
        Best-effort review for a record that failed normalization.
        """
        categories = coerce_categories(raw.review_category, raw.id)

        return Review(
            id=str(raw.id),
            property_id=self.unknown_property_id,
            guest_name=_guest_name(raw.guest_name, self.anonymous_name),
            rating=resolve_rating(raw.rating, categories, raw.id),
            public_review=raw.public_review if isinstance(raw.public_review, str) else "",
            channel=self.channel,
            review_type=raw.type,
            status=raw.status,
            submitted_at=parse_submitted_at(raw.submitted_at, raw.id, now),
            display_on_website=False,
            categories=categories
        )
