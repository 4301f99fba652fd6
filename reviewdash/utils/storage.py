"""
Storage utility.

File-backed persistence for raw Hostaway snapshots and normalized reviews.
"""

import json
import os
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from reviewdash.models.review import Review
from reviewdash.utils.dates import ensure_utc, utc_now
from reviewdash.utils.filters import ReviewFilters, SortOptions, filter_reviews, sort_reviews

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Manages file I/O for all data persistence except the property registry.

    Handles:
    - Raw Hostaway snapshots (data/raw/YYYY-MM-DD.json)
    - Normalized reviews keyed by id (data/reviews.json)
    """

    def __init__(self, data_root: str):
        """
        Initialize storage manager and load persisted reviews.

        Args:
            data_root: Root data directory (e.g., /path/to/data)

        Raises:
            ValueError: If the reviews file exists but cannot be parsed
        """
        self.data_root = data_root
        self.raw_dir = os.path.join(data_root, "raw")
        self.reviews_path = os.path.join(data_root, "reviews.json")

        os.makedirs(self.raw_dir, exist_ok=True)

        self.reviews: Dict[str, Review] = {}
        self._load_reviews()

        logger.info(f"Initialized StorageManager with data_root={data_root} ({len(self.reviews)} reviews)")

    def save_raw_reviews(self, reviews: List[Dict], date: str) -> None:
        """
        Save the raw Hostaway payload fetched on a specific date.

        Args:
            reviews: List of raw review dicts
            date: Date in YYYY-MM-DD format
        """
        filepath = os.path.join(self.raw_dir, f"{date}.json")

        try:
            with open(filepath, 'w') as f:
                json.dump(reviews, f, indent=2, default=str)
            logger.info(f"Saved {len(reviews)} raw reviews to {filepath}")
        except OSError as e:
            logger.error(f"Failed to save raw reviews for {date}: {e}")
            raise

    def load_raw_reviews(self, date: str) -> Optional[List[Dict]]:
        """
        Load the raw Hostaway payload for a specific date.

        Returns:
            List of raw review dicts, or None if no snapshot exists
        """
        filepath = os.path.join(self.raw_dir, f"{date}.json")

        if not os.path.exists(filepath):
            logger.warning(f"No raw reviews found for {date}")
            return None

        try:
            with open(filepath, 'r') as f:
                reviews = json.load(f)
            logger.debug(f"Loaded {len(reviews)} raw reviews from {filepath}")
            return reviews
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load raw reviews for {date}: {e}")
            return None

    def upsert_reviews(self, reviews: List[Review], now: Optional[datetime] = None) -> Tuple[int, int]:
        """
        Insert or update reviews by id.

        Existing reviews keep their created_at timestamp and their
        display_on_website flag; curation only changes through
        update_display_status.

        Args:
            reviews: Normalized reviews
            now: Timestamp for created_at/updated_at

        Returns:
            (created, updated) counts
        """
        now = ensure_utc(now) if now else utc_now()
        created = 0
        updated = 0

        for review in reviews:
            existing = self.reviews.get(review.id)
            if existing is None:
                self.reviews[review.id] = replace(review, created_at=now, updated_at=now)
                created += 1
            else:
                self.reviews[review.id] = replace(
                    review,
                    display_on_website=existing.display_on_website,
                    created_at=existing.created_at or now,
                    updated_at=now
                )
                updated += 1

        self._save_reviews()
        logger.info(f"Upserted {len(reviews)} reviews ({created} created, {updated} updated)")
        return created, updated

    def get_all_reviews(
        self,
        filters: Optional[ReviewFilters] = None,
        sort: Optional[SortOptions] = None
    ) -> List[Review]:
        """
        Fetch reviews matching optional filters, newest first by default.
        """
        return sort_reviews(filter_reviews(list(self.reviews.values()), filters), sort)

    def get_reviews_by_property(self, property_id: str) -> List[Review]:
        """All reviews for a property, newest first."""
        return self.get_all_reviews(ReviewFilters(property_id=property_id))

    def get_review_by_id(self, review_id: str) -> Optional[Review]:
        """Retrieve review by ID. Returns None if not found."""
        return self.reviews.get(review_id)

    def get_property_ids(self) -> List[str]:
        return sorted({r.property_id for r in self.reviews.values()})

    def update_display_status(self, review_id: str, display: bool) -> Review:
        """
        Set a review's display_on_website flag.

        Raises:
            ValueError: If the review does not exist
        """
        existing = self.reviews.get(review_id)
        if existing is None:
            raise ValueError(f"Review not found: {review_id}")

        self.reviews[review_id] = replace(existing, display_on_website=bool(display), updated_at=utc_now())
        self._save_reviews()

        logger.info(f"Updated review {review_id} display status to {bool(display)}")
        return self.reviews[review_id]

    def delete_review(self, review_id: str) -> None:
        """
        Delete a review.

        Raises:
            ValueError: If the review does not exist
        """
        if review_id not in self.reviews:
            raise ValueError(f"Review not found: {review_id}")

        del self.reviews[review_id]
        self._save_reviews()
        logger.info(f"Deleted review {review_id}")

    def _load_reviews(self) -> None:
        if not os.path.exists(self.reviews_path):
            logger.debug(f"No reviews file at {self.reviews_path}, starting empty")
            return

        try:
            with open(self.reviews_path, 'r') as f:
                data = json.load(f)
            self.reviews = {}
            for item in data.get("reviews", []):
                review = Review.from_dict(item)
                self.reviews[review.id] = review
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load reviews from {self.reviews_path}: {e}")
            raise ValueError(f"Corrupted reviews file: {self.reviews_path}") from e

    def _save_reviews(self) -> None:
        """Write all reviews with a temp file + rename."""
        data = {
            "last_updated": utc_now().isoformat(),
            "reviews": [r.to_dict() for r in sort_reviews(list(self.reviews.values()))]
        }

        temp_path = f"{self.reviews_path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.reviews_path)
        except OSError as e:
            logger.error(f"Failed to save reviews: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
