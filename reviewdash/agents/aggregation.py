"""
Property Aggregator and Performance Reporter.

Groups canonical reviews by property, computes per-property performance
(average rating, category breakdown, 30-day trend), dashboard statistics,
and exports performance tables.
"""

import json
import logging
import os
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from reviewdash.models.performance import (
    PropertyPerformance,
    RecentTrend,
    ReviewStatistics,
    TopCategory,
)
from reviewdash.models.review import Review
from reviewdash.registry.property_registry import property_name_from_id
from reviewdash.utils.dates import ensure_utc, utc_now
from reviewdash.utils.ratings import mean, round_half_up, round_half_up_int

logger = logging.getLogger(__name__)


class PropertyAggregator:
    """
    Computes one PropertyPerformance per property present in a review set.
    """

    def __init__(self, window_days: int = 30):
        """
        Initialize property aggregator.

        Args:
            window_days: Length of each trend window (recent and previous)
        """
        self.window_days = window_days

    def aggregate(
        self,
        reviews: Iterable[Review],
        now: Optional[datetime] = None,
        property_names: Optional[Mapping[str, str]] = None
    ) -> List[PropertyPerformance]:
        """
        Aggregate reviews into per-property performance summaries.

        Args:
            reviews: Canonical reviews (any mix of properties)
            now: Reference time for trend windows (defaults to current UTC time)
            property_names: Optional property_id -> display name overrides;
                properties not in the mapping use the de-slugified ID

        Returns:
            One PropertyPerformance per distinct property_id, in first-seen order
        """
        now = ensure_utc(now) if now else utc_now()
        property_names = property_names or {}

        groups: Dict[str, List[Review]] = {}
        for review in reviews:
            groups.setdefault(review.property_id, []).append(review)

        performances = []
        for property_id, property_reviews in groups.items():
            performances.append(
                PropertyPerformance(
                    property_id=property_id,
                    property_name=property_names.get(property_id) or property_name_from_id(property_id),
                    total_reviews=len(property_reviews),
                    average_rating=self._average_rating(property_reviews),
                    category_ratings=self._category_ratings(property_reviews),
                    recent_trends=self._recent_trend(property_reviews, now)
                )
            )

        logger.info(f"Aggregated {sum(p.total_reviews for p in performances)} reviews "
                    f"into {len(performances)} properties")
        return performances

    def _average_rating(self, reviews: List[Review]) -> float:
        """Mean of non-null ratings, or 0 when no review is rated."""
        ratings = [r.rating for r in reviews if r.rating is not None]
        if not ratings:
            return 0
        return round_half_up(mean(ratings))

    def _category_ratings(self, reviews: List[Review]) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        counts: Counter = Counter()

        for review in reviews:
            for cat in review.categories:
                totals[cat.category] = totals.get(cat.category, 0) + cat.rating
                counts[cat.category] += 1

        return {
            category: round_half_up(total / counts[category])
            for category, total in totals.items()
        }

    def _recent_trend(self, reviews: List[Review], now: datetime) -> RecentTrend:
        """
        Compare the last window with the one before it.

        Defaults to up/0 when either window has no rated review; that
        default carries no information about improvement.
        """
        recent_start = now - timedelta(days=self.window_days)
        previous_start = now - timedelta(days=2 * self.window_days)

        recent = []
        previous = []
        for review in reviews:
            if review.rating is None:
                continue
            submitted = ensure_utc(review.submitted_at)
            if submitted >= recent_start:
                recent.append(review.rating)
            elif submitted >= previous_start:
                previous.append(review.rating)

        if not recent or not previous:
            return RecentTrend(direction="up", percentage=0)

        recent_avg = mean(recent)
        previous_avg = mean(previous)
        diff = recent_avg - previous_avg

        if previous_avg == 0:
            percentage = 0 if diff == 0 else 100
        else:
            percentage = round_half_up_int(abs(diff / previous_avg) * 100)

        return RecentTrend(direction="up" if diff >= 0 else "down", percentage=percentage)


def aggregate(
    reviews: Iterable[Review],
    now: Optional[datetime] = None,
    property_names: Optional[Mapping[str, str]] = None
) -> List[PropertyPerformance]:
    """Aggregate reviews with the default 30-day trend windows."""
    return PropertyAggregator().aggregate(reviews, now=now, property_names=property_names)


def compute_review_statistics(
    reviews: Iterable[Review],
    now: Optional[datetime] = None,
    recent_days: int = 7
) -> ReviewStatistics:
    """
    Dashboard statistics for a review set.

    Args:
        reviews: Reviews to summarize (typically already filtered)
        now: Reference time for the recent-activity count
        recent_days: Size of the recent-activity window

    Returns:
        ReviewStatistics; average_rating is 0 when no review is rated
    """
    reviews = list(reviews)
    now = ensure_utc(now) if now else utc_now()

    ratings = [r.rating for r in reviews if r.rating is not None]
    by_channel = Counter(r.channel for r in reviews)
    by_type = Counter(r.review_type for r in reviews if r.review_type)
    selected = sum(1 for r in reviews if r.display_on_website)

    category_totals: Dict[str, List[float]] = {}
    for review in reviews:
        for cat in review.categories:
            category_totals.setdefault(cat.category, []).append(cat.rating)

    top_category = None
    if category_totals:
        name, values = max(category_totals.items(), key=lambda item: mean(item[1]))
        top_category = TopCategory(category=name, average=round_half_up(mean(values)))

    cutoff = now - timedelta(days=recent_days)

    return ReviewStatistics(
        total_reviews=len(reviews),
        average_rating=round_half_up(mean(ratings)) if ratings else 0,
        reviews_by_channel=dict(by_channel),
        reviews_by_type=dict(by_type),
        selected_for_website=selected,
        selection_rate=round_half_up_int(100 * selected / len(reviews)) if reviews else 0,
        most_active_channel=by_channel.most_common(1)[0][0] if by_channel else None,
        top_category=top_category,
        recent_reviews=sum(1 for r in reviews if ensure_utc(r.submitted_at) >= cutoff)
    )


class PerformanceReporter:
    """
    Exports property performance summaries as a CSV table.
    """

    def generate_report(
        self,
        performances: List[PropertyPerformance],
        report_date: str,
        output_dir: str = "output"
    ) -> str:
        """
        Write the performance table for a report date.

        Args:
            performances: Output of PropertyAggregator.aggregate
            report_date: Date in YYYY-MM-DD format (used in file names)
            output_dir: Directory to save CSV output

        Returns:
            Path to generated CSV file
        """
        logger.info(f"Generating performance report for {report_date}")

        categories = sorted({c for p in performances for c in p.category_ratings})

        rows = []
        for perf in performances:
            row = {
                'Property': perf.property_name,
                'Property ID': perf.property_id,
                'Reviews': perf.total_reviews,
                'Average Rating': perf.average_rating,
                'Trend': perf.recent_trends.direction,
                'Trend %': perf.recent_trends.percentage
            }
            for category in categories:
                row[category] = perf.category_ratings.get(category)
            rows.append(row)

        base_columns = ['Property', 'Property ID', 'Reviews', 'Average Rating', 'Trend', 'Trend %']
        df = pd.DataFrame(rows, columns=base_columns + categories)

        if df.empty:
            logger.warning("No properties found, creating empty performance table")
        else:
            df = df.sort_values(['Average Rating', 'Reviews'], ascending=[False, False])

        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"performance_{report_date}.csv")
        df.to_csv(output_path, index=False)

        logger.info(f"Performance table saved to {output_path} ({len(df)} properties)")

        metadata_path = os.path.join(output_dir, f"performance_{report_date}_metadata.json")
        metadata = {
            "report_date": report_date,
            "total_properties": len(df),
            "total_reviews": int(sum(p.total_reviews for p in performances)),
            "categories": categories,
            "trending_down": [p.property_id for p in performances if p.recent_trends.direction == "down"],
            "generated_at": utc_now().isoformat().replace("+00:00", "Z")
        }

        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Metadata saved to {metadata_path}")

        return output_path
