"""
Performance data models.

Derived views computed by the aggregation module. Never persisted;
recomputed from the review set on every read.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

TREND_DIRECTIONS = ("up", "down")


@dataclass
class RecentTrend:
    """Rating movement between the last two trailing 30-day windows."""
    direction: str = "up"
    percentage: int = 0

    def __post_init__(self):
        if self.direction not in TREND_DIRECTIONS:
            raise ValueError(
                f"Invalid trend direction: {self.direction}. Must be 'up' or 'down'"
            )

    def to_dict(self) -> dict:
        return {"direction": self.direction, "percentage": self.percentage}


@dataclass
class PropertyPerformance:
    """
    Performance summary for a single property.
    """
    property_id: str
    property_name: str
    total_reviews: int
    average_rating: float  # 0 when no review carries a rating
    category_ratings: Dict[str, float] = field(default_factory=dict)
    recent_trends: RecentTrend = field(default_factory=RecentTrend)

    def to_dict(self) -> dict:
        return {
            "propertyId": self.property_id,
            "propertyName": self.property_name,
            "totalReviews": self.total_reviews,
            "averageRating": self.average_rating,
            "categoryRatings": dict(self.category_ratings),
            "recentTrends": self.recent_trends.to_dict()
        }


@dataclass
class TopCategory:
    category: str
    average: float


@dataclass
class ReviewStatistics:
    """
    Dashboard-level statistics over an arbitrary (usually filtered) review set.
    """
    total_reviews: int
    average_rating: float
    reviews_by_channel: Dict[str, int] = field(default_factory=dict)
    reviews_by_type: Dict[str, int] = field(default_factory=dict)
    selected_for_website: int = 0
    selection_rate: int = 0  # Integer percent of reviews selected for website
    most_active_channel: Optional[str] = None
    top_category: Optional[TopCategory] = None
    recent_reviews: int = 0  # Reviews in the trailing activity window

    def to_dict(self) -> dict:
        return {
            "totalReviews": self.total_reviews,
            "averageRating": self.average_rating,
            "reviewsByChannel": dict(self.reviews_by_channel),
            "reviewsByType": dict(self.reviews_by_type),
            "selectedForWebsite": self.selected_for_website,
            "selectionRate": self.selection_rate,
            "mostActiveChannel": self.most_active_channel,
            "topCategory": (
                {"category": self.top_category.category, "average": self.top_category.average}
                if self.top_category else None
            ),
            "recentReviews": self.recent_reviews
        }
