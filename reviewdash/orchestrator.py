"""
Pipeline Orchestrator.

Coordinates ingestion, normalization, persistence and aggregation,
and exposes the manager actions used by the dashboard.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from reviewdash.agents.ingestion import IngestionAgent
from reviewdash.agents.normalization import ReviewNormalizationAgent
from reviewdash.agents.aggregation import (
    PerformanceReporter,
    PropertyAggregator,
    compute_review_statistics,
)
from reviewdash.models.performance import PropertyPerformance, ReviewStatistics
from reviewdash.registry.property_registry import InvalidInputError, PropertyRegistry
from reviewdash.utils.dates import ensure_utc, utc_now
from reviewdash.utils.filters import ReviewFilters, SortOptions
from reviewdash.utils.storage import StorageManager
import config.settings as settings

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Orchestrates the review sync pipeline.

    Sync: 1. Ingestion -> 2. Normalization -> 3. Persistence
    -> 4. Registry update -> 5. Performance report

    Reads (reviews, performance, statistics) are recomputed from storage
    on every call.
    """

    def __init__(
        self,
        data_root: str,
        registry_path: str,
        output_root: Optional[str] = None,
        ingestion_agent: Optional[IngestionAgent] = None,
        name_policy: str = settings.PROPERTY_NAME_POLICY
    ):
        """
        Initialize pipeline orchestrator.

        Args:
            data_root: Root directory for data storage
            registry_path: Path to property registry JSON
            output_root: Directory for performance reports
            ingestion_agent: Pre-built ingestion agent (defaults to one built from settings)
            name_policy: "slug" or "listing" property display names
        """
        self.data_root = data_root
        self.registry_path = registry_path
        self.output_root = output_root or str(settings.OUTPUT_ROOT)
        self.name_policy = name_policy

        logger.info("Initializing pipeline components...")

        self.storage = StorageManager(data_root)
        self.registry = PropertyRegistry(registry_path)

        self.ingestion_agent = ingestion_agent or IngestionAgent(
            account_id=settings.HOSTAWAY_ACCOUNT_ID,
            api_key=settings.HOSTAWAY_API_KEY,
            sample_path=str(settings.SAMPLE_DATA_PATH),
            base_url=settings.HOSTAWAY_BASE_URL,
            limit=settings.HOSTAWAY_REVIEW_LIMIT,
            timeout_seconds=settings.HOSTAWAY_TIMEOUT_SECONDS,
            max_retries=settings.HOSTAWAY_MAX_RETRIES,
            use_mock_data=settings.USE_MOCK_DATA
        )

        self.normalization_agent = ReviewNormalizationAgent(
            channel=settings.REVIEW_CHANNEL,
            anonymous_name=settings.ANONYMOUS_GUEST_NAME,
            unknown_property_id=settings.UNKNOWN_PROPERTY_ID
        )

        self.aggregator = PropertyAggregator(window_days=settings.TREND_WINDOW_DAYS)
        self.reporter = PerformanceReporter()

        logger.info("Pipeline initialized successfully")

    def sync(self, now: Optional[datetime] = None, write_report: bool = True) -> Dict:
        """
        Run one sync: fetch, normalize, persist and report.

        Args:
            now: Reference time (defaults to current UTC time)
            write_report: Whether to export the performance CSV

        Returns:
            Summary dict with counts, data source and report path
        """
        now = ensure_utc(now) if now else utc_now()
        today = now.strftime("%Y-%m-%d")
        logger.info(f"Starting review sync for {today}")

        # STAGE 1: Ingestion
        raw_reviews, source = self.ingestion_agent.fetch_reviews()
        self.storage.save_raw_reviews([r.to_dict() for r in raw_reviews], today)
        logger.info(f"Ingested {len(raw_reviews)} reviews from {source}")

        # STAGE 2: Normalization
        reviews, placeholders = self.normalization_agent.normalize_batch(raw_reviews, now=now)

        # STAGE 3: Persistence
        created, updated = self.storage.upsert_reviews(reviews, now=now)

        # STAGE 4: Registry
        for raw in raw_reviews:
            try:
                self.registry.register(raw.listing_name, seen_on=today)
            except InvalidInputError:
                continue
        self.registry.save()

        # STAGE 5: Performance report
        report_path = None
        if write_report:
            report_path = self.reporter.generate_report(
                self.get_property_performance(now=now),
                report_date=today,
                output_dir=self.output_root
            )

        summary = {
            "source": source,
            "fetched": len(raw_reviews),
            "normalized": len(reviews) - placeholders,
            "placeholders": placeholders,
            "created": created,
            "updated": updated,
            "properties": len(self.storage.get_property_ids()),
            "report_path": report_path
        }
        logger.info(f"Sync complete: {summary}")
        return summary

    def get_reviews_response(
        self,
        filters: Optional[ReviewFilters] = None,
        sort: Optional[SortOptions] = None
    ) -> Dict:
        """
        Reviews in the {"status": "success", "result": [...]} envelope.
        """
        reviews = self.storage.get_all_reviews(filters, sort)
        return {"status": "success", "result": [r.to_dict() for r in reviews]}

    def get_property_performance(self, now: Optional[datetime] = None) -> List[PropertyPerformance]:
        """Per-property performance over every stored review."""
        property_names = None
        if self.name_policy == "listing":
            property_names = self.registry.display_names(policy="listing")

        return self.aggregator.aggregate(
            self.storage.get_all_reviews(),
            now=now,
            property_names=property_names
        )

    def get_statistics(
        self,
        filters: Optional[ReviewFilters] = None,
        now: Optional[datetime] = None
    ) -> ReviewStatistics:
        return compute_review_statistics(
            self.storage.get_all_reviews(filters),
            now=now,
            recent_days=settings.RECENT_ACTIVITY_DAYS
        )

    def get_public_reviews(self, property_id: str) -> List[Dict]:
        """Manager-approved reviews for a property page, newest first."""
        filters = ReviewFilters(property_id=property_id, display_on_website=True)
        return [r.to_dict() for r in self.storage.get_all_reviews(filters)]

    def toggle_review_display(self, review_id: str, display: bool) -> Dict:
        """
        Approve or hide a review for the public website.

        Returns:
            {"success": True} or {"success": False, "error": message}
        """
        try:
            self.storage.update_display_status(review_id, display)
            return {"success": True}
        except (ValueError, OSError) as e:
            logger.error(f"Error updating review display status: {e}")
            return {"success": False, "error": str(e) or "Failed to update review"}

    def batch_toggle_review_display(self, updates: List[Dict]) -> Dict:
        """
        Apply several display updates ({"reviewId": ..., "display": ...}).

        Stops at the first failure; earlier updates stay applied.
        """
        try:
            for update in updates:
                self.storage.update_display_status(str(update["reviewId"]), bool(update["display"]))
            return {"success": True}
        except (ValueError, KeyError, OSError) as e:
            logger.error(f"Error batch updating review display status: {e}")
            return {"success": False, "error": str(e) or "Failed to update reviews"}
