"""
Ingestion Agent.

Fetches guest reviews from the Hostaway API, falling back to the
bundled sample dataset when the API is unconfigured, unreachable or empty.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import requests

from reviewdash.models.review import HostawayReview

logger = logging.getLogger(__name__)


class IngestionAgent:
    """
    Fetches raw reviews from Hostaway.

    fetch_reviews() never raises for network or payload problems; it logs
    them and returns the sample data instead.
    """

    def __init__(
        self,
        account_id: str = "",
        api_key: str = "",
        sample_path: Optional[str] = None,
        base_url: str = "https://api.hostaway.com/v1",
        limit: int = 100,
        timeout_seconds: int = 10,
        max_retries: int = 3,
        use_mock_data: bool = False,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize ingestion agent.

        Args:
            account_id: Hostaway account ID
            api_key: Hostaway API key (sent as a bearer token)
            sample_path: Path to the bundled sample payload
            base_url: Hostaway API base URL
            limit: Maximum number of reviews to request
            timeout_seconds: HTTP request timeout
            max_retries: Attempts per fetch on network errors
            use_mock_data: If True, skip the API and read the sample only
            session: Optional requests session (for connection reuse)
        """
        self.account_id = account_id
        self.api_key = api_key
        self.sample_path = Path(sample_path) if sample_path else None
        self.base_url = base_url.rstrip("/")
        self.limit = limit
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.use_mock_data = use_mock_data
        self.session = session or requests.Session()

        if use_mock_data:
            logger.info("Initialized IngestionAgent in MOCK mode")
        else:
            logger.info("Initialized IngestionAgent in API mode")

    def fetch_reviews(self) -> Tuple[List[HostawayReview], str]:
        """
        Fetch reviews from Hostaway, or the sample data as fallback.

        Returns:
            (reviews, source) where source is "hostaway" or "mock"
        """
        if not self.use_mock_data:
            payload = self._fetch_from_api()
            reviews = self._parse_payload(payload, "Hostaway API") if payload else []
            if reviews:
                logger.info(f"Fetched {len(reviews)} reviews from Hostaway API")
                return reviews, "hostaway"
            logger.info("Hostaway API returned no data, falling back to mock data")

        return self.load_sample_reviews(), "mock"

    def _fetch_from_api(self) -> Optional[dict]:
        """
        GET /reviews with bearer authentication.

        Returns:
            Decoded JSON payload, or None on any failure
        """
        if not self.account_id or not self.api_key:
            logger.warning("Hostaway credentials not configured. Using mock data.")
            return None

        url = f"{self.base_url}/reviews"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Account-Id": str(self.account_id),
            "Content-Type": "application/json",
            "Cache-Control": "no-cache"
        }

        logger.info(f"Fetching reviews from Hostaway API (Account: {self.account_id})...")

        for attempt in range(self.max_retries):
            try:
                response = self.session.get(
                    url,
                    headers=headers,
                    params={"limit": self.limit},
                    timeout=self.timeout_seconds
                )
            except requests.RequestException as e:
                logger.error(f"Hostaway API error (attempt {attempt + 1}): {e}")
                continue

            if not response.ok:
                logger.warning(
                    f"Hostaway API returned status {response.status_code}: {response.reason}"
                )
                return None

            try:
                return response.json()
            except ValueError as e:
                logger.warning(f"Hostaway API returned invalid JSON: {e}")
                return None

        logger.warning(f"Max retries ({self.max_retries}) reached for Hostaway API")
        return None

    def load_sample_reviews(self) -> List[HostawayReview]:
        """
        Load the bundled sample payload.

        Returns:
            Parsed reviews, or [] if the file is missing or malformed
        """
        if self.sample_path is None:
            logger.error("No sample data path configured")
            return []

        try:
            with self.sample_path.open('r', encoding='utf-8') as f:
                payload = json.load(f)
        except FileNotFoundError:
            logger.error(f"Sample data not found: {self.sample_path}")
            return []
        except (OSError, ValueError) as e:
            logger.error(f"Error loading sample reviews: {e}")
            return []

        reviews = self._parse_payload(payload, "sample data")
        logger.info(f"Loaded {len(reviews)} reviews from sample data")
        return reviews

    def _parse_payload(self, payload: dict, source: str) -> List[HostawayReview]:
        """
        Extract reviews from a {"status": "success", "result": [...]} payload.
        """
        if not isinstance(payload, dict) or payload.get("status") != "success" \
                or not isinstance(payload.get("result"), list):
            logger.warning(f"Unexpected response format from {source}")
            return []

        reviews = []
        for item in payload["result"]:
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object review record from {source}: {item!r}")
                continue
            try:
                reviews.append(HostawayReview.from_dict(item))
            except ValueError as e:
                logger.warning(f"Skipping invalid review record from {source}: {e}")

        return reviews
