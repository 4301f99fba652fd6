"""
Configuration settings for ReviewDash.

Centralized configuration for ingestion, normalization, aggregation
and persistence.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = PROJECT_ROOT / "data"
OUTPUT_ROOT = PROJECT_ROOT / "output"
SAMPLE_DATA_PATH = PROJECT_ROOT / "samples" / "mock_reviews.json"

# Hostaway API
HOSTAWAY_ACCOUNT_ID = os.getenv("HOSTAWAY_ACCOUNT_ID", "")
HOSTAWAY_API_KEY = os.getenv("HOSTAWAY_API_KEY", "")
HOSTAWAY_BASE_URL = os.getenv("HOSTAWAY_BASE_URL", "https://api.hostaway.com/v1")
HOSTAWAY_REVIEW_LIMIT = 100
HOSTAWAY_TIMEOUT_SECONDS = 10
HOSTAWAY_MAX_RETRIES = 3

# Ingestion
USE_MOCK_DATA = os.getenv("REVIEWDASH_USE_MOCK_DATA", "false").lower() == "true"

# Normalization
REVIEW_CHANNEL = "hostaway"  # Fixed per ingestion pipeline
ANONYMOUS_GUEST_NAME = "Anonymous"
UNKNOWN_PROPERTY_ID = "unknown"  # Placeholder for records that fail normalization

# Aggregation
TREND_WINDOW_DAYS = 30
RECENT_ACTIVITY_DAYS = 7
PROPERTY_NAME_POLICY = "slug"  # "slug" (de-slugified id) or "listing" (stored listing name)

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "reviewdash.log"
