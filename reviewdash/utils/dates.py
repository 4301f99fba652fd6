"""
Date helpers.

Parsing for the loosely-ISO timestamps Hostaway sends, and UTC coercion
so that every datetime compared in aggregation is timezone-aware.
"""

import logging
import warnings
from datetime import datetime, timezone
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_once(text: str) -> Optional[datetime]:
    """
    Single parse attempt: strict ISO first, then pandas' lenient parser.

    Returns:
        UTC datetime, or None if neither parser accepts the text
    """
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        # OverflowError: valid ISO text whose UTC equivalent leaves the datetime range
        pass

    try:
        with warnings.catch_warnings():
            # pandas warns when it has to guess the format per element
            warnings.simplefilter("ignore", UserWarning)
            parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"pandas could not parse {text!r}: {e}")
        return None

    if parsed is None or pd.isna(parsed):
        return None

    try:
        return ensure_utc(parsed.to_pydatetime())
    except (ValueError, OverflowError) as e:
        logger.debug(f"Parsed {text!r} but could not convert to UTC: {e}")
        return None


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """
    Parse a submission timestamp.

    Tries the text as-is, then with the first space replaced by "T"
    (turns "2025-08-21 22:45:14" into ISO form).

    Args:
        text: Raw timestamp text

    Returns:
        Timezone-aware UTC datetime, or None if unparseable
    """
    if not isinstance(text, str) or not text.strip():
        return None

    text = text.strip()
    parsed = _parse_once(text)
    if parsed is None and " " in text:
        parsed = _parse_once(text.replace(" ", "T", 1))

    return parsed
