"""
Normalization utilities for portal table cells.

Handles:
- Event identifiers with stray markers ("1234*")
- Compact dates with trailing annotations ("20240315\\nFri")
- Dollar amounts ("$1,234.00")
"""

import re
from datetime import datetime, timezone
from typing import Optional

import structlog

from .errors import FieldParseError

logger = structlog.get_logger(__name__)


LINE_BREAK = re.compile(r"\r?\n")
CURRENCY_PUNCTUATION = re.compile(r"[$,]")
PLAIN_NUMBER = re.compile(r"-?\d+(\.\d+)?")


def parse_fin_id(text: str) -> int:
    """
    Parse an event identifier.

    The listing flags some events with a marker character next to the
    number, so every non-digit is removed before parsing.

    Args:
        text: Raw cell text

    Returns:
        Integer identifier

    Raises:
        FieldParseError: If no digits remain
    """
    digits = re.sub(r"\D", "", text or "")
    if not digits:
        raise FieldParseError(f"Invalid event id: {text!r}", context={"text": text})
    return int(digits)


def parse_compact_date(text: str) -> datetime:
    """
    Parse a compact portal date into a UTC datetime.

    Supported formats:
    - "20240315" -> 2024-03-15
    - "20240315\\nFri" -> 2024-03-15 (annotation after line break ignored)

    Args:
        text: Raw cell text

    Returns:
        Timezone-aware datetime at midnight UTC

    Raises:
        FieldParseError: If the digits do not form a valid date
    """
    text = (text or "").strip()
    year, month = text[:4], text[4:6]
    day = LINE_BREAK.split(text[6:], maxsplit=1)[0].strip()

    try:
        return datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
    except ValueError as e:
        logger.warning("invalid_date", text=text, error=str(e))
        raise FieldParseError(
            f"Invalid compact date: {text!r}", context={"text": text}
        ) from e


def parse_amount(text: str) -> float:
    """
    Parse a dollar amount.

    Args:
        text: Raw cell text such as "$1,234.00"

    Returns:
        Amount as a number

    Raises:
        FieldParseError: If the text is empty or not numeric
    """
    cleaned = CURRENCY_PUNCTUATION.sub("", text or "").strip()
    if not PLAIN_NUMBER.fullmatch(cleaned):
        raise FieldParseError(f"Invalid amount: {text!r}", context={"text": text})
    return float(cleaned)


def parse_optional_amount(text: str) -> Optional[float]:
    """Parse a dollar amount where an empty cell means absent, not zero."""
    if not text or not text.strip():
        return None
    return parse_amount(text)
