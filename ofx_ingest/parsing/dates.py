"""
OFX date parsing.

Banks write DTPOSTED as YYYYMMDD, YYYYMMDDHHMMSS, either of them with
fractional seconds and/or a bracketed zone such as ``[-3:BRT]``, and a few
send ISO strings. Zone information, bracketed or inline, is dropped and the
statement's wall-clock time kept. An unparseable date never drops a record:
the caller gets ``now`` back, flagged as a fallback.
"""
import re
import warnings
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pandas as pd

from ofx_ingest.common.logging_config import get_logger

logger = get_logger(__name__)

TZ_ANNOTATION = re.compile(r'\s*\[[^\]]*\]\s*$')
DATE_PREFIX = re.compile(r'^(\d{4})(\d{2})(\d{2})(.*)$')
# HHMM[SS][.fff] with an optional inline offset such as -0300 or +03:00
TIME_OF_DAY = re.compile(r'^(\d{2})(\d{2})(\d{2})?(?:\.\d+)?(?:[+-]\d{1,2}(?::?\d{2})?)?$')


@dataclass(frozen=True)
class ParsedDate:
    value: datetime
    is_fallback: bool = False


def _fixed_width(value: str) -> Optional[datetime]:
    """
    YYYYMMDD followed by anything. The rest is read as a time of day when
    it looks like one; otherwise only the date is kept.
    """
    match = DATE_PREFIX.match(value)
    if not match:
        return None
    year, month, day, rest = match.groups()
    try:
        date_only = datetime(int(year), int(month), int(day))
    except ValueError:
        return None

    rest = rest.strip()
    if not rest:
        return date_only
    time_match = TIME_OF_DAY.match(rest)
    if not time_match:
        logger.debug(f"Unreadable time of day in {value!r}, keeping date only")
        return date_only
    hour, minute, second = time_match.groups()
    try:
        return date_only.replace(hour=int(hour), minute=int(minute), second=int(second or 0))
    except ValueError:
        logger.debug(f"Invalid time of day in {value!r}, keeping date only")
        return date_only


def _generic(value: str) -> Optional[datetime]:
    with warnings.catch_warnings():
        # pandas warns when it has to guess the format per element
        warnings.simplefilter("ignore", UserWarning)
        parsed = pd.to_datetime(value, errors='coerce')
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        # Offsets are dropped like bracketed zones: wall-clock time is kept
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime()


def parse_ofx_date(value: Optional[str], now: Optional[datetime] = None) -> ParsedDate:
    """
    Parse an OFX date string.

    Args:
        value: Raw DTPOSTED value
        now: Timestamp used as fallback; defaults to the current time

    Returns:
        ParsedDate; ``is_fallback`` is True when ``value`` could not be read
    """
    if value:
        cleaned = TZ_ANNOTATION.sub('', value).strip()
        if cleaned:
            parsed = _fixed_width(cleaned)
            if parsed is None:
                try:
                    parsed = _generic(cleaned)
                except (ValueError, OverflowError, TypeError) as e:
                    logger.debug(f"Generic date parse failed for {value!r}: {e}")
                    parsed = None
            if parsed is not None:
                return ParsedDate(parsed)

    logger.warning(f"Could not parse date {value!r}, using processing time as fallback")
    return ParsedDate(now or datetime.now(), is_fallback=True)
