"""
Lenient calendar-date loading for license attributes.

License attributes arrive from JSON, so dates are usually ISO strings. A
string that does not parse is not an error by default: the field is treated
as unset. That policy is named here (``MalformedDatePolicy``) so callers can
opt into rejecting such input instead.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from enum import Enum
from typing import Any

from dateutil import parser as dateutil_parser
from pydantic import BaseModel, Field

from portable_license.errors import LicenseValidationError

logger = logging.getLogger(__name__)

_YEAR_FIRST = re.compile(r"\d{4}\D")


class MalformedDatePolicy(Enum):
    """What to do with a date string that cannot be parsed."""

    IGNORE = "ignore"  # Leave the field unset
    REJECT = "reject"  # Raise LicenseValidationError


class DateState(Enum):
    """Outcome of loading one temporal attribute."""

    UNSET = "unset"  # Absent, None or False
    SET = "set"  # Parsed date, or a non-string value kept for validation
    MALFORMED = "malformed"  # String that is not a calendar date


class LoadedDate(BaseModel, frozen=True):
    """Result of loading a single temporal attribute."""

    name: str = Field(description="Attribute name as found in the input")
    raw: Any = Field(default=None, description="Value as supplied")
    value: Any = Field(default=None, description="Value to assign when SET")
    state: DateState


def parse_date(text: str) -> date | None:
    """
    Parse a calendar date.

    ISO dates and datetimes are read directly. Anything else goes through
    ``dateutil``, which accepts forms such as "2020/01/15", "15 Jan 2020" and
    "Jan 15 2020". Numeric dates that do not start with the year are read
    day first ("01/02/2025" is 1 February).

    Args:
        text: Date string, e.g. "2025-01-01"

    Returns:
        Parsed date (time of day dropped), or None if the string is not a date
    """
    text = text.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    try:
        return dateutil_parser.parse(text, dayfirst=not _YEAR_FIRST.match(text)).date()
    except (ValueError, OverflowError):
        return None


def load_date(
    name: str,
    raw: Any,
    policy: MalformedDatePolicy = MalformedDatePolicy.IGNORE,
) -> LoadedDate:
    """
    Load one temporal attribute from loosely-typed input.

    Strings are parsed as calendar dates. Other values are kept as-is so that
    ``License.is_valid`` can reject them later.

    Args:
        name: Attribute name, used for logging and errors
        raw: Supplied value
        policy: Handling of unparsable date strings

    Returns:
        LoadedDate describing the outcome

    Raises:
        LicenseValidationError: If the string is malformed and policy is REJECT
    """
    if raw is None or raw is False:
        return LoadedDate(name=name, raw=raw, state=DateState.UNSET)

    if not isinstance(raw, str):
        return LoadedDate(name=name, raw=raw, value=raw, state=DateState.SET)

    parsed = parse_date(raw)
    if parsed is not None:
        return LoadedDate(name=name, raw=raw, value=parsed, state=DateState.SET)

    if policy is MalformedDatePolicy.REJECT:
        raise LicenseValidationError(f"Invalid date for '{name}': {raw!r}")

    logger.warning("Ignoring unparsable date for %s: %r", name, raw)
    return LoadedDate(name=name, raw=raw, state=DateState.MALFORMED)


def as_date(value: Any) -> date | None:
    """Return value as a plain date, or None if it is not a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None
