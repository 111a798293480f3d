"""Date grammar and relative date helpers.

Date nodes are keyed by the canonical ``YYYY-MM-DD`` form of their day.
The grammar accepted from users is looser: ``digits-digits-digits``
(``2024-1-5`` is the same key as ``2024-01-05``), the relative keywords
``today``/``tomorrow``/``yesterday``, and, when a token is forced to be a
date, month names meaning the first day of that month this year.
"""

import datetime as dt
import re

from trellis.domain.graph.errors import MalformedDate
from trellis.domain.shared.result import Err, Ok, Result

DATE_PATTERN = re.compile(r"^(\d+)-(\d+)-(\d+)$")

RELATIVE_OFFSETS: dict[str, int] = {
    "yesterday": -1,
    "today": 0,
    "tomorrow": 1,
}

MONTHS: dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}


def format_date(day: dt.date) -> str:
    """Return the canonical key used in the graph's date table."""
    return day.strftime("%Y-%m-%d")


def matches_date_grammar(token: str) -> bool:
    return DATE_PATTERN.match(token) is not None


def is_relative_date(token: str) -> bool:
    return token in RELATIVE_OFFSETS


def parse_absolute(token: str) -> Result[dt.date, MalformedDate]:
    """Parse ``digits-digits-digits`` into a calendar-valid date."""
    match = DATE_PATTERN.match(token)
    if match is None:
        return Err(MalformedDate(token))
    try:
        year, month, day = (int(part) for part in match.groups())
        return Ok(dt.date(year, month, day))
    except (ValueError, OverflowError):
        return Err(MalformedDate(token))


def resolve_relative(token: str, today: dt.date | None = None) -> dt.date:
    """Turn a relative keyword into a concrete day.

    Args:
        token: One of ``today``, ``tomorrow``, ``yesterday``.
        today: The current day. Defaults to the process-local date.
    """
    base = today or dt.date.today()
    return base + dt.timedelta(days=RELATIVE_OFFSETS[token])


def parse_date(text: str, today: dt.date | None = None) -> Result[dt.date, MalformedDate]:
    """Parse any user date expression.

    Accepts the absolute grammar, relative keywords, and month names
    (case-insensitive).

    Args:
        text: The user-supplied date expression.
        today: Reference day for relative and month expressions.

    Returns:
        Ok(date) when the text is a valid date, Err(MalformedDate) otherwise.
    """
    token = text.strip().lower()
    if matches_date_grammar(token):
        return parse_absolute(token)
    if is_relative_date(token):
        return Ok(resolve_relative(token, today))
    if token in MONTHS:
        base = today or dt.date.today()
        return Ok(dt.date(base.year, MONTHS[token], 1))
    return Err(MalformedDate(text))
