"""Identifier resolution.

Turns a user-facing token into a node handle. The order is fixed:

1. Absolute dates (``2024-05-01``) look up the date table. A date-shaped
   token that is not a real day (``2024-02-30``) falls through to the
   steps below.
2. Relative dates (``today``, ``tomorrow``, ``yesterday``) are turned into
   a concrete day and look up the date table.
3. Non-negative integers are handles, bypassing aliases.
4. Anything else is an alias.

Because integers win over aliases, an alias made only of digits can never
be reached by name.
"""

import datetime as dt
import re
from typing import TYPE_CHECKING

from trellis.domain.graph.dates import (
    format_date,
    is_relative_date,
    matches_date_grammar,
    parse_absolute,
    parse_date,
    resolve_relative,
)
from trellis.domain.graph.errors import (
    GraphError,
    InvalidAlias,
    InvalidDate,
    InvalidHandle,
    MalformedHandle,
)
from trellis.domain.shared.result import Err, Ok, Result

if TYPE_CHECKING:
    from trellis.domain.graph.graph import Graph

# Tokens that look like numbers but are not valid handles
_NUMBERISH = re.compile(r"^[+-]?\d+(\.\d*)?$|^[+-]?\.\d+$")


def check_handle(graph: "Graph", handle: int) -> Result[int, GraphError]:
    """Validate that ``handle`` addresses a live slot."""
    if handle < 0 or not graph.is_live(handle):
        return Err(InvalidHandle(handle))
    return Ok(handle)


def lookup_date(graph: "Graph", day: dt.date) -> Result[int, GraphError]:
    key = format_date(day)
    handle = graph.dates.get(key)
    if handle is None:
        return Err(InvalidDate(key))
    return Ok(handle)


def resolve(
    graph: "Graph",
    token: int | str,
    today: dt.date | None = None,
) -> Result[int, GraphError]:
    """Resolve a handle or token to a live node handle.

    Args:
        graph: The graph to resolve against.
        token: An integer handle or a user token.
        today: Reference day for relative dates. Defaults to the
            process-local date.

    Returns:
        Ok(handle) or Err with InvalidDate, InvalidHandle, InvalidAlias,
        or MalformedHandle.
    """
    if isinstance(token, int):
        return check_handle(graph, token)

    if matches_date_grammar(token):
        parsed = parse_absolute(token)
        if isinstance(parsed, Ok):
            return lookup_date(graph, parsed.value)

    if is_relative_date(token):
        return lookup_date(graph, resolve_relative(token, today))

    if token.isdecimal():
        try:
            handle = int(token)
        except ValueError:
            # Longer than int() will convert
            return Err(MalformedHandle(token))
        return check_handle(graph, handle)

    handle = graph.aliases.get(token)
    if handle is not None:
        return Ok(handle)

    if not token.strip() or _NUMBERISH.match(token.strip()):
        return Err(MalformedHandle(token))
    return Err(InvalidAlias(token))


def resolve_date(
    graph: "Graph",
    token: str,
    today: dt.date | None = None,
) -> Result[int, GraphError]:
    """Resolve a token that must be read as a date.

    Accepts everything ``parse_date`` does, including month names.
    """
    parsed = parse_date(token, today)
    if isinstance(parsed, Err):
        return parsed
    return lookup_date(graph, parsed.value)
