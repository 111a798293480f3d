"""Shared domain utilities.

Example usage:
    >>> from trellis.domain.shared import Ok, Err, Result, is_ok
    >>>
    >>> def parse_handle(token: str) -> Result[int, str]:
    ...     if not token.isdigit():
    ...         return Err(f"not a handle: {token}")
    ...     return Ok(int(token))
"""

from trellis.domain.shared.result import (
    Err,
    Ok,
    Result,
    flat_map,
    is_err,
    is_ok,
    unwrap,
)

__all__ = [
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
    "flat_map",
    "unwrap",
]
