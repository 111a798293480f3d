"""Result monad for explicit error handling in graph operations.

Every engine operation that can fail on user input returns either
``Ok(value)`` or ``Err(error)`` instead of raising. Exceptions are kept
for programmer errors (broken invariants).

Example usage:
    >>> result = graph.insert_child("write report", "work", pseudo=False)
    >>> if is_ok(result):
    ...     print(f"Added node {result.value}")
    ... else:
    ...     print(f"Error: {result.error}")
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value.

    Attributes:
        value: The success value of type T.
    """

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error.

    Attributes:
        error: The error value of type E.
    """

    error: E


# Using Union here as TypeVar aliases don't work with | syntax at runtime
Result = Union[Ok[T], Err[E]]  # noqa: UP007


def is_ok(result: Ok[T] | Err[E]) -> bool:
    """Check if a result is successful."""
    return isinstance(result, Ok)


def is_err(result: Ok[T] | Err[E]) -> bool:
    """Check if a result is an error."""
    return isinstance(result, Err)


def flat_map(result: Ok[T] | Err[E], fn: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
    """Chain operations that return Results.

    If the result is Ok, applies fn to the value and returns its Result.
    If the result is Err, returns the Err unchanged. Used to sequence
    identifier resolution with the mutation that needs the handle.

    Args:
        result: The result to chain from.
        fn: Function that takes the Ok value and returns a new Result.

    Returns:
        The Result from applying fn, or the original Err.
    """
    if isinstance(result, Ok):
        return fn(result.value)
    return result


def unwrap(result: Ok[T] | Err[E]) -> T:
    """Extract the value from a Result the caller knows to be Ok.

    Args:
        result: The result to unwrap.

    Returns:
        The Ok value.

    Raises:
        RuntimeError: If the result is an Err. This signals a broken
            internal invariant, not bad user input.
    """
    if isinstance(result, Ok):
        return result.value
    raise RuntimeError(f"unwrap called on error result: {result.error}")
