"""
Result envelope for statement execution.

``ExecutionHandle.run`` returns ``Ok(outcome)`` or ``Err(error)`` instead of
raising, so the replay loop can look at a failed statement's classification
code and choose between repairing the schema and aborting.

Examples:
    >>> match handle.run(statement):
    ...     case Ok(outcome):
    ...         log(outcome.update_count)
    ...     case Err(error) if error.failure.code is FailureCode.SCHEMA_NOT_FOUND:
    ...         repair(error)
    ...     case Err(error):
    ...         raise error
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from ddlmeta.core.errors import ExecutionError


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A statement ran; ``value`` is what it produced."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """A statement failed on the interpreter."""

    error: ExecutionError

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the execution error."""
        raise self.error


Result = Ok[T] | Err[T]


__all__ = ["Ok", "Err", "Result"]
