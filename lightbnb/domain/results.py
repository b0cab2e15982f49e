"""
Query outcomes.

Every QueryService operation returns a QueryResult so callers can tell an
absent row (NOT_FOUND) apart from a store fault (FAILED).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class QueryStatus(str, Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


class QueryExecutionError(RuntimeError):
    """Raised by QueryResult.unwrap() when the statement itself failed."""


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    status: QueryStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, value: T) -> "QueryResult[T]":
        return cls(QueryStatus.OK, value=value)

    @classmethod
    def not_found(cls) -> "QueryResult[Any]":
        return cls(QueryStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: str) -> "QueryResult[Any]":
        return cls(QueryStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is QueryStatus.OK

    @property
    def is_not_found(self) -> bool:
        return self.status is QueryStatus.NOT_FOUND

    @property
    def is_failed(self) -> bool:
        return self.status is QueryStatus.FAILED

    def unwrap(self) -> T:
        """Return the value, or raise LookupError / QueryExecutionError."""
        if self.status is QueryStatus.FAILED:
            raise QueryExecutionError(self.error or "query failed")
        if self.status is QueryStatus.NOT_FOUND:
            raise LookupError("not_found")
        return self.value  # type: ignore[return-value]
