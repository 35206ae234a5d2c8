"""Tagged results for operations whose expected failures are not exceptional."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class OutcomeStatus(str, Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    status: OutcomeStatus
    value: T | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> Outcome[T]:
        return cls(OutcomeStatus.OK, value)

    @classmethod
    def not_found(cls) -> Outcome[T]:
        return cls(OutcomeStatus.NOT_FOUND)

    @classmethod
    def forbidden(cls) -> Outcome[T]:
        return cls(OutcomeStatus.FORBIDDEN)

    @classmethod
    def conflict(cls) -> Outcome[T]:
        return cls(OutcomeStatus.CONFLICT)

    @property
    def is_ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    def unwrap(self) -> T:
        """Return the value of an OK outcome."""
        if self.status is not OutcomeStatus.OK:
            raise ValueError(f"Outcome is {self.status.value}, not OK")
        return self.value  # type: ignore[return-value]
