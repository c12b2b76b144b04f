"""Tagged result returned by every gated operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class OutcomeStatus(Enum):
    """Whether an operation ran, was refused, or ran and failed."""

    OK = "ok"
    DENIED = "denied"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    """Result of an authorized operation.

    A denial means the caller may not do this and nothing was attempted.
    A failure means the operation was allowed but the filesystem or the
    store could not carry it out.

    :param status: The outcome tag
    :param reason: Human readable explanation for denials and failures
    :param value: Optional payload, e.g. a directory listing
    """

    status: OutcomeStatus
    reason: str | None = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> Outcome:
        return cls(OutcomeStatus.OK, value=value)

    @classmethod
    def denied(cls, reason: str) -> Outcome:
        return cls(OutcomeStatus.DENIED, reason=reason)

    @classmethod
    def failed(cls, reason: str, value: Any = None) -> Outcome:
        return cls(OutcomeStatus.FAILED, reason=reason, value=value)

    @property
    def is_ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def is_denied(self) -> bool:
        return self.status is OutcomeStatus.DENIED

    @property
    def is_failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    def __bool__(self) -> bool:
        return self.is_ok
