"""
Outcome and result types shared by the worker pool and the uploaders.

Every work item ends up as exactly one :class:`Outcome`:

``done``
    The record was created (and published) during this run.
``skipped``
    A matching record already existed in Contentful; nothing was written.
``failed``
    One of the item's steps raised or the item timed out.  The error is
    kept as an :class:`ItemError` carrying the item key and step name.

:class:`ResultSet` accumulates outcomes into three disjoint lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Status(str, Enum):
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class MissingDependencyError(LookupError):
    """A required cross-reference (author, image, topic...) does not exist yet."""

    def __init__(self, dependency: str, key: str) -> None:
        super().__init__(f"missing dependency {dependency!r} for {key!r}")
        self.dependency = dependency
        self.key = key


class ItemTimeoutError(TimeoutError):
    """The item did not settle within the pool's per-item timeout."""


class ItemError(Exception):
    """Wraps the exception raised by one step of one item."""

    def __init__(self, key: str, step: str, cause: BaseException) -> None:
        super().__init__(f"[{step}] {key}: {cause}")
        self.key = key
        self.step = step
        self.cause = cause

    @property
    def missing_dependency(self) -> bool:
        return isinstance(self.cause, MissingDependencyError)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "step": self.step,
            "type": type(self.cause).__name__,
            "message": str(self.cause),
        }


@dataclass
class Outcome:
    status: Status
    key: str
    item: Any
    record: Any = None
    error: Optional[ItemError] = None

    @classmethod
    def done(cls, key: str, item: Any, record: Any) -> "Outcome":
        return cls(Status.DONE, key, item, record=record)

    @classmethod
    def skipped(cls, key: str, item: Any, existing: Any) -> "Outcome":
        return cls(Status.SKIPPED, key, item, record=existing)

    @classmethod
    def failed(cls, key: str, item: Any, error: ItemError) -> "Outcome":
        return cls(Status.FAILED, key, item, error=error)


@dataclass
class ResultSet:
    """Three append-only partitions of settled outcomes."""

    done: List[Outcome] = field(default_factory=list)
    skipped: List[Outcome] = field(default_factory=list)
    failed: List[Outcome] = field(default_factory=list)

    def add(self, outcome: Outcome) -> None:
        if outcome.status is Status.DONE:
            self.done.append(outcome)
        elif outcome.status is Status.SKIPPED:
            self.skipped.append(outcome)
        else:
            self.failed.append(outcome)

    @property
    def total(self) -> int:
        return len(self.done) + len(self.skipped) + len(self.failed)

    def keys(self, status: Status) -> List[str]:
        return [o.key for o in getattr(self, status.value)]

    def records(self) -> List[Any]:
        """Records of done and skipped outcomes, the input of the next stage."""
        return [o.record for o in self.done + self.skipped]
