"""
==============================================================================
Outcome Schemas Module
==============================================================================

Value objects returned by the scan engine to its caller.

Resolution outcomes are a tagged union on ``kind``:

    Resolved     - the product is known (from the cache or the registry)
    AwaitingAdd  - nobody knows the product; ask the user for details
    Failed       - the registry refused the request; the user may retry

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .product import ProductRecord


class ResolutionSource(str, enum.Enum):
    """Where a resolved record came from."""

    CACHE = "cache"
    REMOTE = "remote"


class Resolved(BaseModel):
    """Barcode resolved to a product record."""

    kind: Literal["resolved"] = "resolved"
    record: ProductRecord
    source: ResolutionSource

    @property
    def barcode(self) -> str:
        return self.record.barcode


class AwaitingAdd(BaseModel):
    """Barcode unknown; the caller should collect product details."""

    kind: Literal["awaiting_add"] = "awaiting_add"
    barcode: str
    offline: bool = False


class Failed(BaseModel):
    """A user-visible failure."""

    kind: Literal["failed"] = "failed"
    barcode: Optional[str] = None
    message: str
    code: str = "INTERNAL_ERROR"
    retryable: bool = False


ResolutionOutcome = Union[Resolved, AwaitingAdd, Failed]


class Submitted(BaseModel):
    """Result of a product submission."""

    kind: Literal["submitted"] = "submitted"
    record: ProductRecord
    remote: bool
    queued: bool = False


SubmitOutcome = Submitted


class SyncReport(BaseModel):
    """
    Result of one pass over the pending write queue.

    Attributes:
        attempted: Entries sent to the registry
        succeeded: Entries the registry accepted
        remaining: Entries still queued after the pass, in queue order
        skipped: True when another pass was already running
    """

    attempted: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    remaining: List[ProductRecord] = Field(default_factory=list)
    skipped: bool = False

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded


class EventKind(str, enum.Enum):
    """Kinds of events delivered to session listeners."""

    RESOLUTION = "resolution"
    SUBMISSION = "submission"
    SYNC = "sync"
    CONNECTIVITY = "connectivity"


class SessionEvent(BaseModel):
    """Event pushed from the scan session to the UI."""

    kind: EventKind
    payload: Any = None
