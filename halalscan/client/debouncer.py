"""
==============================================================================
Scan Debouncer Module
==============================================================================

Suppresses the burst of identical callbacks a camera frame stream produces
for a single physical scan.

After a barcode is accepted the scanner enters a paused phase lasting
``cool_down_ms``. During that phase the same barcode is rejected; a
different barcode is accepted immediately and restarts the window. Once
the window has elapsed (or reset() is called) the same barcode can be
scanned again. This is a UX debounce, not a data-layer dedup.

==============================================================================
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional


# Module logger
logger = logging.getLogger(__name__)

DEFAULT_COOL_DOWN_MS = 3000


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


@dataclass
class DebounceState:
    """Bookkeeping owned by a single ScanDebouncer."""

    last_barcode: Optional[str] = None
    last_accepted_at: Optional[float] = None
    paused: bool = False

    def deadline(self, cool_down_ms: float) -> Optional[float]:
        if self.last_accepted_at is None:
            return None
        return self.last_accepted_at + cool_down_ms


class ScanDebouncer:
    """
    Debouncer for barcode scan events.

    Example:
        >>> debouncer = ScanDebouncer(cool_down_ms=3000)
        >>> debouncer.accept("123", now=0)
        True
        >>> debouncer.accept("123", now=1)
        False
        >>> debouncer.accept("123", now=3001)
        True
    """

    def __init__(self, cool_down_ms: float = DEFAULT_COOL_DOWN_MS) -> None:
        self._cool_down_ms = cool_down_ms
        self._state = DebounceState()

    @property
    def cool_down_ms(self) -> float:
        return self._cool_down_ms

    @property
    def state(self) -> DebounceState:
        return self._state

    def accept(self, barcode: str, now: Optional[float] = None) -> bool:
        """
        Decide whether a scan event should be processed.

        Args:
            barcode: Scanned code
            now: Event time in milliseconds (monotonic clock if omitted)

        Returns:
            False for a rapid-fire duplicate, True otherwise
        """
        if now is None:
            now = monotonic_ms()

        state = self._state
        deadline = state.deadline(self._cool_down_ms)

        if (
            state.paused
            and barcode == state.last_barcode
            and deadline is not None
            and now < deadline
        ):
            logger.debug(f"Debounced repeat scan of {barcode}")
            return False

        state.last_barcode = barcode
        state.last_accepted_at = now
        state.paused = True
        return True

    def reset(self) -> None:
        """Leave the paused phase, e.g. when the user asks to scan again."""
        self._state = DebounceState()
