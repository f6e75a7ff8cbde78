"""Result type for preference writes with a single bounded retry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .ports import PreferenceStoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a preference write.

    Attributes:
        ok: True if the write eventually succeeded
        attempts: Number of attempts made
        error: The last error when the write failed
    """

    ok: bool
    attempts: int
    error: Exception | None = None


def write_with_retry(write: Callable[[], None], retries: int = 1) -> WriteResult:
    """Run ``write``, retrying up to ``retries`` times on store errors."""
    attempts = 0
    error: Exception | None = None
    while attempts <= retries:
        attempts += 1
        try:
            write()
            return WriteResult(ok=True, attempts=attempts)
        except (PreferenceStoreError, OSError) as e:
            error = e
            logger.warning("Preference write failed (attempt %d): %s", attempts, e)
    return WriteResult(ok=False, attempts=attempts, error=error)
