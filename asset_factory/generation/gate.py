"""
Process-wide single-slot admission control for provider calls.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from ..errors import GateBusy


logger = logging.getLogger("asset_factory.gate")


class GenerationGate:
    """
    At most one generation in flight.

    ``acquire`` never blocks; a caller that loses the race is told the
    gate is busy and must not queue behind the holder.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._held = False

    def acquire(self) -> bool:
        """Take the slot if free. Returns False when already held."""
        with self._lock:
            if self._held:
                return False
            self._held = True
            return True

    def release(self) -> None:
        """Free the slot. Releasing a free gate is a no-op."""
        with self._lock:
            self._held = False

    @property
    def is_held(self) -> bool:
        with self._lock:
            return self._held

    @contextmanager
    def admit(self) -> Iterator["GenerationGate"]:
        """
        Hold the slot for the duration of a ``with`` block.

        Raises:
            GateBusy: If another generation already holds the slot
        """
        if not self.acquire():
            logger.info("Generation requested while another is in progress")
            raise GateBusy("A generation is already in progress")
        try:
            yield self
        finally:
            self.release()


generation_gate = GenerationGate()
