"""
Record Geocoder — Throttle Policy
=================================
Pacing contract between geocoding requests: exactly one request in flight
and a fixed pause between consecutive records.  The pause is not adaptive;
there is no backoff on errors.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from shared.python.validators import Validators

logger = logging.getLogger("record_geocoder.throttle")


@dataclass(frozen=True)
class ThrottlePolicy:
    """Fixed inter-request delay.

    Attributes:
        delay_seconds: Seconds to wait between two records.  ``0`` disables
                       the pause.
        sleep: Blocking sleep function; swap it for a no-op or a recorder in
               tests.
    """

    delay_seconds: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    #: Records processed concurrently.  The pipeline never exceeds this.
    max_in_flight = 1

    def __post_init__(self) -> None:
        Validators.assert_non_negative(self.delay_seconds, "Throttle delay")

    def wait(self) -> None:
        """Block for :attr:`delay_seconds` (no-op when it is zero)."""
        if self.delay_seconds > 0:
            logger.debug("Throttling for %.2fs", self.delay_seconds)
            self.sleep(self.delay_seconds)
