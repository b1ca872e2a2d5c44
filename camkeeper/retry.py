# -*- coding: utf-8 -*-
"""Bounded fixed-interval wait for a degraded signal to recover"""

import logging

logger = logging.getLogger(__name__)


class RetryWaiter:

    def __init__(self, clock):
        self.clock = clock

    def wait_for_recovery(self, check_fn, interval_seconds, max_retries, label="signal"):
        """
        Sleep, then check, up to max_retries times. The sleep always comes
        first: a check straight after a failure rarely sees a recovery.
        Returns (recovered, retries_used).
        """
        for attempt in range(1, max_retries + 1):
            logger.error(
                f"Waiting {interval_seconds} seconds for {label} to come back up. "
                f"Restore attempt {attempt} of {max_retries}"
            )
            self.clock.sleep(interval_seconds)
            if check_fn():
                logger.info(f"{label} recovered after {attempt} attempts")
                return True, attempt

        logger.error(f"{label} did not recover after {max_retries} attempts")
        return False, max_retries
