# -*- coding: utf-8 -*-
"""
Time source used by every component that needs "now" or a pause.

Tests swap SystemClock for a fake that records sleeps instead of waiting.
"""

import time
from datetime import datetime


class SystemClock:
    """Wall clock in local time"""

    def now(self):
        return datetime.now()

    def sleep(self, seconds):
        if seconds > 0:
            time.sleep(seconds)

    def seconds_since_midnight(self):
        current = self.now()
        return current.hour * 3600 + current.minute * 60 + current.second

    def monotonic(self):
        return time.monotonic()
