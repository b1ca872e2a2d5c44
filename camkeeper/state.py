# -*- coding: utf-8 -*-
"""
Small values persisted between runs, one value per text file:
cached sunrise and sunset strings, and the time the current segment started.
"""

import logging
import os
import time

logger = logging.getLogger(__name__)

SUNRISE_FILE = "camkeeper-sunrise"
SUNSET_FILE = "camkeeper-sunset"
SEGMENT_START_FILE = "camkeeper-camstart"


class StateFiles:
    """Persistent state for the controller"""

    def __init__(self, config):
        self.config = config

    def _read(self, name):
        path = self.config.path(name)
        try:
            with open(path, 'r') as f:
                return f.read().strip()
        except FileNotFoundError:
            return ""
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return ""

    def _write(self, name, value):
        path = self.config.path(name)
        try:
            with open(path, 'w') as f:
                f.write(str(value))
        except OSError as e:
            logger.warning(f"Could not write {path}: {e}")

    def age_seconds(self, name):
        """Seconds since the file was written, None if it doesn't exist"""
        path = self.config.path(name)
        if not os.path.exists(path):
            return None
        return time.time() - os.path.getmtime(path)

    # Sun times

    def load_sun_times(self):
        return self._read(SUNRISE_FILE), self._read(SUNSET_FILE)

    def save_sun_times(self, sunrise, sunset):
        self._write(SUNRISE_FILE, sunrise)
        self._write(SUNSET_FILE, sunset)

    def sun_cache_age(self):
        ages = [self.age_seconds(SUNRISE_FILE), self.age_seconds(SUNSET_FILE)]
        if None in ages:
            return None
        return max(ages)

    # Segment start

    def load_segment_start(self):
        value = self._read(SEGMENT_START_FILE)
        try:
            return int(value)
        except ValueError:
            logger.debug(f"No usable segment start time recorded ({value!r}), assuming midnight")
            return 0

    def save_segment_start(self, seconds):
        logger.debug(f"Writing segment start time {seconds} to {self.config.path(SEGMENT_START_FILE)}")
        self._write(SEGMENT_START_FILE, seconds)
