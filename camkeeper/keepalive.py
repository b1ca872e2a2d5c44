# -*- coding: utf-8 -*-
"""
Keep-alive job: while the stream is on, pull a few seconds of it the way a
viewer would, so the platform keeps treating it as watched.
"""

import logging
import random

import requests

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class KeepAlive:

    def __init__(self, config, nas, clock, probe, session=None, rng=None):
        self.config = config
        self.nas = nas
        self.clock = clock
        self.probe = probe
        self.session = session or requests.Session()
        self.rng = rng or random.Random()

    def run(self):
        """Returns False when the live stream URL could not be resolved"""
        pause = self.rng.randint(1, max(1, self.config.keepalive_max_pause))
        logger.debug(f"Pausing for a random amount of seconds (in this case {pause} seconds) before performing tasks")
        self.clock.sleep(pause)

        if not self.nas.load().live_on:
            logger.debug("Live stream is not currently turned on. Will not perform the Keep Alive operation")
            return True

        result = self.probe.probe()
        if not result.is_up:
            logger.error(f"{result.reason}. Exiting program")
            return False

        received = self.read_stream(result.detail)
        logger.debug(f"Complete, read {received} bytes of the live stream")
        return True

    def read_stream(self, url):
        """Read and discard up to keepalive_seconds worth of the stream"""
        deadline = self.clock.monotonic() + self.config.keepalive_seconds
        received = 0
        try:
            with self.session.get(url, stream=True, timeout=10) as resp:
                resp.raise_for_status()
                for chunk in resp.iter_content(CHUNK_SIZE):
                    received += len(chunk)
                    if self.clock.monotonic() >= deadline:
                        break
        except requests.RequestException as e:
            logger.error(f"Reading the live stream failed after {received} bytes: {e}")
        return received
