# -*- coding: utf-8 -*-
"""
Sunrise/sunset lookup with a last-known-good cache.

A fresh lookup happens at most once a day, in the local afternoon, so that
it always targets tomorrow's sunrise and so an outage can't cause a retry on
every run. Any failure falls back to the cached values.
"""

import logging
import re
from datetime import timedelta

import requests

from .errors import ScheduleError
from .timeutil import time_to_seconds

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) camkeeper/1.0"
SUNRISESUNSET_URL = "https://api.sunrisesunset.io/json"
TIMEANDDATE_URL = "https://www.timeanddate.com/sun/{location}"

_CLOCK_TIME_RE = re.compile(
    r'\b\d{1,2}:[0-5]\d(?::[0-5]\d)?\s?(?:AM|PM|am|pm|A\.M\.|P\.M\.|a\.m\.|p\.m\.)'
)


def parse_sunrisesunset(payload):
    """Pull (sunrise, sunset) strings out of a sunrisesunset.io response"""
    results = payload.get('results') or {}
    sunrise = results.get('sunrise') or ""
    sunset = results.get('sunset') or ""
    if not sunrise or not sunset:
        return None
    return sunrise, sunset


def parse_timeanddate(html, day):
    """
    Sunrise and sunset for one day of the timeanddate.com monthly sun table.
    Only the row for that day is searched; its first two clock times are
    the sunrise and sunset columns.
    """
    row = re.search(rf'<tr[^>]*\bdata-day="?{day}"?[\s>].*?</tr>', html or "", re.DOTALL)
    if not row:
        return None
    times = _CLOCK_TIME_RE.findall(row.group(0))
    if len(times) < 2:
        return None
    return times[0], times[1]


class SunTimesProvider:

    def __init__(self, config, state, clock, session=None):
        self.config = config
        self.state = state
        self.clock = clock
        self.session = session or requests.Session()

    # ==========================================================================
    #  FETCHING
    # ==========================================================================

    def fetch(self):
        """Return fresh (sunrise, sunset) strings, or None on any failure"""
        if self.config.sun_source == "timeanddate":
            return self._fetch_timeanddate()
        return self._fetch_sunrisesunset()

    def _target_day(self):
        """Afternoon lookups are for tomorrow's schedule"""
        day = self.clock.now()
        if self.clock.seconds_since_midnight() > self.config.sun_refresh_after:
            day += timedelta(days=1)
        return day

    def _fetch_sunrisesunset(self):
        date = self._target_day().strftime('%Y-%m-%d')
        params = {'lat': self.config.latitude, 'lng': self.config.longitude, 'date': date}
        logger.debug(f"Retrieving sunrise/sunset from {SUNRISESUNSET_URL} for {date}")
        try:
            resp = self.session.get(SUNRISESUNSET_URL, params=params,
                                    headers={'User-Agent': USER_AGENT}, timeout=15)
            resp.raise_for_status()
            times = parse_sunrisesunset(resp.json())
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"SunriseSunset.io time retrieval failed: {e}")
            return None

        if not times:
            logger.debug(f"SunriseSunset.io output had no sunrise/sunset: {resp.text[:300]}")
        return times

    def _fetch_timeanddate(self):
        day = self._target_day()
        url = TIMEANDDATE_URL.format(location=self.config.location)
        params = {'month': day.month, 'year': day.year}
        logger.debug(f"Retrieving sunrise/sunset from {url} for {day:%Y-%m-%d}")
        try:
            resp = self.session.get(url, params=params, headers={'User-Agent': USER_AGENT}, timeout=15)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.debug(f"TimeAndDate time retrieval failed: {e}")
            return None

        times = parse_timeanddate(resp.text, day.day)
        if not times:
            logger.debug(f"TimeAndDate page had no sunrise/sunset row for day {day.day}")
        return times

    # ==========================================================================
    #  CACHE
    # ==========================================================================

    def should_refresh(self):
        age = self.state.sun_cache_age()
        if age is None:
            return True
        if self.clock.seconds_since_midnight() <= self.config.sun_refresh_after:
            return False
        return age > self.config.sun_cache_max_age

    def get(self):
        """
        Return (sunrise_seconds, sunset_seconds) for today's schedule.
        Raises ScheduleError when neither a lookup nor the cache has values.
        """
        sunrise, sunset = self.state.load_sun_times()

        if self.should_refresh():
            logger.debug("Retrieving sunrise/sunset times")
            fresh = self.fetch()
            if fresh is None:
                logger.error(f"Problem obtaining sunrise/sunset. Falling back to previously saved values: {sunrise}/{sunset}")
            else:
                sunrise, sunset = fresh
                logger.info(f"Retrieved sunrise/sunset times: {sunrise}/{sunset}")
                self.state.save_sun_times(sunrise, sunset)

        if not sunrise or not sunset:
            raise ScheduleError("Problem obtaining sunrise/sunset values. Lookup failed and no cached values exist")

        try:
            return time_to_seconds(sunrise), time_to_seconds(sunset)
        except ValueError as e:
            raise ScheduleError(f"Cached sunrise/sunset values are unusable: {e}")
