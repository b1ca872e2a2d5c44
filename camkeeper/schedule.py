# -*- coding: utf-8 -*-
"""
Daylight schedule: when the stream should be on, and when a running
segment has grown long enough that it must be split.

All times are seconds since local midnight; lengths are seconds.
"""

import logging
from dataclasses import dataclass

from .errors import ScheduleError
from .timeutil import describe_time_difference, seconds_to_time, seconds_to_time_ampm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleWindow:
    activation: int
    deactivation: int
    max_segment_length: int
    grace_period: int
    sunrise: int = 0
    sunset: int = 0

    @property
    def length(self):
        return self.deactivation - self.activation

    @property
    def midday(self):
        return self.activation + self.length // 2


def compute_window(sunrise, sunset, start_offset_minutes, stop_offset_minutes,
                   max_segment_seconds, grace_seconds, midday_split=True):
    """
    Turn sunrise/sunset (seconds since midnight) plus offsets into the
    streaming window for the day.
    """
    activation = sunrise + start_offset_minutes * 60
    deactivation = sunset + stop_offset_minutes * 60
    total = deactivation - activation

    if total < 1:
        raise ScheduleError(f"Problem calculating sunrise/sunset values. Total stream length is {total} seconds")

    max_segment = max_segment_seconds
    half = total // 2
    if midday_split and half < max_segment:
        logger.debug(
            f"Using midday split length {seconds_to_time(half)} in place of maximum "
            f"video length {seconds_to_time(max_segment)} to determine split points"
        )
        max_segment = half

    return ScheduleWindow(
        activation=activation,
        deactivation=deactivation,
        max_segment_length=max_segment,
        grace_period=grace_seconds,
        sunrise=sunrise,
        sunset=sunset,
    )


def should_be_on(now, window):
    """True inside [activation, deactivation)"""
    return window.activation <= now < window.deactivation


def exceeds_max_segment(started_at, now, window):
    """
    True when the running segment is longer than the maximum and there is
    still more than the grace period left in the day. Inside the grace period
    the segment is extended to the end of the day instead, so the day does
    not end with a stub segment.
    """
    elapsed = now - started_at
    if elapsed <= window.max_segment_length:
        return False

    graced_end_of_day = window.deactivation - window.grace_period
    if now >= graced_end_of_day:
        logger.debug(
            f"Within grace period, end of day is at {seconds_to_time(window.deactivation)}. "
            f"Current video length {seconds_to_time(elapsed)} exceeds maximum, but not splitting"
        )
        return False
    return True


def log_window(window, now):
    logger.debug(f"Current time:    {seconds_to_time_ampm(now)}  ({now} seconds)")
    logger.debug(f"Approx Sunrise:  {seconds_to_time_ampm(window.sunrise)}  ({window.sunrise} seconds)")
    logger.debug(f"Approx Midday:   {seconds_to_time_ampm(window.midday)}  ({window.midday} seconds)")
    logger.debug(f"Approx Sunset:   {seconds_to_time_ampm(window.sunset)}  ({window.sunset} seconds)")
    logger.debug(describe_time_difference(window.sunrise - now, "Sunrise"))
    logger.debug(describe_time_difference(window.sunset - now, "Sunset"))
    logger.debug(f"Will start the stream at about   {seconds_to_time(window.activation)}")
    logger.debug(f"Will stop it for the night at    {seconds_to_time(window.deactivation)}")
    logger.debug(f"Total stream length (if unsplit) {seconds_to_time(window.length)}")
