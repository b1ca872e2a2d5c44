# -*- coding: utf-8 -*-
"""
Hysteresis over noisy probes: a signal is good unless it is proven bad on
every sample. The first good sample ends the evaluation early.

The network signal is sampled once (no hysteresis) because a network blip
reliably hangs the stream. The stream signal is sampled several times
because stream probing has known false negatives.
"""

import logging
from dataclasses import dataclass

from .probes import ProbeStatus

logger = logging.getLogger(__name__)


@dataclass
class HysteresisState:
    """Per-signal counters for one evaluation"""
    signal: str
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    samples: int = 0
    verdict: ProbeStatus = ProbeStatus.UP
    last_reason: str = ""

    @property
    def is_up(self):
        return self.verdict is ProbeStatus.UP

    def record(self, result):
        self.samples += 1
        self.last_reason = result.reason
        if result.is_up:
            self.consecutive_successes += 1
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1
            self.consecutive_successes = 0


class HysteresisEvaluator:
    """Samples a probe until it proves itself up or runs out of samples"""

    def __init__(self, clock):
        self.clock = clock

    def evaluate(self, probe, max_samples, interval_seconds):
        if max_samples < 1:
            raise ValueError("max_samples must be at least 1")

        state = HysteresisState(signal=getattr(probe, 'name', type(probe).__name__))

        for sample in range(1, max_samples + 1):
            result = probe.probe()
            state.record(result)

            if result.is_up:
                state.verdict = ProbeStatus.UP
                if sample > 1:
                    logger.info(f"{state.signal} came back up on sample {sample} of {max_samples}")
                else:
                    logger.debug(f"{state.signal} is up: {result.reason}")
                break

            state.verdict = ProbeStatus.DOWN
            logger.debug(f"{state.signal} is down on sample {sample} of {max_samples}: {result.reason}")

            if sample < max_samples:
                logger.debug(f"Sleeping {interval_seconds} seconds before testing {state.signal} again")
                self.clock.sleep(interval_seconds)

        if not state.is_up:
            logger.error(f"{state.signal} is down after {state.samples} samples: {state.last_reason}")
        return state
