# -*- coding: utf-8 -*-
"""
The control loop: compare what the stream should be doing with what the NAS
and the video platform say it is doing, and apply the smallest correction.

Every reconcile_* operation is idempotent. Run it again straight after a
successful correction and it returns Action.NO_OP without touching anything
remote.
"""

import enum
import logging
from dataclasses import dataclass, field

from .hysteresis import HysteresisEvaluator
from .retry import RetryWaiter
from .schedule import exceeds_max_segment, should_be_on
from .timeutil import seconds_to_time

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    NO_OP = "no-op"
    START_BROADCAST = "start"
    STOP_BROADCAST = "stop"
    RECREATE_BROADCAST = "recreate"
    FIX_SECRET_KEY = "fix-secret-key"
    FIX_VISIBILITY = "fix-visibility"
    SPLIT_SEGMENT = "split"
    BOUNCE = "bounce"


class Phase(enum.Enum):
    IDLE = "idle"
    CHECK_SCHEDULE = "check-schedule"
    CHECK_BROADCAST = "check-broadcast"
    CHECK_LIVENESS = "check-liveness"
    DONE = "done"


@dataclass
class RunReport:
    phase: Phase = Phase.IDLE
    actions: list = field(default_factory=list)

    def add(self, action):
        if action is not Action.NO_OP:
            self.actions.append(action)
        return action


class StateReconciler:

    def __init__(self, config, gateway, clock, state, network_probe, stream_probe, notifier=None):
        self.config = config
        self.gateway = gateway
        self.clock = clock
        self.state = state
        self.network_probe = network_probe
        self.stream_probe = stream_probe
        self.notifier = notifier
        self.hysteresis = HysteresisEvaluator(clock)
        self.waiter = RetryWaiter(clock)

    def _now(self):
        return self.clock.seconds_since_midnight()

    def _alert(self, method, *args):
        if self.notifier is not None:
            getattr(self.notifier, method)(*args)

    # ==========================================================================
    #  CORRECTIVE ACTIONS
    # ==========================================================================

    def start(self):
        """Start the stream, record the segment start and let the platform warm up"""
        self.state.save_segment_start(self._now())
        self.gateway.start()
        logger.debug(f"Sleeping {self.config.warmup_seconds} seconds, to allow for stream startup")
        self.clock.sleep(self.config.warmup_seconds)

    def _past_window(self, window):
        if should_be_on(self._now(), window):
            return False
        logger.info("The stream is scheduled to be off by now. Leaving it stopped")
        return True

    def bounce(self, duration, window):
        """
        Stop, pause, start. The pause is never shorter than the short bounce
        so the platform sees a real stop before the restart. The restart is
        skipped when the window closed while we were waiting.
        """
        duration = max(duration, self.config.short_bounce_seconds)
        logger.debug(f"Bouncing stream for {duration} seconds")
        self.gateway.stop()
        self.clock.sleep(duration)

        if self._past_window(window):
            return Action.STOP_BROADCAST

        if duration >= self.config.long_bounce_seconds:
            self.state.save_segment_start(self._now())
        self.gateway.start()

        logger.debug(f"Pausing {self.config.warmup_seconds} seconds, after bringing the stream back up, "
                     "to give the stream a chance to spin up")
        self.clock.sleep(self.config.warmup_seconds)
        logger.debug("Done bouncing the stream")
        return Action.BOUNCE

    def recreate_broadcast(self, window):
        """Stop, create a fresh broadcast+stream pair, point the NAS at it and start"""
        logger.debug("Stopping existing stream prior to creating a new live broadcast")
        self.gateway.stop()
        self.clock.sleep(self.config.short_bounce_seconds)
        if self._past_window(window):
            return None

        title = self.config.expected_title or "Live stream"
        new = self.gateway.create_new_broadcast(title, self.config.desired_visibility)
        logger.debug("Bound to broadcast. Updating local streaming service with the new key")
        self.gateway.set_local_key(new.stream_key)

        self.start()
        logger.info(f"New video is live. Video ID: {new.broadcast_id} Stream ID: {new.stream_id}")
        return new

    # ==========================================================================
    #  RECONCILE OPERATIONS
    # ==========================================================================

    def reconcile_schedule(self, window):
        now = self._now()
        desired = should_be_on(now, window)
        live = self.gateway.is_live()

        if now < window.activation:
            reason = "We are before our sunrise/start time"
        elif now < window.deactivation:
            reason = "We are after our sunrise/start time"
        else:
            reason = "We are after our sunset/stop time"

        if desired and not live:
            logger.info(f"{reason}. Stream is down. It should be up at this time. Starting stream")
            self.start()
            return Action.START_BROADCAST

        if live and not desired:
            logger.info(f"{reason}. Stream is up. It should be down at this time. Stopping stream")
            self.gateway.stop()
            return Action.STOP_BROADCAST

        logger.debug(f"{reason}. Stream is {'up' if live else 'down'}. Nothing to do")
        return Action.NO_OP

    def reconcile_segment_length(self, window):
        now = self._now()
        started = self.state.load_segment_start()
        elapsed = now - started

        logger.debug(f"Segment was last started at       {seconds_to_time(started)} on the clock")
        logger.debug(f"Elapsed time since segment start  {seconds_to_time(elapsed)}")
        logger.debug(f"Max segment length allowed        {seconds_to_time(window.max_segment_length)}")
        logger.debug(f"Grace period length               {seconds_to_time(window.grace_period)}")

        if not exceeds_max_segment(started, now, window):
            return Action.NO_OP

        logger.info(
            f"Current video length {seconds_to_time(elapsed)} exceeds maximum of "
            f"{seconds_to_time(window.max_segment_length)}, splitting the stream"
        )
        if self.config.split_mode == "bounce":
            if self.bounce(self.config.long_bounce_seconds, window) is Action.BOUNCE:
                return Action.SPLIT_SEGMENT
            return Action.STOP_BROADCAST
        if self.recreate_broadcast(window) is None:
            return Action.STOP_BROADCAST
        return Action.RECREATE_BROADCAST

    def reconcile_visibility(self, broadcast):
        desired = self.config.desired_visibility
        if broadcast.visibility == desired:
            logger.debug(f"Expected stream visibility {desired} matches YouTube stream visibility")
            return Action.NO_OP

        logger.error(
            f"Expected stream visibility does not match YouTube stream visibility. "
            f"Expected visibility: {desired} YouTube visibility: {broadcast.visibility}"
        )
        logger.info(f"Fixing privacyStatus to be {desired}")
        self.gateway.set_visibility(broadcast.broadcast_id, desired)
        return Action.FIX_VISIBILITY

    def reconcile_secret_key(self, broadcast):
        remote_key = broadcast.secret_key
        if not remote_key:
            logger.error("The stream key of the bound stream came up empty. Will not attempt the stream key fix")
            return Action.NO_OP

        local_key = self.gateway.local_key()
        if local_key == remote_key:
            logger.debug("Local stream key matches YouTube stream name/key")
            return Action.NO_OP

        # A mismatch means the platform rotated the key without telling anyone
        logger.error("Local stream key does not match YouTube stream name/key")
        logger.info("Updating local stream key to match YouTube")
        self.gateway.set_local_key(remote_key)
        self._alert('key_rotated')
        return Action.FIX_SECRET_KEY

    def reconcile_broadcast(self):
        """Visibility and key fixes, guarded against acting on the wrong broadcast"""
        broadcast = self.gateway.fetch_broadcast()
        if broadcast is None:
            logger.error("No active or upcoming broadcast found. Will not attempt the visibility or stream key fixes")
            return []

        expected = self.config.expected_title
        if expected and broadcast.title != expected:
            logger.error("Expected stream title does not match YouTube stream title")
            logger.error(f"Expected name: {expected}")
            logger.error(f"YouTube name:  {broadcast.title}")
            return []

        return [self.reconcile_visibility(broadcast), self.reconcile_secret_key(broadcast)]

    def reconcile_hourly_bounce(self, window):
        if not self.config.hourly_quick_bounce:
            return Action.NO_OP

        seconds_since_top_of_hour = self._now() % 3600
        if seconds_since_top_of_hour >= self.config.top_of_hour_seconds:
            logger.debug("Outside of hourly quick stream bounce range, no bounce to perform")
            return Action.NO_OP

        logger.debug("Performing quick stream bounce at the top of the hour")
        return self.bounce(self.config.short_bounce_seconds, window)

    def _network_up(self):
        return self.hysteresis.evaluate(self.network_probe, 1, 0).is_up

    def reconcile_liveness(self, window):
        """
        Watch the network for the length of the run. A network outage always
        ends in a bounce once it recovers (or once we give up waiting), since
        the stream reliably hangs after one. A stream signal that is down
        while the network stayed up only bounces when bounce_on_stream_down
        is enabled.
        """
        config = self.config
        if not should_be_on(self._now(), window):
            logger.debug("Stream should be off, network checking is not needed")
            return Action.NO_OP

        for test in range(1, config.network_tests + 1):
            logger.debug(f"Testing {config.test_site} - outer network test attempt {test} of {config.network_tests}")
            if self._network_up():
                if test < config.network_tests:
                    self.clock.sleep(config.network_test_interval)
                continue

            recovered, retries = self.waiter.wait_for_recovery(
                self._network_up, config.network_test_interval, config.max_comeback_retries, label="network")
            if recovered:
                message = (f"Bouncing the YouTube stream since the network came back up after {retries} retries, "
                           f"bouncing for {config.short_bounce_seconds} seconds")
                logger.info(message)
            else:
                message = (f"The network is not back up yet. Bouncing YouTube stream anyway, "
                           f"bouncing for {config.short_bounce_seconds} seconds")
                logger.error(message)
            self._alert('bounced', message)
            return self.bounce(config.short_bounce_seconds, window)

        stream = self.hysteresis.evaluate(self.stream_probe, config.stream_tests, config.stream_test_interval)
        logger.debug(f"Status - Network up: True - Stream up: {stream.is_up}")
        if stream.is_up:
            return Action.NO_OP

        if config.bounce_on_stream_down:
            logger.error(f"Bouncing the YouTube stream for {config.short_bounce_seconds} seconds, "
                         "because the stream was unexpectedly down")
            return self.bounce(config.short_bounce_seconds, window)

        logger.error("Stream looks down but the network never went down. Not bouncing")
        return Action.NO_OP

    # ==========================================================================
    #  FULL PASS
    # ==========================================================================

    def run(self, window):
        report = RunReport()

        report.phase = Phase.CHECK_SCHEDULE
        report.add(self.reconcile_schedule(window))

        if not should_be_on(self._now(), window) or not self.gateway.is_live():
            logger.debug("Live stream is not currently turned on. Network checking is not needed")
            report.phase = Phase.DONE
            return report

        report.add(self.reconcile_segment_length(window))

        report.phase = Phase.CHECK_BROADCAST
        for action in self.reconcile_broadcast():
            report.add(action)
        report.add(self.reconcile_hourly_bounce(window))

        report.phase = Phase.CHECK_LIVENESS
        report.add(self.reconcile_liveness(window))

        report.phase = Phase.DONE
        logger.debug(f"Run complete. Actions: {[a.value for a in report.actions] or 'none'}")
        return report
