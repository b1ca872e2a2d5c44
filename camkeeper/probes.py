# -*- coding: utf-8 -*-
"""
Point-in-time health probes.

Each probe makes exactly one attempt and always answers UP or DOWN. A probe
that cannot complete (timeout, missing tool, garbage response) answers DOWN
with a reason; it never raises into the control loop.
"""

import enum
import logging
import re
import socket
import subprocess

from .errors import CamKeeperError

logger = logging.getLogger(__name__)

HEALTHY_STREAM_STATUSES = ("active",)
HEALTHY_GRADES = ("good", "ok")

# Issues that mean the stream is genuinely broken, versus ones that are
# reported for working streams too
FATAL_ISSUES = ("videoIngestionFasterThanRealtime",)
NOISY_ISSUES = ("videoIngestionStarved",)

_ERROR_PATTERN = re.compile(r'error', re.IGNORECASE)


class ProbeStatus(enum.Enum):
    UP = "up"
    DOWN = "down"


class ProbeResult:
    """Outcome of one probe call"""

    def __init__(self, status, reason="", detail=None):
        self.status = status
        self.reason = reason
        self.detail = detail

    @classmethod
    def up(cls, reason="", detail=None):
        return cls(ProbeStatus.UP, reason, detail)

    @classmethod
    def down(cls, reason="", detail=None):
        return cls(ProbeStatus.DOWN, reason, detail)

    @property
    def is_up(self):
        return self.status is ProbeStatus.UP

    def __repr__(self):
        return f"ProbeResult({self.status.value}, {self.reason!r})"


# ==============================================================================
#  NETWORK
# ==============================================================================

class NetworkProbe:
    """One reachability check against a reliable outside host"""
    name = "network"

    def __init__(self, host, timeout=15, method="ping", port=443, runner=subprocess.run):
        self.host = host
        self.timeout = timeout
        self.method = method
        self.port = port
        self._run = runner

    def probe(self):
        if self.method == "tcp":
            return self._probe_tcp()
        return self._probe_ping()

    def _probe_ping(self):
        cmd = ['ping', '-q', '-c', '1', '-W', str(self.timeout), self.host]
        try:
            result = self._run(cmd, capture_output=True, text=True, timeout=self.timeout + 5)
        except (OSError, subprocess.TimeoutExpired) as e:
            return ProbeResult.down(f"ping {self.host} failed: {e}")

        if result.returncode == 0:
            return ProbeResult.up(f"{self.host} answered ping")
        return ProbeResult.down(f"ping {self.host} exited with {result.returncode}")

    def _probe_tcp(self):
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return ProbeResult.up(f"{self.host}:{self.port} accepted a connection")
        except OSError as e:
            return ProbeResult.down(f"{self.host}:{self.port} unreachable: {e}")


# ==============================================================================
#  STREAM DOWNLOAD
# ==============================================================================

class StreamDownloadProbe:
    """
    Ask the stream extraction tool (youtube-dl / yt-dlp) to resolve a
    playable URL for the live stream. Up only when the tool exits cleanly
    with a non-empty URL and no error text.
    """
    name = "stream-download"

    def __init__(self, tool, url, timeout=60, runner=subprocess.run):
        self.tool = tool
        self.url = url
        self.timeout = timeout
        self._run = runner

    def probe(self):
        cmd = [self.tool, self.url, '-g']
        try:
            result = self._run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            return ProbeResult.down(f"{self.tool} timed out after {self.timeout}s")
        except OSError as e:
            return ProbeResult.down(f"{self.tool} could not be run: {e}")

        output = (result.stdout or "").strip()
        if result.returncode != 0:
            return ProbeResult.down(f"{self.tool} finished with exit code {result.returncode}")
        if not output:
            return ProbeResult.down(f"No final URL was obtained from {self.tool}")
        if _ERROR_PATTERN.search(output):
            return ProbeResult.down(f"{self.tool} output contains an error: {output[:200]}")

        final_url = output.splitlines()[0].strip()
        return ProbeResult.up("Live stream URL resolved", detail=final_url)


# ==============================================================================
#  REMOTE HEALTH
# ==============================================================================

class RemoteHealthProbe:
    """
    Read the explicit stream status and health grade that the video platform
    reports for the stream bound to our broadcast.
    """
    name = "stream-health"

    def __init__(self, gateway, tolerate_bad_health=False):
        self.gateway = gateway
        self.healthy_grades = HEALTHY_GRADES + (("bad",) if tolerate_bad_health else ())

    def probe(self):
        try:
            health = self.gateway.stream_health()
        except CamKeeperError as e:
            return ProbeResult.down(f"Stream health unavailable: {e}")

        if health is None:
            return ProbeResult.down("No bound stream found for the broadcast")
        return classify_health(health, self.healthy_grades)


def classify_health(health, healthy_grades=HEALTHY_GRADES):
    """Map a StreamHealth to UP or DOWN"""
    for issue in health.issues:
        if issue in NOISY_ISSUES:
            logger.debug(f"Stream reports {issue}, not acting on it")

    if health.stream_status not in HEALTHY_STREAM_STATUSES:
        return ProbeResult.down(f"The streamStatus is not active. Value retrieved was: {health.stream_status}")
    if health.health_status not in healthy_grades:
        return ProbeResult.down(f"The healthStatus is not good. Value retrieved was: {health.health_status}")
    for issue in health.issues:
        if issue in FATAL_ISSUES:
            return ProbeResult.down(f"The configurationIssues contains a bad value: {issue}")
    return ProbeResult.up(f"Stream {health.stream_status}, health {health.health_status}")
