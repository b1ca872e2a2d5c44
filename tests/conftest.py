from datetime import datetime, timedelta

import pytest

from camkeeper.config import Config
from camkeeper.gateway import NewBroadcast
from camkeeper.probes import ProbeResult
from camkeeper.state import StateFiles


class FakeClock:
    """Clock that records sleeps and advances instead of waiting"""

    def __init__(self, seconds=12 * 3600, day=datetime(2024, 6, 1)):
        self.day = day
        self.seconds = seconds
        self.sleeps = []
        self.elapsed = 0.0

    def now(self):
        return self.day + timedelta(seconds=self.seconds)

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if seconds > 0:
            self.seconds += seconds
            self.elapsed += seconds

    def seconds_since_midnight(self):
        return int(self.seconds) % 86400

    def monotonic(self):
        return self.elapsed


class ScriptedProbe:
    """Probe that replays a list of up/down answers, repeating the last one"""

    def __init__(self, script, name="scripted"):
        self.script = list(script)
        self.name = name
        self.calls = 0

    def probe(self):
        index = min(self.calls, len(self.script) - 1)
        self.calls += 1
        if self.script[index]:
            return ProbeResult.up("ok")
        return ProbeResult.down("scripted failure")


class FakeGateway:
    """In-memory stand-in for RemoteStateGateway"""

    def __init__(self, live=False, local_key="", broadcast=None):
        self.live = live
        self.key = local_key
        self.broadcast = broadcast
        self.calls = []

    def is_live(self):
        return self.live

    def start(self):
        self.calls.append(('start',))
        self.live = True

    def stop(self):
        self.calls.append(('stop',))
        self.live = False

    def local_key(self):
        return self.key

    def set_local_key(self, key):
        self.calls.append(('set_local_key', key))
        self.key = key

    def fetch_broadcast(self):
        return self.broadcast

    def stream_health(self):
        return None

    def set_visibility(self, broadcast_id, visibility):
        self.calls.append(('set_visibility', broadcast_id, visibility))
        self.broadcast.visibility = visibility
        return visibility

    def create_new_broadcast(self, title, visibility):
        self.calls.append(('create_new_broadcast', title, visibility))
        return NewBroadcast("new-broadcast", "new-stream", "new-key", "ready")

    def names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    return Config(
        state_dir=str(tmp_path),
        nas_url="http://nas.local:5000/webapi",
        expected_title="Backyard Cam",
        network_tests=3,
        network_test_interval=10,
        max_comeback_retries=40,
        stream_tests=4,
        stream_test_interval=15,
    )


@pytest.fixture
def state(config):
    return StateFiles(config)
