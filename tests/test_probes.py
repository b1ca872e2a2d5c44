import subprocess
from types import SimpleNamespace

from camkeeper.errors import RemoteApiError
from camkeeper.probes import NetworkProbe, RemoteHealthProbe, StreamDownloadProbe, classify_health
from camkeeper.youtube import StreamHealth


def runner_returning(returncode=0, stdout=""):
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        return SimpleNamespace(returncode=returncode, stdout=stdout, stderr="")

    run.calls = calls
    return run


def runner_raising(exc):
    def run(cmd, **kwargs):
        raise exc
    return run


def test_ping_up_and_down():
    run = runner_returning(0)
    assert NetworkProbe("google.com", runner=run).probe().is_up
    assert run.calls[0] == ['ping', '-q', '-c', '1', '-W', '15', 'google.com']
    assert not NetworkProbe("google.com", runner=runner_returning(1)).probe().is_up


def test_ping_missing_binary_is_down():
    probe = NetworkProbe("google.com", runner=runner_raising(FileNotFoundError("ping")))
    assert not probe.probe().is_up


def test_download_probe_returns_url():
    run = runner_returning(0, "https://manifest.example/live.m3u8\n")
    result = StreamDownloadProbe("yt-dlp", "https://youtube.com/live", runner=run).probe()
    assert result.is_up
    assert result.detail == "https://manifest.example/live.m3u8"
    assert run.calls[0] == ["yt-dlp", "https://youtube.com/live", "-g"]


def test_download_probe_down_cases():
    url = "https://youtube.com/live"
    assert not StreamDownloadProbe("yt-dlp", url, runner=runner_returning(1, "x")).probe().is_up
    assert not StreamDownloadProbe("yt-dlp", url, runner=runner_returning(0, "  ")).probe().is_up
    assert not StreamDownloadProbe("yt-dlp", url, runner=runner_returning(0, "ERROR: offline")).probe().is_up
    timeout = runner_raising(subprocess.TimeoutExpired("yt-dlp", 60))
    assert not StreamDownloadProbe("yt-dlp", url, runner=timeout).probe().is_up


def test_classify_health():
    assert classify_health(StreamHealth("active", "good")).is_up
    assert classify_health(StreamHealth("active", "ok", ["videoIngestionStarved"])).is_up
    assert not classify_health(StreamHealth("inactive", "good")).is_up
    assert not classify_health(StreamHealth("active", "noData")).is_up
    assert not classify_health(StreamHealth("active", "bad")).is_up
    assert classify_health(StreamHealth("active", "bad"), ("good", "ok", "bad")).is_up
    assert not classify_health(StreamHealth("active", "good", ["videoIngestionFasterThanRealtime"])).is_up


class HealthGateway:

    def __init__(self, health=None, error=None):
        self.health = health
        self.error = error

    def stream_health(self):
        if self.error:
            raise self.error
        return self.health


def test_remote_health_probe():
    assert RemoteHealthProbe(HealthGateway(StreamHealth("active", "good"))).probe().is_up
    assert not RemoteHealthProbe(HealthGateway(None)).probe().is_up
    assert not RemoteHealthProbe(HealthGateway(error=RemoteApiError("boom"))).probe().is_up
    assert RemoteHealthProbe(HealthGateway(StreamHealth("active", "bad")), tolerate_bad_health=True).probe().is_up
