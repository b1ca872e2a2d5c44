import json
from unittest import mock

import pytest
import requests

from camkeeper import cli
from camkeeper.errors import RemoteApiError
from camkeeper.nas import LIVE_API
from camkeeper.reconciler import Action, Phase
from camkeeper.state import StateFiles
from camkeeper.youtube import TOKEN_URL

from .conftest import ScriptedProbe


@pytest.fixture(autouse=True)
def quiet(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "setup_logging", mock.Mock())
    monkeypatch.setenv("CAMKEEPER_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)


def test_parse_args_defaults_to_control():
    args = cli.parse_args([])
    assert args.job == 'control'
    assert not args.debug
    assert cli.parse_args(['keepalive', '--debug']).job == 'keepalive'


def test_fatal_error_exits_1(monkeypatch):
    monkeypatch.delenv("NAS_API_URL", raising=False)
    assert cli.main(['control']) == 1


def test_remote_failure_alerts_and_exits_1(monkeypatch):
    notifier = mock.Mock()
    monkeypatch.setattr(cli.Notifier, "from_config", classmethod(lambda cls, config: notifier))
    monkeypatch.setattr(cli, "run_control", mock.Mock(side_effect=RemoteApiError("NAS unreachable")))

    assert cli.main([]) == 1
    notifier.fatal.assert_called_once_with("NAS unreachable")


def test_successful_run_exits_0(monkeypatch):
    monkeypatch.setattr(cli, "run_control", mock.Mock(return_value=None))
    assert cli.main(['control']) == 0


def test_keepalive_result_sets_exit_code(monkeypatch):
    monkeypatch.setattr(cli, "run_keepalive", mock.Mock(return_value=False))
    assert cli.main(['keepalive']) == 1
    cli.run_keepalive.return_value = True
    assert cli.main(['keepalive']) == 0


def test_stream_probe_selection(config):
    from dataclasses import replace
    gateway = mock.Mock()
    assert cli.build_stream_probe(config, gateway).name == "stream-health"
    download = replace(config, stream_probe="download", youtube_url="https://youtube.com/live")
    assert cli.build_stream_probe(download, gateway).name == "stream-download"


class Reply:

    def __init__(self, data, status=200):
        self.data = data
        self.status_code = status
        self.ok = status < 400
        self.text = json.dumps(data)
        self.content = self.text.encode()

    def json(self):
        return self.data


class ServiceSession:
    """Answers the NAS web API and the YouTube Data API from memory"""

    def __init__(self, nas_key, visibility):
        self.cookies = None
        self.nas_key = nas_key
        self.visibility = visibility
        self.saved = []
        self.updates = []

    def get(self, url, params=None, **kwargs):
        if params.get('api') == LIVE_API:
            if params['method'] == 'Load':
                return Reply({'success': True, 'data': {'live_on': True, 'key': self.nas_key}})
            self.saved.append(params)
        return Reply({'success': True})

    def post(self, url, **kwargs):
        assert url == TOKEN_URL
        return Reply({'access_token': 'tok'})

    def request(self, method, url, params=None, json=None, **kwargs):
        if method == 'PUT':
            self.updates.append(json)
            return Reply({'id': json['id'], 'status': json['status']})
        if url.endswith('/liveBroadcasts'):
            return Reply({'items': [{
                'id': 'b1',
                'snippet': {'title': 'Backyard Cam'},
                'status': {'privacyStatus': self.visibility, 'lifeCycleStatus': 'live'},
                'contentDetails': {'boundStreamId': 's1'},
            }]})
        return Reply({'items': [{
            'id': 's1',
            'cdn': {'ingestionInfo': {'streamName': 'abc-123'}},
            'status': {'streamStatus': 'active', 'healthStatus': {'status': 'good'}},
        }]})


def test_run_control_end_to_end(monkeypatch, config, clock, tmp_path):
    (tmp_path / "client_id.json").write_text(json.dumps({'installed': {'client_id': 'cid', 'client_secret': 'cs'}}))
    (tmp_path / "camkeeper-tokens").write_text("refresh-token")
    (tmp_path / "api-creds").write_text("admin hunter2")
    state = StateFiles(config)
    state.save_sun_times('6:00 AM', '8:00 PM')
    state.save_segment_start(10 * 3600)

    session = ServiceSession(nas_key="xyz-999", visibility="private")
    monkeypatch.setattr(requests, "Session", lambda: session)
    network = ScriptedProbe([True], "network")
    monkeypatch.setattr(cli, "build_network_probe", lambda config: network)

    report = cli.run_control(config, clock)

    assert report.phase is Phase.DONE
    assert report.actions == [Action.FIX_VISIBILITY, Action.FIX_SECRET_KEY]
    assert session.updates == [{'id': 'b1', 'status': {'privacyStatus': 'public'}}]
    assert [p['key'] for p in session.saved] == ['"abc-123"']
    assert network.calls == config.network_tests
    assert (tmp_path / "camkeeper-cookies").exists()
