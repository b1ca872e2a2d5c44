from unittest import mock

import pytest

from camkeeper.errors import AuthError, RemoteApiError
from camkeeper.nas import LIVE_API, SurveillanceClient

OK = {'success': True}
FAILED = {'success': False, 'error': {'code': 105}}


def response(data):
    resp = mock.Mock()
    resp.json.return_value = data
    resp.text = str(data)
    return resp


@pytest.fixture
def cookie_file(tmp_path):
    path = tmp_path / "camkeeper-cookies"
    path.write_text("#LWP-Cookies-2.0\n")
    return str(path)


def make_client(cookie_file, *replies):
    session = mock.Mock()
    session.get.side_effect = [response(r) for r in replies]
    return SurveillanceClient("http://nas.local:5000/webapi/", "admin", "secret", cookie_file, session=session), session


def params_of(session, index):
    return session.get.call_args_list[index].kwargs['params']


def test_load_with_existing_session(cookie_file):
    client, session = make_client(cookie_file, {'success': True, 'data': {'live_on': True, 'key': 'abc-123'}})
    state = client.load()

    assert state.live_on is True
    assert state.key == 'abc-123'
    assert session.get.call_args.args[0] == "http://nas.local:5000/webapi/entry.cgi"
    assert params_of(session, 0) == {'api': LIVE_API, 'version': '1', 'method': 'Load'}


def test_failed_call_reauthenticates_once(cookie_file):
    client, session = make_client(
        cookie_file,
        FAILED,            # Load with a stale cookie
        {'success': False},  # query.cgi: not DSM 6
        OK,                # entry.cgi: DSM 7
        OK,                # login
        {'success': True, 'data': {'live_on': False, 'key': 'k'}},
    )
    assert client.load().live_on is False

    login = params_of(session, 3)
    assert login['method'] == 'login'
    assert login['version'] == '3'
    assert login['format'] == 'cookie'
    assert session.get.call_count == 5


def test_second_failure_raises(cookie_file):
    client, _ = make_client(cookie_file, FAILED, OK, {'success': False}, OK, FAILED)
    with pytest.raises(RemoteApiError):
        client.set_live(True)


def test_dsm6_login_uses_auth_cgi(tmp_path):
    cookie_file = str(tmp_path / "camkeeper-cookies")
    client, session = make_client(cookie_file, OK, {'success': False}, OK, OK)
    client.set_live(False)

    assert session.get.call_args_list[2].args[0].endswith('/auth.cgi')
    assert params_of(session, 2)['version'] == '1'
    assert params_of(session, 3)['live_on'] == 'false'


def test_rejected_login_is_auth_error(tmp_path):
    cookie_file = str(tmp_path / "camkeeper-cookies")
    client, _ = make_client(cookie_file, {'success': False}, OK, FAILED)
    with pytest.raises(AuthError):
        client.load()


def test_unreachable_nas_is_auth_error(tmp_path):
    cookie_file = str(tmp_path / "camkeeper-cookies")
    client, _ = make_client(cookie_file, {'success': False}, {'success': False})
    with pytest.raises(AuthError):
        client.load()


def test_set_key_sends_quoted_key(cookie_file):
    client, session = make_client(cookie_file, OK)
    client.set_key("abc-123")
    assert params_of(session, 0)['key'] == '"abc-123"'
