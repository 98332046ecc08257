from unittest.mock import MagicMock

import pytest
import requests

from src.portal.errors import (
    AuthenticationError,
    RateLimitError,
    TransientError,
    TransportError,
)
from src.portal.transport import PortalClient
from tests.helpers import fake_response

URL = "https://tos.test/api/appointments"


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session, headers={})


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda seconds: None)


def test_get_json_sends_credential_headers(config, credential, session):
    session.request.return_value = fake_response(200, [{"id": 1}])
    client = PortalClient(config, session)

    assert client.get_json(URL, credential) == [{"id": 1}]

    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("GET", URL)
    assert kwargs["headers"] == {
        "Cookie": "ChurchSSO=abc123; TOS_SESSION=xyz",
        "X-XSRF-TOKEN": "f00d",
    }
    assert kwargs["timeout"] == config.request_timeout_seconds


def test_post_json_sends_payload(config, credential, session):
    session.request.return_value = fake_response(200, {"sessionList": []})
    client = PortalClient(config, session)

    client.post_json(URL, credential, {"sessionDay": 3})

    assert session.request.call_args.args[0] == "POST"
    assert session.request.call_args.kwargs["json"] == {"sessionDay": 3}


def test_get_text_is_unauthenticated(config, session):
    session.request.return_value = fake_response(200, text="<html></html>")
    client = PortalClient(config, session)

    assert client.get_text("https://www.test/temples/list") == "<html></html>"
    assert session.request.call_args.kwargs["headers"] is None


@pytest.mark.parametrize(
    "status, error",
    [(404, TransportError), (400, TransportError), (401, AuthenticationError), (403, AuthenticationError)],
)
def test_permanent_status_is_not_retried(config, credential, session, status, error):
    session.request.return_value = fake_response(status)
    client = PortalClient(config, session)

    with pytest.raises(error):
        client.get_json(URL, credential)

    assert session.request.call_count == 1


def test_server_error_is_retried_then_succeeds(config, credential, session):
    session.request.side_effect = [fake_response(503), fake_response(200, [])]
    client = PortalClient(config, session)

    assert client.get_json(URL, credential) == []
    assert session.request.call_count == 2


def test_rate_limit_gives_up_after_three_attempts(config, credential, session):
    session.request.return_value = fake_response(429)
    client = PortalClient(config, session)

    with pytest.raises(RateLimitError):
        client.get_json(URL, credential)

    assert session.request.call_count == 3


def test_connection_error_is_transient(config, credential, session):
    session.request.side_effect = requests.ConnectionError("reset by peer")
    client = PortalClient(config, session)

    with pytest.raises(TransientError, match="reset by peer"):
        client.get_json(URL, credential)

    assert session.request.call_count == 3


def test_non_json_body_is_transport_error(config, credential, session):
    session.request.return_value = fake_response(200, None, text="<html>login</html>")
    client = PortalClient(config, session)

    with pytest.raises(TransportError, match="not JSON"):
        client.get_json(URL, credential)


def test_probe_accepts_200_only(config, credential, session):
    client = PortalClient(config, session)

    session.get.return_value = fake_response(200, [])
    assert client.probe(URL, credential) is True

    session.get.return_value = fake_response(401)
    assert client.probe(URL, credential) is False

    session.get.return_value = fake_response(204)
    assert client.probe(URL, credential) is False


def test_probe_swallows_network_errors(config, credential, session):
    session.get.side_effect = requests.Timeout("read timed out")
    client = PortalClient(config, session)

    assert client.probe(URL, credential) is False
    assert session.get.call_count == 1
