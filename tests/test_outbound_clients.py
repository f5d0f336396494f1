# tests/test_outbound_clients.py
import pytest
import requests

from mortgage_moment.adapters import brevo_email, realtime_client
from mortgage_moment.adapters.brevo_email import (
    BrevoEmailClient,
    EmailConfigError,
    EmailDeliveryError,
    make_brevo_client,
)
from mortgage_moment.adapters.realtime_client import OpenAIRealtimeClient, RealtimeError, make_realtime_client

from fakes import FakeResponse


class _Recorder:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def __call__(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def test_brevo_send_builds_request(monkeypatch):
    post = _Recorder(FakeResponse(201, {"messageId": "<1@brevo>"}))
    monkeypatch.setattr(brevo_email.requests, "post", post)

    client = BrevoEmailClient(api_key="xkeysib-test", sender_email="noreply@example.com")
    data = client.send(to_email="anna@example.com", to_name="Anna", subject="Hi", html="<p>x</p>")

    assert data == {"messageId": "<1@brevo>"}
    [call] = post.calls
    assert call["headers"]["api-key"] == "xkeysib-test"
    assert call["json"]["to"] == [{"email": "anna@example.com", "name": "Anna"}]
    assert call["json"]["sender"]["email"] == "noreply@example.com"
    assert call["json"]["htmlContent"] == "<p>x</p>"


def test_brevo_http_error_carries_details(monkeypatch):
    monkeypatch.setattr(
        brevo_email.requests,
        "post",
        _Recorder(FakeResponse(401, {"code": "unauthorized"})),
    )
    with pytest.raises(EmailDeliveryError) as excinfo:
        BrevoEmailClient(api_key="bad").send(to_email="a@b.c", to_name="", subject="s", html="h")
    assert excinfo.value.details == {"code": "unauthorized"}


def test_brevo_transport_error(monkeypatch):
    monkeypatch.setattr(brevo_email.requests, "post", _Recorder(error=requests.ConnectionError("down")))
    with pytest.raises(EmailDeliveryError):
        BrevoEmailClient(api_key="k").send(to_email="a@b.c", to_name="", subject="s", html="h")


def test_brevo_factory_requires_key(monkeypatch):
    monkeypatch.setattr(brevo_email.config, "BREVO_API_KEY", None)
    with pytest.raises(EmailConfigError):
        make_brevo_client()

    monkeypatch.setattr(brevo_email.config, "BREVO_API_KEY", "xkeysib-live")
    assert make_brevo_client().api_key == "xkeysib-live"


def test_realtime_session_returns_client_secret(monkeypatch):
    post = _Recorder(FakeResponse(200, {"client_secret": {"value": "ek_abc", "expires_at": 0}}))
    monkeypatch.setattr(realtime_client.requests, "post", post)

    client = OpenAIRealtimeClient(api_key="sk-test", model="gpt-4o-realtime-preview", voice="verse")
    secret = client.create_session(instructions="Be nice", tools=[{"type": "function", "name": "t"}])

    assert secret == "ek_abc"
    [call] = post.calls
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["json"]["voice"] == "verse"
    assert call["json"]["instructions"] == "Be nice"
    assert call["json"]["tools"][0]["name"] == "t"


@pytest.mark.parametrize(
    "post",
    [
        _Recorder(error=requests.Timeout("slow")),
        _Recorder(FakeResponse(401, text="bad key")),
        _Recorder(FakeResponse(200, {"id": "sess_1"})),
        _Recorder(FakeResponse(200, None, text="oops")),
    ],
)
def test_realtime_failures_raise(monkeypatch, post):
    monkeypatch.setattr(realtime_client.requests, "post", post)
    with pytest.raises(RealtimeError):
        OpenAIRealtimeClient(api_key="sk").create_session()


def test_realtime_factory_requires_key(monkeypatch):
    monkeypatch.setattr(realtime_client.config, "OPENAI_API_KEY", "")
    with pytest.raises(RealtimeError):
        make_realtime_client()
