import json

import pytest

from chat_core.api import service
from chat_core.client import ChatClient, ChatConfig
from chat_core.domain.exceptions import BadResponseError, ValidationError
from chat_core.tokenizer import ApproximateTokenizer


class ScriptedTransport:
    name = "scripted"

    def __init__(self, status=200):
        self.status = status

    def post(self, req, cancel_token=None):
        if self.status != 200:
            raise BadResponseError(self.status, "server error")
        return json.dumps({
            "choices": [{"message": {"role": "assistant", "content": "pong"}, "finish_reason": "stop"}],
        }).encode("utf-8")

    def stream_lines(self, req, cancel_token=None):
        yield 'data: {"choices": [{"delta": {"content": "po"}}]}'
        yield 'data: {"choices": [{"delta": {"content": "ng"}}]}'


def _install(monkeypatch, transport):
    client = ChatClient(transport, ApproximateTokenizer(), ChatConfig())
    monkeypatch.setattr("chat_core.api.service._client", client)
    return client


def test_run_chat_returns_dict(monkeypatch):
    _install(monkeypatch, ScriptedTransport())
    out = service.run_chat("ping")
    assert out == {"text": "pong", "finish_reason": "stop", "usage": None}
    assert service.get_history() == [
        {"role": "user", "content": "ping"},
        {"role": "assistant", "content": "pong"},
    ]


def test_run_chat_stream_and_reset(monkeypatch):
    _install(monkeypatch, ScriptedTransport())
    assert "".join(service.run_chat_stream("ping")) == "pong"
    assert len(service.get_history()) == 2
    service.reset_history()
    assert service.get_history() == []


def test_restore_history(monkeypatch):
    client = _install(monkeypatch, ScriptedTransport())
    service.restore_history([
        {"role": "user", "content": "saved q"},
        {"role": "assistant", "content": "saved a"},
    ])
    assert [m.content for m in client.history_list] == ["saved q", "saved a"]


def test_run_chat_propagates_errors(monkeypatch):
    _install(monkeypatch, ScriptedTransport(status=500))
    with pytest.raises(BadResponseError):
        service.run_chat("ping")
    assert service.get_history() == []


@pytest.mark.parametrize(
    "records",
    [
        [{"role": "system", "content": "sneaky"}],
        [{"role": "user", "content": "q"}, {"role": "robot", "content": "a"}],
        [{"content": "missing role"}],
    ],
)
def test_restore_history_rejects_bad_roles(monkeypatch, records):
    client = _install(monkeypatch, ScriptedTransport())
    service.run_chat("ping")
    with pytest.raises(ValidationError):
        service.restore_history(records)
    assert [m.content for m in client.history_list] == ["ping", "pong"]
