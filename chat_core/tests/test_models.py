import dataclasses
import json

import pytest

from chat_core.domain.exceptions import ValidationError
from chat_core.domain.models import Message, OutgoingRequest, joined_content


def test_message_is_immutable():
    m = Message(role="user", content="hi")
    with pytest.raises(dataclasses.FrozenInstanceError):
        m.content = "changed"


def test_outgoing_request_wire_round_trip():
    req = OutgoingRequest(
        model="gpt-3.5-turbo",
        temperature=0.7,
        messages=(
            Message(role="system", content="sys"),
            Message(role="user", content="你好"),
            Message(role="assistant", content="hello"),
        ),
        stream=True,
    )
    wire = json.dumps(req.to_payload(), ensure_ascii=False)
    assert json.loads(wire) == {
        "model": "gpt-3.5-turbo",
        "temperature": 0.7,
        "messages": [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "你好"},
            {"role": "assistant", "content": "hello"},
        ],
        "stream": True,
    }
    assert OutgoingRequest.from_payload(json.loads(wire)) == req


def test_joined_content_concatenates_without_separator():
    msgs = [Message(role="user", content="ab"), Message(role="assistant", content="cd")]
    assert joined_content(msgs) == "abcd"


@pytest.mark.parametrize("payload", [{"content": "no role"}, {"role": "tool", "content": "x"}])
def test_message_from_payload_rejects_bad_role(payload):
    with pytest.raises(ValidationError) as exc:
        Message.from_payload(payload)
    assert exc.value.code == "INVALID_ROLE"
