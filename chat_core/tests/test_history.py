from chat_core.domain.history import ConversationHistory
from chat_core.domain.models import Message


def test_append_adds_user_then_assistant():
    h = ConversationHistory()
    h.append("hi", "hello")
    assert h.snapshot() == (
        Message(role="user", content="hi"),
        Message(role="assistant", content="hello"),
    )


def test_snapshot_is_detached_copy():
    h = ConversationHistory()
    h.append("a", "b")
    snap = h.snapshot()
    h.append("c", "d")
    assert len(snap) == 2
    assert len(h) == 4


def test_replace_accepts_any_shape_and_clear_empties():
    h = ConversationHistory()
    h.append("a", "b")
    h.replace([Message(role="user", content="dangling")])
    assert [m.content for m in h.snapshot()] == ["dangling"]
    h.clear()
    assert h.snapshot() == ()


def test_every_mutation_bumps_version():
    h = ConversationHistory()
    versions = [h.version]
    h.append("a", "b")
    versions.append(h.version)
    h.replace([])
    versions.append(h.version)
    h.clear()
    versions.append(h.version)
    h.snapshot()
    assert h.version == versions[-1]
    assert versions == sorted(set(versions))
