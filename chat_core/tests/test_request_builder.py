import pytest

from chat_core.client.request_builder import RequestBuilder
from chat_core.domain.exceptions import PromptTooLargeError
from chat_core.domain.models import Message
from chat_core.tokenizer import ApproximateTokenizer


def _builder():
    # 1 字符 = 1 token，方便精确计算预算
    return RequestBuilder(ApproximateTokenizer(chunk_size=1))


def _history(*pairs):
    msgs = []
    for user, assistant in pairs:
        msgs.append(Message(role="user", content=user))
        msgs.append(Message(role="assistant", content=assistant))
    return tuple(msgs)


def _build(history, prompt, budget, system_text="S"):
    return _builder().build(
        prompt,
        history,
        system_text=system_text,
        model="gpt-3.5-turbo",
        temperature=0.7,
        stream=False,
        budget=budget,
    )


def test_build_keeps_full_history_under_budget():
    req = _build(_history(("hi", "hello")), "how are you", 4096, system_text="sys")
    assert [(m.role, m.content) for m in req.messages] == [
        ("system", "sys"),
        ("user", "hi"),
        ("assistant", "hello"),
        ("user", "how are you"),
    ]
    assert req.model == "gpt-3.5-turbo"
    assert req.temperature == 0.7
    assert req.stream is False


def test_build_evicts_oldest_history_first():
    history = _history(("aaaa", "bbbb"), ("cccc", "dddd"))
    req = _build(history, "p", budget=10)
    assert [m.content for m in req.messages] == ["S", "cccc", "dddd", "p"]


def test_build_never_evicts_system_or_prompt():
    history = _history(("aaaa", "bbbb"))
    req = _build(history, "pp", budget=3)
    assert [(m.role, m.content) for m in req.messages] == [("system", "S"), ("user", "pp")]


def test_build_does_not_mutate_history_input():
    history = list(_history(("aaaa", "bbbb"), ("cccc", "dddd")))
    _build(history, "p", budget=6)
    assert len(history) == 4


def test_build_never_exceeds_budget():
    builder = _builder()
    history = _history(*[(f"q{i}" * i, f"a{i}" * (i % 5)) for i in range(1, 40)])
    for budget in (9, 17, 64, 300, 5000):
        req = builder.build(
            "prompt",
            history,
            system_text="sys",
            model="m",
            temperature=0.0,
            stream=True,
            budget=budget,
        )
        assert builder.count_tokens(req.messages) <= budget
        # 保留的历史一定是原历史的最新后缀
        kept = req.messages[1:-1]
        assert tuple(kept) == history[len(history) - len(kept):]


def test_prompt_too_large_even_with_empty_history():
    with pytest.raises(PromptTooLargeError) as exc:
        _build(_history(("a", "b")), "x" * 20, budget=10)
    assert exc.value.token_count == 21
    assert exc.value.budget == 10
    assert exc.value.code == "PROMPT_TOO_LARGE"
