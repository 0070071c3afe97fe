"""对话请求、响应与流式片段的数据模型。

- Message: 一条对话消息（system/user/assistant），构造后不可变。
- OutgoingRequest: 发往补全端点的完整请求，负责与线上 JSON 互转。
- CompletionResult: 非流式调用解析后的结果。
- ErrorEnvelope: 非 2xx 响应体中的 {"error": {...}}。
- ContentDelta / StreamEnd: 流式解码器产出的片段。

线上 JSON 使用 snake_case 键，与这里的字段名一一对应。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple, Union, get_args

from chat_core.domain.exceptions import ValidationError


Role = Literal["system", "user", "assistant"]
ROLES = frozenset(get_args(Role))


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Message:
        role = payload.get("role")
        if role not in ROLES:
            raise ValidationError(code="INVALID_ROLE", message=f"unknown message role: {role!r}")
        return cls(role=role, content=payload.get("content") or "")


def system_message(content: str) -> Message:
    return Message(role="system", content=content)


def user_message(content: str) -> Message:
    return Message(role="user", content=content)


def assistant_message(content: str) -> Message:
    return Message(role="assistant", content=content)


def joined_content(messages: Sequence[Message]) -> str:
    """所有消息内容直接拼接，token 预算按这个字符串计算。"""

    return "".join(m.content for m in messages)


@dataclass(frozen=True)
class OutgoingRequest:
    """一次补全请求。每次调用重新构造，不做持久化。"""

    model: str
    temperature: float
    messages: Tuple[Message, ...]
    stream: bool

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [m.to_payload() for m in self.messages],
            "stream": self.stream,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> OutgoingRequest:
        return cls(
            model=payload["model"],
            temperature=float(payload["temperature"]),
            messages=tuple(Message.from_payload(m) for m in payload["messages"]),
            stream=bool(payload["stream"]),
        )


@dataclass(frozen=True)
class CompletionUsage:
    """服务端返回的 token 统计，各字段都可能缺失。"""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass(frozen=True)
class CompletionResult:
    text: str
    usage: Optional[CompletionUsage] = None
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class ErrorEnvelope:
    message: str
    type: Optional[str] = None


@dataclass(frozen=True)
class ContentDelta:
    """流式回答的一段增量文本。"""

    text: str


@dataclass(frozen=True)
class StreamEnd:
    """行源耗尽，流结束。text 为累计的完整回答。"""

    text: str


StreamFragment = Union[ContentDelta, StreamEnd]

