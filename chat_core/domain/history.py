"""会话历史。

只保存已完成的问答对（user/assistant），system 消息每次请求时临时合成，不入历史。
本类本身不加锁，由 ChatClient 的互斥区统一保护所有读写。
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from chat_core.domain.models import Message, assistant_message, user_message


class ConversationHistory:
    def __init__(self) -> None:
        self._messages: List[Message] = []
        # 每次修改递增，用于判断快照之后历史是否被改动过
        self.version = 0

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, user: str, assistant: str) -> None:
        """按顺序追加一条 user 消息和一条 assistant 消息。"""

        self._messages.append(user_message(user))
        self._messages.append(assistant_message(assistant))
        self.version += 1

    def snapshot(self) -> Tuple[Message, ...]:
        """返回只读副本，从最早到最新。"""

        return tuple(self._messages)

    def replace(self, messages: Iterable[Message]) -> None:
        """整体覆盖历史。

        不校验 user/assistant 交替，调用方自己保证形状正确
        （例如不要以一条未回答的 user 消息结尾）。
        """

        self._messages = list(messages)
        self.version += 1

    def clear(self) -> None:
        self._messages.clear()
        self.version += 1
