"""对话客户端（门面）。

负责把请求构造、传输与解码串起来，并在一次交换完整成功后写入历史：

- send_message: 阻塞式，返回 CompletionResult。
- send_message_stream: 流式，返回按需拉取的文本片段生成器。
- delete_history_list / replace_history_list / history_list: 直接委托给历史。

所有对历史的读写都在同一把锁内完成；网络交换在锁外进行，
因此下一次调用的构造/传输可以与上一次的解码并行，但写历史永远串行。
任何失败（含取消、生成器被提前关闭）都不会修改历史。
"""

from __future__ import annotations

import threading
from contextlib import closing
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from chat_core.client.request_builder import RequestBuilder
from chat_core.domain.cancellation import CancelToken
from chat_core.domain.exceptions import RequestCancelledError
from chat_core.domain.history import ConversationHistory
from chat_core.domain.models import CompletionResult, ContentDelta, Message, OutgoingRequest
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import CompletionTransport
from chat_core.providers.decoders import StreamDecoder, decode_completion
from chat_core.tokenizer import Tokenizer


@dataclass
class ChatConfig:
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    system_text: str = "You're a helpful assistant"
    token_budget: int = 4096

    @classmethod
    def from_settings(cls, cfg) -> ChatConfig:
        return cls(
            model=cfg.chat_model,
            temperature=cfg.chat_temperature,
            system_text=cfg.system_prompt,
            token_budget=cfg.token_budget,
        )


@dataclass(frozen=True)
class _HistoryBase:
    """构造请求时的历史版本号与裁剪后保留的历史。"""

    version: int
    kept: Tuple[Message, ...]


class ChatClient:
    def __init__(
        self,
        transport: CompletionTransport,
        tokenizer: Tokenizer,
        config: Optional[ChatConfig] = None,
    ):
        self._transport = transport
        self._builder = RequestBuilder(tokenizer)
        self._config = config or ChatConfig()
        self._history = ConversationHistory()
        self._lock = threading.Lock()

    @property
    def config(self) -> ChatConfig:
        return self._config

    @property
    def history_list(self) -> Tuple[Message, ...]:
        with self._lock:
            return self._history.snapshot()

    # ---- 历史管理 ----

    def delete_history_list(self) -> None:
        with self._lock:
            self._history.clear()

    def replace_history_list(self, messages: Iterable[Message]) -> None:
        """整体替换历史。调用方需保证 user/assistant 交替，这里不做校验。"""

        with self._lock:
            self._history.replace(messages)

    # ---- 对话 ----

    def send_message(self, text: str, cancel_token: Optional[CancelToken] = None) -> CompletionResult:
        cancel_token = cancel_token or CancelToken()
        req, base = self._build_request(text, stream=False)
        body = self._transport.post(req, cancel_token)
        result = decode_completion(body)
        cancel_token.raise_if_cancelled()
        self._commit(base, text, result.text)
        return result

    def send_message_stream(
        self, text: str, cancel_token: Optional[CancelToken] = None
    ) -> Iterator[str]:
        """构造请求后立即返回生成器；HTTP 交换在第一次 next() 时开始。

        行源耗尽后把完整回答写入历史一次。提前 break/close() 或取消则不写。
        """

        cancel_token = cancel_token or CancelToken()
        req, base = self._build_request(text, stream=True)
        return self._stream_exchange(text, req, base, cancel_token)

    # ---- 内部 ----

    def _build_request(self, text: str, stream: bool) -> Tuple[OutgoingRequest, _HistoryBase]:
        with self._lock:
            history = self._history.snapshot()
            version = self._history.version
        cfg = self._config
        req = self._builder.build(
            text,
            history,
            system_text=cfg.system_text,
            model=cfg.model,
            temperature=cfg.temperature,
            stream=stream,
            budget=cfg.token_budget,
        )
        # 去掉首尾的 system 与新 prompt，剩下的就是裁剪后保留的历史
        return req, _HistoryBase(version=version, kept=req.messages[1:-1])

    def _stream_exchange(
        self, text: str, req: OutgoingRequest, base: _HistoryBase, cancel_token: CancelToken
    ) -> Iterator[str]:
        decoder = StreamDecoder()
        try:
            with closing(self._transport.stream_lines(req, cancel_token)) as lines:
                for fragment in decoder.decode(lines):
                    if isinstance(fragment, ContentDelta):
                        yield fragment.text
                        cancel_token.raise_if_cancelled()
        except RequestCancelledError:
            logger.info("Stream cancelled", extra={"extra": {"received_chars": len(decoder.text)}})
            raise
        self._commit(base, text, decoder.text)

    def _commit(self, base: _HistoryBase, user_text: str, assistant_text: str) -> None:
        """写入一次完成的交换。

        快照之后历史未被改动时，用裁剪后的历史替换原历史，被逐出的旧消息不再保留；
        否则（期间被替换、清空或有其他交换提交）只追加本次问答。
        """

        with self._lock:
            trimmed = self._history.version == base.version
            if trimmed:
                self._history.replace(base.kept)
            self._history.append(user_text, assistant_text)
            size = len(self._history)
        logger.info("Exchange committed", extra={"extra": {"history_size": size, "trimmed": trimmed}})
