"""请求构造与上下文裁剪。

候选消息列表 = [system] + 历史 + [新 prompt]。
按所有消息内容拼接后的 token 数与预算比较，超出时从历史中
由旧到新逐条丢弃（system 与新 prompt 永不丢弃）。
历史丢光仍超预算，说明 prompt 本身过大，抛 PromptTooLargeError。
"""

from typing import Sequence

from chat_core.domain.exceptions import PromptTooLargeError
from chat_core.domain.models import (
    Message,
    OutgoingRequest,
    joined_content,
    system_message,
    user_message,
)
from chat_core.infrastructure.logging.logger import logger
from chat_core.tokenizer import Tokenizer


class RequestBuilder:
    def __init__(self, tokenizer: Tokenizer):
        self._tokenizer = tokenizer

    def count_tokens(self, messages: Sequence[Message]) -> int:
        return self._tokenizer.count(joined_content(messages))

    def build(
        self,
        prompt: str,
        history: Sequence[Message],
        *,
        system_text: str,
        model: str,
        temperature: float,
        stream: bool,
        budget: int,
    ) -> OutgoingRequest:
        """构造请求；只裁剪本次请求中的历史副本，不修改传入的历史。"""

        head = system_message(system_text)
        tail = user_message(prompt)
        start = 0
        while True:
            messages = (head, *history[start:], tail)
            count = self.count_tokens(messages)
            if count <= budget:
                break
            if start >= len(history):
                raise PromptTooLargeError(token_count=count, budget=budget)
            start += 1

        logger.info(
            "Built completion request",
            extra={"extra": {
                "messages": len(messages),
                "evicted": start,
                "tokens": count,
                "budget": budget,
                "stream": stream,
            }},
        )
        return OutgoingRequest(
            model=model,
            temperature=temperature,
            messages=messages,
            stream=stream,
        )
