"""补全服务响应解析。

- decode_completion: 非流式 JSON → CompletionResult，缺字段即报错。
- decode_error_envelope: 非 2xx 响应体 → ErrorEnvelope（形状不对返回 None）。
- StreamDecoder: 逐行解析 "data: {...}" 事件流，产出 ContentDelta / StreamEnd。

线上键均为 snake_case（finish_reason、prompt_tokens 等），
与 models 中的字段名完全相同，直接按同名取值，不做键名转换。
"""

import json
from typing import Any, Iterable, Iterator, Optional, Union

from chat_core.domain.exceptions import DecodeError
from chat_core.domain.models import (
    CompletionResult,
    CompletionUsage,
    ContentDelta,
    ErrorEnvelope,
    StreamEnd,
    StreamFragment,
)

DATA_PREFIX = "data: "


def _load_json(body: Union[bytes, str]) -> Any:
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    return json.loads(body)


def _parse_usage(raw: Any) -> Optional[CompletionUsage]:
    if not isinstance(raw, dict):
        return None
    return CompletionUsage(
        prompt_tokens=raw.get("prompt_tokens"),
        completion_tokens=raw.get("completion_tokens"),
        total_tokens=raw.get("total_tokens"),
    )


def decode_completion(body: Union[bytes, str]) -> CompletionResult:
    """解析非流式补全响应，取第一个 choice 的 message.content。"""

    try:
        data = _load_json(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"malformed completion JSON: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError("completion response is not a JSON object")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise DecodeError("completion response has no choices")
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise DecodeError("choices[0].message missing")
    content = message.get("content")
    if content is not None and not isinstance(content, str):
        raise DecodeError("choices[0].message.content is not a string")

    return CompletionResult(
        text=content or "",
        usage=_parse_usage(data.get("usage")),
        finish_reason=first.get("finish_reason"),
    )


def decode_error_envelope(body: Union[bytes, str]) -> Optional[ErrorEnvelope]:
    """解析 {"error": {"message": ..., "type": ...}}，形状不符时返回 None。"""

    try:
        data = _load_json(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return None
    message = error.get("message")
    if not isinstance(message, str):
        return None
    err_type = error.get("type")
    return ErrorEnvelope(message=message, type=err_type if isinstance(err_type, str) else None)


def _delta_content(line: str) -> Optional[str]:
    """从一行事件中取出 choices[0].delta.content，不是内容行返回 None。"""

    if not line.startswith(DATA_PREFIX):
        return None
    try:
        chunk = json.loads(line[len(DATA_PREFIX):])
    except json.JSONDecodeError:
        # 包括 "data: [DONE]" 这类控制行
        return None
    choices = chunk.get("choices") if isinstance(chunk, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if not isinstance(content, str) or not content:
        return None
    return content


class StreamDecoder:
    """事件流状态机：reading → done。

    feed() 每次处理一行；finish() 在行源耗尽时调用，返回 StreamEnd。
    累计文本在 text 中，只允许单次使用。
    """

    READING = "reading"
    DONE = "done"
    FAILED = "failed"

    def __init__(self) -> None:
        self.state = self.READING
        self._parts: list[str] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, line: str) -> Optional[ContentDelta]:
        if self.state != self.READING:
            raise RuntimeError(f"StreamDecoder is {self.state}")
        content = _delta_content(line)
        if content is None:
            return None
        self._parts.append(content)
        return ContentDelta(content)

    def fail(self) -> None:
        self.state = self.FAILED

    def finish(self) -> StreamEnd:
        if self.state != self.READING:
            raise RuntimeError(f"StreamDecoder is {self.state}")
        self.state = self.DONE
        return StreamEnd(self.text)

    def decode(self, lines: Iterable[str]) -> Iterator[StreamFragment]:
        """把行源转换为片段序列；行源抛错时状态置为 failed 并继续抛出。"""

        try:
            for line in lines:
                delta = self.feed(line)
                if delta is not None:
                    yield delta
        except BaseException:
            self.fail()
            raise
        yield self.finish()
