"""OpenAI 兼容补全端点的 HTTP 传输实现。

- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>
- 请求体: {model, temperature, messages, stream}

这里只负责 HTTP 交换与状态码处理，响应体的解析交给 decoders。
"""

from typing import Iterator, Optional

import httpx

from chat_core.domain.cancellation import CancelToken
from chat_core.domain.exceptions import (
    BadResponseError,
    InvalidResponseError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from chat_core.domain.models import OutgoingRequest
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.decoders import decode_error_envelope

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _status_of(resp) -> int:
    status = getattr(resp, "status_code", None)
    if not isinstance(status, int):
        raise InvalidResponseError()
    return status


def _bad_response(status: int, body: str) -> BadResponseError:
    """非 2xx：优先使用错误信封中的 message，否则用原始响应体。"""

    envelope = decode_error_envelope(body) if body else None
    detail = envelope.message if envelope else body.strip()
    logger.warning(
        "Completion request failed",
        extra={"extra": {"status": status, "error_type": envelope.type if envelope else None}},
    )
    if status == 429:
        return RateLimitError(status, detail)
    return BadResponseError(status, detail)


class OpenAITransport:
    """补全端点传输实现。

    - name: 传输名称（供日志/调试使用）。
    - post / stream_lines: 见 CompletionTransport 协议。
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def _headers(self) -> dict:
        if not self._api_key:
            # 配置缺失走 ValidationError，方便上层统一处理
            raise ValidationError(code="MISSING_API_KEY", message="OPENAI_API_KEY not set")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    # ---- 非流式 ----

    def post(self, req: OutgoingRequest, cancel_token: Optional[CancelToken] = None) -> bytes:
        cancel_token = cancel_token or CancelToken()
        headers = self._headers()
        cancel_token.raise_if_cancelled()
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                resp = client.post(self.endpoint, json=req.to_payload(), headers=headers)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        cancel_token.raise_if_cancelled()
        status = _status_of(resp)
        if not 200 <= status <= 299:
            raise _bad_response(status, resp.text)
        return resp.content

    # ---- 流式 ----

    def stream_lines(
        self, req: OutgoingRequest, cancel_token: Optional[CancelToken] = None
    ) -> Iterator[str]:
        """逐行产出事件流。生成器被关闭时连接随之释放。"""

        cancel_token = cancel_token or CancelToken()
        headers = self._headers()
        cancel_token.raise_if_cancelled()
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    self.endpoint,
                    json=req.to_payload(),
                    headers=headers,
                ) as resp:
                    cancel_token.raise_if_cancelled()
                    status = _status_of(resp)
                    if not 200 <= status <= 299:
                        error_text = ""
                        for line in resp.iter_lines():
                            cancel_token.raise_if_cancelled()
                            error_text += line
                        raise _bad_response(status, error_text)
                    for line in resp.iter_lines():
                        cancel_token.raise_if_cancelled()
                        yield line
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
