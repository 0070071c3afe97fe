"""传输层抽象接口。

ChatClient 不直接依赖 httpx，而是依赖此协议：

- post(req): 阻塞式调用，返回 2xx 响应体原始字节。
- stream_lines(req): 流式调用，逐行产出事件流文本。

非 2xx、连接失败、取消都以异常形式抛出，不返回部分结果。
"""

from typing import Iterator, Optional, Protocol

from chat_core.domain.cancellation import CancelToken
from chat_core.domain.models import OutgoingRequest


class CompletionTransport(Protocol):
    name: str

    def post(self, req: OutgoingRequest, cancel_token: Optional[CancelToken] = None) -> bytes:
        ...

    def stream_lines(
        self, req: OutgoingRequest, cancel_token: Optional[CancelToken] = None
    ) -> Iterator[str]:
        ...
