"""协作式取消令牌。"""

import threading

from chat_core.domain.exceptions import RequestCancelledError


class CancelToken:
    """由调用方持有，在任意线程调用 cancel()；执行方在每个工作单元处检查。"""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError()
