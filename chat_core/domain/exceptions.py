"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
调用方（展示层、持久化层）可以只捕获这一个基类。
任何一种错误被抛出时，会话历史都保持不变。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "API_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 model、token 数等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class InvalidResponseError(BusinessError):
    """传输层返回的结果不是一个 HTTP 响应。"""

    def __init__(self, message: str = "response is not an HTTP response"):
        super().__init__(code="INVALID_RESPONSE", message=message, http_status=502)


class BadResponseError(BusinessError):
    """服务端返回非 2xx 状态码。

    detail 优先取错误信封里的 error.message，其次是原始响应体。
    """

    code_name = "API_ERROR"

    def __init__(self, status: int, detail: Optional[str] = None):
        self.status = status
        self.detail = detail or ""
        message = f"{status}. {self.detail}" if self.detail else str(status)
        super().__init__(code=self.code_name, message=message, http_status=status)


class RateLimitError(BadResponseError):
    """429 限流，由上层负责重试/退避策略。"""

    code_name = "RATE_LIMIT"


class DecodeError(BusinessError):
    """成功路径上的 JSON 无法解析，或缺少 choices[0].message。"""

    def __init__(self, message: str):
        super().__init__(code="DECODE_ERROR", message=message, http_status=502)


class PromptTooLargeError(BusinessError):
    """即使清空历史，system + 新 prompt 仍超出 token 预算。"""

    def __init__(self, token_count: int, budget: int):
        self.token_count = token_count
        self.budget = budget
        super().__init__(
            code="PROMPT_TOO_LARGE",
            message=f"prompt needs {token_count} tokens, budget is {budget}",
            http_status=413,
        )


class RequestCancelledError(BusinessError):
    """调用方通过 CancelToken 取消了进行中的请求。"""

    def __init__(self, message: str = "request cancelled"):
        super().__init__(code="CANCELLED", message=message, http_status=499)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
