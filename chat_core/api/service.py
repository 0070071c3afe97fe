"""对外 API 服务模块。

为展示层与持久化层提供简化的函数接口，内部共享一个进程级 ChatClient。
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from chat_core.client import ChatClient, create_chat_client
from chat_core.domain.cancellation import CancelToken
from chat_core.domain.exceptions import ValidationError
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger


_client: Optional[ChatClient] = None


def get_default_client() -> ChatClient:
    """获取默认的 ChatClient 实例（单例）。"""
    global _client
    if _client is None:
        _client = create_chat_client()
    return _client


def run_chat(text: str, cancel_token: Optional[CancelToken] = None) -> Dict[str, Any]:
    """发送一条消息并等待完整回答。

    Returns:
        包含回答文本、finish_reason 与使用统计的字典

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    try:
        result = get_default_client().send_message(text, cancel_token)
    except Exception as e:
        logger.error(f"Chat failed: {type(e).__name__}", extra={"extra": {
            "error": getattr(e, "code", type(e).__name__),
        }})
        raise
    usage = result.usage
    return {
        "text": result.text,
        "finish_reason": result.finish_reason,
        "usage": {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        } if usage else None,
    }


def run_chat_stream(text: str, cancel_token: Optional[CancelToken] = None) -> Iterator[str]:
    """发送一条消息，返回逐段产出的回答文本。"""
    return get_default_client().send_message_stream(text, cancel_token)


def get_history() -> List[Dict[str, str]]:
    """导出当前会话历史，供持久化层保存。"""
    return [m.to_payload() for m in get_default_client().history_list]


def restore_history(messages: Iterable[Mapping[str, Any]]) -> None:
    """用持久化层保存的记录覆盖当前历史。

    记录需为 user/assistant 交替的 {"role", "content"}，这里不校验顺序；
    角色缺失、未知或为 system 时抛 ValidationError，历史保持不变。
    """
    restored = [Message.from_payload(m) for m in messages]
    for m in restored:
        if m.role == "system":
            raise ValidationError(code="INVALID_ROLE", message="system messages are not stored in history")
    get_default_client().replace_history_list(restored)


def reset_history() -> None:
    """清空当前会话历史。"""
    get_default_client().delete_history_list()
