"""对话客户端：请求构造 (request_builder) 与门面 (chat_client)。"""

from chat_core.client.chat_client import ChatClient, ChatConfig
from chat_core.config.settings import settings
from chat_core.providers import create_transport
from chat_core.tokenizer import create_tokenizer


def create_chat_client(cfg=None) -> ChatClient:
    """按配置组装 ChatClient，默认取全局 settings。"""

    cfg = cfg or settings
    return ChatClient(
        transport=create_transport(cfg),
        tokenizer=create_tokenizer(cfg.tokenizer_backend, cfg.tiktoken_encoding),
        config=ChatConfig.from_settings(cfg),
    )


__all__ = ["ChatClient", "ChatConfig", "create_chat_client"]
