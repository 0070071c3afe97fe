"""Chat Core 顶层包。

该包提供对话补全客户端的核心实现，
包括配置加载、领域模型、token 预算裁剪、HTTP 传输、
事件流解析与会话历史维护等能力。
"""

from chat_core.client import ChatClient, ChatConfig, create_chat_client

__all__ = ["ChatClient", "ChatConfig", "create_chat_client"]
