"""补全服务集成层。

该包下的模块负责：
- 定义传输抽象接口 (base)。
- 提供 OpenAI 兼容端点的 HTTP 实现 (openai_client)。
- 解析非流式响应、错误信封与事件流 (decoders)。
"""

from chat_core.config.settings import settings
from chat_core.providers.base import CompletionTransport
from chat_core.providers.openai_client import OpenAITransport


def create_transport(cfg=None) -> CompletionTransport:
    """根据配置创建传输实例，默认取全局 settings。"""

    cfg = cfg or settings
    return OpenAITransport(
        api_key=cfg.openai_api_key,
        base_url=cfg.openai_base_url,
        timeout=cfg.http_timeout,
    )
