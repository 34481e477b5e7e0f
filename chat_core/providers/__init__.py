"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护模型目录与能力标记 (registry)。
- 解码 server-sent event 流 (stream_decoder)。
- 提供 OpenAI 兼容接口的具体实现 (openai_client)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import ProviderClient
from chat_core.providers.openai_client import OpenAIChatClient


def create_provider(config: Optional[object] = None) -> ProviderClient:
    """创建 Provider 实例，默认使用全局配置。"""

    return OpenAIChatClient(config or settings)
