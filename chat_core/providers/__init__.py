"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Transport 抽象接口 (base)。
- 维护 Provider 地址与可选模型 (registry)。
- 提供具体实现 (groq_client)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import Transport
from chat_core.providers.groq_client import GroqClient
from chat_core.providers.registry import get_provider_config


def create_transport(name: str = "groq", api_key: Optional[str] = None) -> Transport:
    """根据名称创建 Transport 实例，未知名称抛出 KeyError。"""

    get_provider_config(name)
    return GroqClient(settings, api_key=api_key)
