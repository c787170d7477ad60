"""Chat Core 顶层包。

该包提供终端聊天客户端的会话引擎，
包括配置加载、领域模型、Provider 传输层、流式解码、
命令分发与会话循环等能力。
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
