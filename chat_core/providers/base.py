"""Transport 抽象接口。

会话循环不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- 每个厂商实现一个 Transport（如 GroqClient）。
- 负责：将 ChatRequest 序列化为 HTTP 请求，并返回 CompleteResponse
  （非流式）或 StreamedResponse（流式，原始字节块）。

失败时抛出 domain.exceptions 中的 TransportError 子类。
"""

from typing import Protocol

from chat_core.domain.models import ChatRequest, ResponseHandle


class Transport(Protocol):
    """LLM 接口传输层协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - send(req): 每轮对话发送一次 POST，req.stream 决定返回哪种响应。
    """

    name: str

    def send(self, req: ChatRequest) -> ResponseHandle:
        ...
