"""统一的对话与结果数据模型。

本模块定义了会话引擎内部共享的标准数据结构：

- Message: 一条对话消息（user/assistant，另有仅用于请求的 system）。
- ChatRequest: 每轮对话发给 Provider 的完整请求（不可变快照）。
- CompleteResponse / StreamedResponse: Transport 返回的两种响应形态。
- Delta: 流式解码得到的单个增量片段。

Transport 负责在这些模型和 HTTP JSON 之间做转换，
会话循环只依赖这里的类型。
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, Literal, Optional, Tuple, Union


# 消息角色（与 OpenAI 兼容接口的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """一条对话消息，追加到历史后不再修改。"""

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatRequest:
    """一次完整的聊天请求。

    messages 是 ConversationState 在发送时刻的快照（tuple），
    之后历史的变化不会影响已经构造好的请求。
    """

    model: str
    messages: Tuple[Message, ...]
    stream: bool = False

    def to_payload(self, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        msgs = [m.to_payload() for m in self.messages]
        if system_prompt:
            msgs.insert(0, Message(role="system", content=system_prompt).to_payload())
        return {"model": self.model, "messages": msgs, "stream": self.stream}


@dataclass(frozen=True)
class ChatUsage:
    """Provider 返回的 token 统计信息。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class CompleteResponse:
    """非流式调用的完整结果。

    - content: choices[0].message.content（null 视为空串）。
    - usage: 可选的 token 使用统计，仅用于日志。
    - raw: 原始响应 JSON，用于调试。
    """

    content: str
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = field(default=None, compare=False)


@dataclass(frozen=True)
class Delta:
    """流式返回中的一个文本增量。"""

    text: str


class StreamedResponse:
    """流式调用的响应句柄。

    持有底层连接：迭代得到原始字节块（边界与事件边界无关），
    close() 释放连接，可重复调用。作为上下文管理器使用时，
    无论正常结束、解码失败还是被中断，退出时都会释放连接。
    只能迭代一次。
    """

    def __init__(self, chunks: Iterable[bytes], close: Optional[Callable[[], None]] = None):
        self._chunks = iter(chunks)
        self._close = close
        self._consumed = False
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise RuntimeError("StreamedResponse can only be iterated once")
        self._consumed = True
        return self._chunks

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close_chunks = getattr(self._chunks, "close", None)
        if close_chunks is not None:
            close_chunks()
        if self._close is not None:
            self._close()

    def __enter__(self) -> "StreamedResponse":
        return self

    def __exit__(self, *exc_info) -> bool:
        self.close()
        return False


# Transport.send 的返回值：二选一的标签联合
ResponseHandle = Union[CompleteResponse, StreamedResponse]
