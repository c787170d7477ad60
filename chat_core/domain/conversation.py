"""会话状态。

ConversationState 是一次会话中“下一次要发送什么”的唯一来源：
有序的消息历史、当前模型 ID 以及是否开启流式输出。
它由 SessionLoop 独占持有，生命周期与会话相同，不做持久化。
"""

from typing import List, Tuple

from .models import Message, Role


class ConversationState:
    def __init__(self, model: str, streaming_enabled: bool = False):
        self._messages: List[Message] = []
        self._model = model
        self._streaming_enabled = streaming_enabled

    @property
    def model(self) -> str:
        return self._model

    @property
    def streaming_enabled(self) -> bool:
        return self._streaming_enabled

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, role: Role, content: str) -> Message:
        """在末尾追加一条消息。

        不校验 user/assistant 是否交替，手工编辑历史导致的连续同角色
        消息也照常保存。
        """

        msg = Message(role=role, content=content)
        self._messages.append(msg)
        return msg

    def snapshot(self) -> Tuple[Message, ...]:
        """返回当前历史的不可变副本，用于构造 ChatRequest。"""

        return tuple(self._messages)

    def clear(self) -> None:
        # 直接换成新列表，已取出的快照不受影响
        self._messages = []

    def set_model(self, model_id: str) -> None:
        self._model = model_id

    def toggle_streaming(self) -> bool:
        self._streaming_enabled = not self._streaming_enabled
        return self._streaming_enabled
