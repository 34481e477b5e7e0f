"""内存中的会话历史。

ConversationStore 持有按时间排序的消息列表，并维护一个不变量：
system 消息最多一条，且只能位于下标 0。每次变更后都会把完整快照
交给订阅者（通常是持久化层），而不是增量 diff。
"""

from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .exceptions import ValidationError
from .models import ChatMessage, Role


Conversation = Tuple[ChatMessage, ...]
ChangeListener = Callable[[Conversation], None]


def is_valid_conversation(messages: Sequence[ChatMessage]) -> bool:
    """检查 system 消息是否只出现在首位且至多一条。"""

    for idx, msg in enumerate(messages):
        if msg.role == "system" and idx != 0:
            return False
    return True


class ConversationStore:
    def __init__(
        self,
        messages: Iterable[ChatMessage] = (),
        on_change: Optional[ChangeListener] = None,
    ):
        initial = list(messages)
        if not is_valid_conversation(initial):
            raise ValidationError(
                code="INVALID_CONVERSATION",
                message="system message must be the first and only system entry",
            )
        self._messages: List[ChatMessage] = initial
        self._listeners: List[ChangeListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def reset(self, system_prompt: Optional[str] = None) -> None:
        """清空会话；若给出非空 system prompt，则以它作为首条消息。"""

        if system_prompt:
            self._messages = [ChatMessage(role="system", content=system_prompt)]
        else:
            self._messages = []
        self._notify()

    def append(self, role: Role, content: str) -> ChatMessage:
        if role not in ("user", "assistant"):
            raise ValidationError(
                code="INVALID_ROLE",
                message=f"cannot append a {role!r} message; use reset() for the system prompt",
            )
        msg = ChatMessage(role=role, content=content)
        self._messages.append(msg)
        self._notify()
        return msg

    def restore(self, messages: Iterable[ChatMessage]) -> None:
        """采用已持久化的会话（冷启动），不触发订阅者。"""

        restored = list(messages)
        if not is_valid_conversation(restored):
            raise ValidationError(
                code="INVALID_CONVERSATION",
                message="system message must be the first and only system entry",
            )
        self._messages = restored

    def has_started(self) -> bool:
        """空会话或只有 system 消息时视为尚未开始。"""

        if not self._messages:
            return False
        if len(self._messages) > 1:
            return True
        return self._messages[0].role != "system"

    def snapshot(self) -> Conversation:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in self._listeners:
            listener(snap)
