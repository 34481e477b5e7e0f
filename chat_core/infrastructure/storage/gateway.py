"""PersistenceGateway：会话与用户偏好的尽力持久化。

- load/load_json: 键不存在、值损坏或后端读失败时一律返回 fallback。
- save/save_json: 写失败（序列化、磁盘、配额）只记日志，不向上抛出，
  持久化绝不能打断交互流程。

内存中的 ConversationStore 才是运行期的真实状态；持久化数据只在
冷启动时作为唯一来源。
"""

import json
import logging
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from chat_core.domain.conversation import is_valid_conversation
from chat_core.domain.models import REASONING_EFFORTS, ChatMessage, ReasoningEffort
from chat_core.infrastructure.logging.logger import log_event
from .json_store import KeyValueStore


KEY_API_KEY = "api_key"
KEY_SYSTEM_PROMPT = "system_prompt"
KEY_MODEL = "model"
KEY_REASONING_EFFORT = "reasoning_effort"
KEY_MESSAGES = "messages"

T = TypeVar("T")


class PersistenceGateway:
    def __init__(self, backend: KeyValueStore):
        self._backend = backend

    def load(self, key: str, fallback: str = "") -> str:
        try:
            value = self._backend.get_item(key)
        except Exception as e:
            log_event(logging.WARNING, "Persistent read failed", key=key, error=str(e))
            return fallback
        if not isinstance(value, str):
            return fallback
        return value

    def load_json(
        self,
        key: str,
        fallback: T,
        parse: Optional[Callable[[Any], Optional[T]]] = None,
    ) -> T:
        """读取 JSON 值；parse 返回 None 表示结构不合法，同样回退到 fallback。"""

        raw = self.load(key, "")
        if not raw:
            return fallback
        try:
            data = json.loads(raw)
        except ValueError:
            log_event(logging.WARNING, "Malformed persisted value ignored", key=key)
            return fallback
        if parse is None:
            return data
        parsed = parse(data)
        if parsed is None:
            log_event(logging.WARNING, "Malformed persisted value ignored", key=key)
            return fallback
        return parsed

    def save(self, key: str, value: str) -> None:
        try:
            self._backend.set_item(key, value)
        except Exception as e:
            log_event(logging.WARNING, "Persistent write failed", key=key, error=str(e))

    def save_json(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except Exception as e:
            log_event(logging.WARNING, "Persistent serialization failed", key=key, error=str(e))
            return
        self.save(key, raw)

    # ---- 会话 ----

    def load_conversation(self) -> List[ChatMessage]:
        return self.load_json(KEY_MESSAGES, [], parse=parse_conversation)

    def save_conversation(self, messages: Sequence[ChatMessage]) -> None:
        self.save_json(KEY_MESSAGES, [m.to_payload() for m in messages])


def parse_conversation(data: Any) -> Optional[List[ChatMessage]]:
    """把 JSON 数组还原为消息列表；任一元素不合法即视为整体损坏。"""

    if not isinstance(data, list):
        return None
    messages: List[ChatMessage] = []
    for item in data:
        msg = ChatMessage.from_payload(item)
        if msg is None:
            return None
        messages.append(msg)
    if not is_valid_conversation(messages):
        return None
    return messages


class PreferenceStore:
    """用户偏好（密钥、system prompt、模型、reasoning effort）。"""

    def __init__(
        self,
        gateway: PersistenceGateway,
        default_model: str,
        default_reasoning_effort: ReasoningEffort,
        seed_api_key: Optional[str] = None,
    ):
        self._gateway = gateway
        self._default_model = default_model
        self._default_effort = default_reasoning_effort
        self._seed_api_key = (seed_api_key or "").strip()

    @property
    def api_key(self) -> str:
        stored = self._gateway.load(KEY_API_KEY, "")
        return stored or self._seed_api_key

    @api_key.setter
    def api_key(self, value: str) -> None:
        self._gateway.save(KEY_API_KEY, (value or "").strip())

    @property
    def system_prompt(self) -> str:
        return self._gateway.load(KEY_SYSTEM_PROMPT, "")

    @system_prompt.setter
    def system_prompt(self, value: str) -> None:
        self._gateway.save(KEY_SYSTEM_PROMPT, value or "")

    @property
    def model(self) -> str:
        return self._gateway.load(KEY_MODEL, "").strip() or self._default_model

    @model.setter
    def model(self, value: str) -> None:
        self._gateway.save(KEY_MODEL, value.strip())

    @property
    def reasoning_effort(self) -> ReasoningEffort:
        stored = self._gateway.load(KEY_REASONING_EFFORT, "")
        if stored in REASONING_EFFORTS:
            return stored  # type: ignore[return-value]
        return self._default_effort

    @reasoning_effort.setter
    def reasoning_effort(self, value: str) -> None:
        self._gateway.save(KEY_REASONING_EFFORT, value)
