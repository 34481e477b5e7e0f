"""对外 API 服务模块。

ChatService 把会话、偏好、持久化与渲染组装在一起，提供前端
（控制台等）需要的全部操作：冷启动、发送消息、新建会话、
修改 system prompt / 模型 / reasoning effort / 密钥。
"""

import logging
from typing import Optional, Tuple

from chat_core.agents.chat_session import ASSISTANT_LABEL, USER_LABEL, ChatSession, SendResult
from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import ValidationError
from chat_core.domain.models import REASONING_EFFORTS, ChatMessage
from chat_core.infrastructure.logging.logger import log_event
from chat_core.infrastructure.storage.gateway import PersistenceGateway, PreferenceStore
from chat_core.infrastructure.storage.json_store import JsonKeyValueStore, KeyValueStore
from chat_core.providers import create_provider
from chat_core.providers.base import ProviderClient
from chat_core.rendering.transcript import StreamTranscript, TranscriptRenderer, print_message


class ChatService:
    def __init__(
        self,
        backend: KeyValueStore,
        provider_client: ProviderClient,
        renderer: TranscriptRenderer,
        config: Optional[object] = None,
    ):
        cfg = config or settings
        self.gateway = PersistenceGateway(backend)
        self.preferences = PreferenceStore(
            self.gateway,
            default_model=cfg.default_model,
            default_reasoning_effort=cfg.default_reasoning_effort,
            seed_api_key=getattr(cfg, "openai_api_key", None),
        )
        self.renderer = renderer
        self.store = ConversationStore(on_change=self.gateway.save_conversation)
        self.session = ChatSession(self.store, self.preferences, provider_client, renderer)

    def start(self) -> None:
        """冷启动：优先采用持久化的会话，否则按 system prompt 新建。"""

        stored = self.gateway.load_conversation()
        if stored:
            self.store.restore(stored)
            log_event(logging.INFO, "Restored conversation", message_count=len(stored))
        else:
            self.store.reset(self.preferences.system_prompt)
        self.rebuild_transcript()

    def send(self, user_text: str) -> SendResult:
        return self.session.send(user_text)

    def rebuild_transcript(self) -> None:
        """按会话历史重绘日志；system 消息不显示。"""

        self.renderer.clear()
        for msg in self.store.snapshot():
            if msg.role == "user":
                print_message(self.renderer, USER_LABEL, msg.content)
            elif msg.role == "assistant":
                print_message(self.renderer, ASSISTANT_LABEL, msg.content)

    def new_chat(self) -> None:
        self.store.reset(self.preferences.system_prompt)
        self.renderer.clear()

    def set_system_prompt(self, text: str) -> bool:
        """保存 system prompt；会话尚未开始时立即重置会话。

        Returns:
            会话是否被重置。
        """

        self.preferences.system_prompt = text
        if self.store.has_started():
            return False
        self.store.reset(text)
        self.rebuild_transcript()
        return True

    def set_api_key(self, value: str) -> None:
        self.preferences.api_key = value

    def set_model(self, model_id: str) -> None:
        model_id = (model_id or "").strip()
        if not model_id:
            raise ValidationError(code="INVALID_MODEL", message="Model id must not be empty")
        self.preferences.model = model_id

    def set_reasoning_effort(self, effort: str) -> None:
        value = (effort or "").strip().lower()
        if value not in REASONING_EFFORTS:
            raise ValidationError(
                code="INVALID_REASONING_EFFORT",
                message=f"Reasoning effort must be one of: {', '.join(REASONING_EFFORTS)}",
            )
        self.preferences.reasoning_effort = value

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self.store.snapshot()


_service: Optional[ChatService] = None


def get_default_service() -> ChatService:
    """获取默认的 ChatService 实例（单例，输出到 stdout）。"""
    global _service
    if _service is None:
        _service = ChatService(
            backend=JsonKeyValueStore(root=settings.storage_root),
            provider_client=create_provider(),
            renderer=StreamTranscript(),
        )
    return _service
