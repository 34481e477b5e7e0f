"""ChatSession：一次用户输入到一条助手消息的完整编排。

流程（send）：
1. 追加用户消息并立即渲染（header/body/divider）。
2. 未配置密钥时渲染错误提示并返回。
3. 用当前偏好构造 RequestConfig，携带完整会话快照发起流式请求。
4. 非 2xx 响应渲染状态码、状态文本与响应体，不重试。
5. 渲染助手 header，逐个 token 追加渲染并累积。
6. 流正常结束后追加助手消息（即便内容为空）。
7. 3-6 中的任何异常都在这里捕获并渲染为一行错误，不向上抛出。
8. 无论成败，最后渲染一个空行作为本轮结束标记。

同一时刻只允许一个 send 在进行；重叠的调用会被拒绝，不会改动会话。
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional
from uuid import uuid4

from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import ApiError, BusinessError
from chat_core.domain.models import RequestConfig
from chat_core.infrastructure.logging.logger import logger
from chat_core.infrastructure.storage.gateway import PreferenceStore
from chat_core.providers.base import ProviderClient
from chat_core.rendering.transcript import TranscriptRenderer, print_message


USER_LABEL = "User"
ASSISTANT_LABEL = "Assistant"

MISSING_KEY_NOTICE = "Error: Missing API key. Set one with /key before sending a message."
BUSY_NOTICE = "Error: A response is still streaming. Wait for it to finish."


class SendOutcome(str, Enum):
    """send() 的终止状态，便于调用方与测试判断。"""

    IGNORED = "ignored"
    BUSY = "busy"
    MISSING_KEY = "missing_key"
    API_ERROR = "api_error"
    ERROR = "error"
    COMPLETED = "completed"


@dataclass
class SendResult:
    outcome: SendOutcome
    reply: Optional[str] = None
    tokens: int = 0


class ChatSession:
    def __init__(
        self,
        store: ConversationStore,
        preferences: PreferenceStore,
        provider_client: ProviderClient,
        renderer: TranscriptRenderer,
    ):
        self._store = store
        self._preferences = preferences
        self._provider_client = provider_client
        self._renderer = renderer
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def send(self, user_text: str) -> SendResult:
        text = (user_text or "").strip()
        if not text:
            return SendResult(SendOutcome.IGNORED)
        if not self._lock.acquire(blocking=False):
            self._renderer.print_body(BUSY_NOTICE)
            return SendResult(SendOutcome.BUSY)
        try:
            return self._send_locked(text)
        finally:
            self._lock.release()

    def _send_locked(self, text: str) -> SendResult:
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}"}
        self._store.append("user", text)
        print_message(self._renderer, USER_LABEL, text)
        try:
            api_key = self._preferences.api_key
            if not api_key:
                self._renderer.print_body(MISSING_KEY_NOTICE)
                self._log(logging.INFO, "Send skipped: missing API key", log_ctx)
                return SendResult(SendOutcome.MISSING_KEY)
            config = RequestConfig(
                model_id=self._preferences.model,
                reasoning_effort=self._preferences.reasoning_effort,
                credential=api_key,
            )
            return self._stream_reply(config, log_ctx)
        except ApiError as e:
            self._renderer.print_body(f"Error: {e.http_status} {e.status_text}\n{e.message}")
            self._log(logging.WARNING, "Provider error", log_ctx, http_status=e.http_status, code=e.code)
            return SendResult(SendOutcome.API_ERROR)
        except BusinessError as e:
            self._renderer.print_body(f"Error: {e.message}")
            self._log(logging.WARNING, "Send failed", log_ctx, code=e.code, error=e.message)
            return SendResult(SendOutcome.ERROR)
        except Exception as e:
            self._renderer.print_body(f"Error: {e}")
            logger.exception("Unexpected error during send", extra={"extra": log_ctx})
            return SendResult(SendOutcome.ERROR)
        finally:
            self._renderer.print_body("")

    def _stream_reply(self, config: RequestConfig, log_ctx: Dict[str, Any]) -> SendResult:
        start_time = time.time()
        messages = self._store.snapshot()
        pieces: List[str] = []
        with self._provider_client.open_stream(config, messages) as stream:
            self._renderer.print_header(ASSISTANT_LABEL)
            for token in stream:
                pieces.append(token)
                self._renderer.print_token(token)

        reply = "".join(pieces)
        self._store.append("assistant", reply)
        self._log(
            logging.INFO,
            "Stored assistant message",
            log_ctx,
            model=config.model_id,
            tokens=len(pieces),
            chars=len(reply),
            elapsed_ms=int((time.time() - start_time) * 1000),
        )
        return SendResult(SendOutcome.COMPLETED, reply=reply, tokens=len(pieces))

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
