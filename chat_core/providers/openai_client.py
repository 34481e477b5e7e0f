"""OpenAI Chat Completions 流式客户端。

本模块负责：

1. 把 RequestConfig + 消息快照转换为 HTTP 请求体。
2. 以流式方式 POST 到 ``{api_base_url}/chat/completions``。
3. 非 2xx 响应读取状态码、reason phrase 与响应体，包装成 ApiError。
4. 把响应体字节块交给 StreamDecoder，逐个产出增量文本。

open_stream 分两步：进入 ``with`` 时完成请求并校验状态码，返回增量文本
迭代器；离开 ``with`` 时（正常结束或中途异常）关闭响应、释放连接。
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence

import httpx

from chat_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from chat_core.domain.models import ChatMessage, RequestConfig
from chat_core.infrastructure.logging.logger import log_event
from chat_core.providers.registry import supports_reasoning_effort
from chat_core.providers.stream_decoder import iter_delta_tokens


class OpenAIChatClient:
    """OpenAI 兼容接口的流式客户端。"""

    name = "openai"

    def __init__(self, settings):
        # Settings 里包含 api_base_url、超时、[DONE] 处理策略
        self._settings = settings

    @property
    def endpoint(self) -> str:
        base = (getattr(self._settings, "api_base_url", None) or "https://api.openai.com/v1").rstrip("/")
        return f"{base}/chat/completions"

    @contextmanager
    def open_stream(self, config: RequestConfig, messages: Sequence[ChatMessage]) -> Iterator[Iterator[str]]:
        """发起流式请求；响应头到达且状态为 2xx 后交出增量文本迭代器。"""

        if not config.credential:
            raise ValidationError(code="MISSING_API_KEY", message="Missing API key")
        payload = build_payload(config, messages)
        stop_on_done = bool(getattr(self._settings, "stream_stop_on_done", False))
        log_event(
            logging.INFO,
            "Calling provider (stream)",
            provider=self.name,
            model=config.model_id,
            message_count=len(messages),
            reasoning_effort=payload.get("reasoning_effort"),
        )
        started = time.time()
        stats = {"tokens": 0, "chars": 0}

        def counted(tokens: Iterator[str]) -> Iterator[str]:
            for token in tokens:
                stats["tokens"] += 1
                stats["chars"] += len(token)
                yield token

        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    self.endpoint,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {config.credential}",
                        "Content-Type": "application/json",
                    },
                ) as resp:
                    if not 200 <= resp.status_code < 300:
                        raise self._api_error(resp)
                    yield counted(iter_delta_tokens(resp.iter_bytes(), stop_on_done=stop_on_done))
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时、读超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        log_event(
            logging.INFO,
            "Stream finished",
            provider=self.name,
            model=config.model_id,
            tokens=stats["tokens"],
            chars=stats["chars"],
            elapsed_ms=int((time.time() - started) * 1000),
        )

    def chat_stream(self, config: RequestConfig, messages: Sequence[ChatMessage]) -> Iterator[str]:
        """执行一次流式对话调用，逐步 yield 增量文本。"""

        with self.open_stream(config, messages) as tokens:
            for token in tokens:
                yield token

    @staticmethod
    def _api_error(resp: httpx.Response) -> ApiError:
        body = _read_body_text(resp)
        status_text = getattr(resp, "reason_phrase", "") or ""
        log_event(
            logging.WARNING,
            "Provider returned error status",
            http_status=resp.status_code,
            status_text=status_text,
            body=body[:200],
        )
        error_cls = RateLimitError if resp.status_code == 429 else ApiError
        return error_cls(
            code="RATE_LIMIT" if resp.status_code == 429 else "API_ERROR",
            message=body,
            http_status=resp.status_code,
            status_text=status_text,
        )


def build_payload(config: RequestConfig, messages: Sequence[ChatMessage]) -> Dict[str, Any]:
    """将模型配置与消息快照转成请求 JSON。"""

    payload: Dict[str, Any] = {
        "model": config.model_id,
        "messages": [m.to_payload() for m in messages],
        "stream": True,
    }
    if supports_reasoning_effort(config.model_id):
        payload["reasoning_effort"] = config.reasoning_effort
    return payload


def _read_body_text(resp: httpx.Response) -> str:
    """尽力读取错误响应体，失败时返回空串。"""

    try:
        resp.read()
        text: Optional[str] = resp.text
    except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError):
        return ""
    return text or ""
