"""Provider 抽象接口。

会话层不直接依赖具体的 HTTP 调用，而是依赖此协议：

- open_stream(config, messages): 上下文管理器，进入时完成请求并校验状态，
  返回增量文本迭代器；退出时释放响应。
- 非 2xx 响应抛出 ApiError，网络失败抛出 NetworkError。

测试里可以用任意实现了该协议的假对象替换真实客户端。
"""

from typing import ContextManager, Iterator, Protocol, Sequence

from chat_core.domain.models import ChatMessage, RequestConfig


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。"""

    name: str

    def open_stream(
        self, config: RequestConfig, messages: Sequence[ChatMessage]
    ) -> ContextManager[Iterator[str]]:
        """打开一次流式对话调用，产出增量文本迭代器。"""

        ...
