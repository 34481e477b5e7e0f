"""chat_core 顶层包。

一个流式对话客户端：维护带 system 首条消息的有序会话历史，
把完整历史发送到 chat completion 接口，解析 server-sent event
增量流并实时渲染，同时把会话与偏好持久化到本地键值存储。
"""

from chat_core.api.service import ChatService, get_default_service

__all__ = ["ChatService", "get_default_service"]
