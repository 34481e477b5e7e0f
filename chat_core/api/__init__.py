"""对外服务入口。"""

from .service import ChatService, get_default_service

__all__ = ["ChatService", "get_default_service"]
