"""对话编排层。"""

from .chat_session import ChatSession, SendOutcome

__all__ = ["ChatSession", "SendOutcome"]
