"""统一的对话数据模型。

本模块定义了客户端内部共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant），追加后不可变。
- RequestConfig: 发起一次流式请求所需的模型、reasoning effort 与密钥。

消息列表会原样作为请求体的 ``messages`` 字段发往上游，
因此这里的字段与 OpenAI Chat Completions 的 role/content 一一对应。
"""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Tuple


# LLM 消息角色类型
Role = Literal["system", "user", "assistant"]
ROLES: Tuple[str, ...] = ("system", "user", "assistant")

ReasoningEffort = Literal["minimal", "low", "medium", "high"]
REASONING_EFFORTS: Tuple[str, ...] = ("minimal", "low", "medium", "high")


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，system 只允许出现在会话首位。
    - content: 纯文本内容。
    """

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_payload(cls, data: Any) -> Optional["ChatMessage"]:
        """从持久化 JSON 对象还原消息；结构不合法时返回 None。"""

        if not isinstance(data, dict):
            return None
        role = data.get("role")
        content = data.get("content")
        if role not in ROLES or not isinstance(content, str):
            return None
        return cls(role=role, content=content)


@dataclass(frozen=True)
class RequestConfig:
    """一次请求的模型配置。

    - model_id: 上游模型 ID，例如 "gpt-5"。
    - reasoning_effort: minimal/low/medium/high 之一。
    - credential: Bearer token，不得写入日志。
    """

    model_id: str
    reasoning_effort: ReasoningEffort
    credential: str

    def __repr__(self) -> str:
        return (
            f"RequestConfig(model_id={self.model_id!r}, "
            f"reasoning_effort={self.reasoning_effort!r}, credential='***')"
        )
