"""领域层模型与协议。

包含：
- models: ChatMessage / RequestConfig 等统一数据模型。
- conversation: 内存中的有序会话历史 ConversationStore。
- exceptions: 业务异常类型定义。
"""
