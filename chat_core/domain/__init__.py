"""领域层模型。

包含：
- models: 统一的 Message / ChatRequest / 响应模型。
- conversation: 会话状态 ConversationState。
- exceptions: 业务异常类型定义。
"""
