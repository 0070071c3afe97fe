"""领域层模型。

包含：
- models: Message / OutgoingRequest / CompletionResult 等数据结构。
- history: 会话历史 ConversationHistory。
- cancellation: 协作式取消令牌 CancelToken。
- exceptions: 业务异常类型定义。
"""
