"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话循环中做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class InputError(BusinessError):
    """命令参数不合法（例如 /model 的选择超出范围）。"""


class ValidationError(BusinessError):
    """参数或配置校验失败，例如缺少 API Key。"""


class TransportError(BusinessError):
    """Transport 层错误基类。"""


class NetworkError(TransportError):
    """网络层错误，例如 DNS 失败、连接超时、传输中途断开。"""


class HttpError(TransportError):
    """服务端返回非 2xx 状态码。

    status/body 保留原始状态码和响应文本，不尝试解析聊天结果。
    """

    def __init__(self, status: int, body: str, code: str = "API_ERROR", message: str = ""):
        super().__init__(
            code=code,
            message=message or f"HTTP {status}: {body}",
            http_status=status,
        )
        self.status = status
        self.body = body


class RateLimitError(HttpError):
    """Provider 限流（429），重试次数耗尽后抛出。"""

    def __init__(self, body: str = ""):
        super().__init__(
            status=429,
            body=body,
            code="RATE_LIMIT",
            message="Rate limit exceeded after retries",
        )


class MalformedResponseError(TransportError):
    """响应 JSON 结构不符合预期（例如没有 choices）。"""


class DecodeError(BusinessError):
    """流式响应中没有任何可解析的事件。"""
