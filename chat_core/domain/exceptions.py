"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话层统一捕获并渲染为一行错误提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 status_text）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时、流中断等。"""


class ApiError(BusinessError):
    """上游 API 返回非 2xx 状态时抛出。

    message 保存响应体文本（尽力读取，可能为空），
    extra["status_text"] 保存 HTTP reason phrase。
    """

    @property
    def status_text(self) -> str:
        return self.extra.get("status_text") or ""


class RateLimitError(ApiError):
    """上游限流 (429)。不做重试，按普通 ApiError 展示。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class StorageError(BusinessError):
    """键值存储读写失败。PersistenceGateway 会吞掉此类错误。"""
