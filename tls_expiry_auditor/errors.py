"""
错误类型定义
"""


class ProbeError(Exception):
    """单个端点探测失败（不影响其他端点）"""

    def __init__(self, endpoint: str, message: str):
        super().__init__(message)
        self.endpoint = endpoint


class MalformedEndpoint(ProbeError):
    """端点格式不是有效的 host:port"""

    def __init__(self, endpoint: str, reason: str = ""):
        message = (
            "endpoint must be the DNS hostname or IP address + ':' + port, "
            f"was {endpoint!r}"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(endpoint, message)
        self.reason = reason


class HandshakeFailed(ProbeError):
    """TCP连接、TLS握手失败或超时"""

    def __init__(self, endpoint: str, cause: BaseException):
        super().__init__(endpoint, f"server doesn't support SSL certificate err: {cause}")
        self.cause = cause


class InputSourceUnavailable(Exception):
    """端点列表无法打开或读取（致命错误）"""

    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"unable to read endpoint list {path!r}: {cause}")
        self.path = path
        self.cause = cause
