"""Sync 异常体系

所有远端失败都以 RemoteError 子类抛出，
由 SyncReconciler 在边界处捕获并记录，不会传播到 TaskStore 调用方。
"""


class RemoteError(Exception):
    """远端存储基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过稍后重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class RemoteUnreachableError(RemoteError):
    """远端不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, base_url: str, original_error: Exception) -> None:
        """
        Args:
            base_url: 尝试连接的远端地址
            original_error: 原始异常
        """
        super().__init__(
            f"远端存储不可达: {base_url} -- {original_error}",
            recoverable=True,
        )
        self.base_url = base_url
        self.original_error = original_error


class RemoteAuthError(RemoteError):
    """远端拒绝访问（401/403）"""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(
            f"远端存储拒绝访问: HTTP {status_code} {detail}".rstrip(),
            recoverable=False,
        )
        self.status_code = status_code


class RemoteDecodeError(RemoteError):
    """远端返回的数据无法解析为领域模型"""

    def __init__(self, message: str = "远端数据解析失败") -> None:
        super().__init__(message, recoverable=False)
