"""控制器异常体系

下层组件只负责抛出结构化异常；是否重试、如何影响状态条件，
统一由调和编排器（Reconciler）决定。
"""


class ReconcilerError(Exception):
    """调和过程基础异常"""

    default_reason = "InternalError"

    def __init__(
        self,
        message: str,
        retriable: bool = True,
        reason: str | None = None,
    ) -> None:
        """
        Args:
            message: 错误描述
            retriable: 是否可通过重新入队恢复
            reason: 机器可读原因（CamelCase），写入条件和事件
        """
        super().__init__(message)
        self.retriable = retriable
        self.reason = reason or self.default_reason


class SpecValidationError(ReconcilerError):
    """期望 spec 非法或不完整

    终态错误：spec 变化前不会重试。
    """

    default_reason = "InvalidSpec"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message, retriable=False, reason=reason)


class DependencyUnresolvedError(ReconcilerError):
    """依赖尚未就绪（sink 未解析、子资源未到期望状态）"""

    default_reason = "DependencyUnresolved"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message, retriable=True, reason=reason)


class SinkNotFoundError(DependencyUnresolvedError):
    """引用的可寻址对象不存在或尚未发布地址"""

    default_reason = "NotFound"


class SinkMalformedError(ReconcilerError):
    """目的地格式非法（如缺少 ref 的相对 URI）"""

    default_reason = "SinkMalformed"

    def __init__(self, message: str) -> None:
        super().__init__(message, retriable=False)


class OwnershipConflictError(ReconcilerError):
    """已存在的子资源不属于当前父资源

    不更新、不删除、不接管。
    """

    default_reason = "OwnershipConflict"

    def __init__(self, kind: str, name: str, owner_kind: str, owner_name: str) -> None:
        super().__init__(
            f"{kind.lower()} {name!r} is not owned by {owner_kind} {owner_name!r}",
            retriable=False,
        )
        self.kind = kind
        self.name = name
        self.owner_kind = owner_kind
        self.owner_name = owner_name


class StoreError(ReconcilerError):
    """集群存储 I/O 失败（瞬时，可重试）"""

    default_reason = "StoreError"

    def __init__(
        self,
        operation: str,
        kind: str,
        name: str,
        original_error: Exception | str,
        reason: str | None = None,
    ) -> None:
        """
        Args:
            operation: get/create/update/list/delete
            kind: 对象 kind
            name: 对象名称（list 时为命名空间）
            original_error: 原始异常或描述
            reason: 底层原因，如 Conflict / AlreadyExists / Forbidden
        """
        super().__init__(
            f"failed to {operation} {kind} {name!r}: {original_error}",
            retriable=True,
            reason=reason,
        )
        self.operation = operation
        self.kind = kind
        self.name = name
        self.original_error = original_error


class ConfigError(Exception):
    """进程配置错误（启动期）"""
