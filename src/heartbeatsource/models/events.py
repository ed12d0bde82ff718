"""调和事件与调和结果

事件是 (severity, reason, message) 三元组，仅用于审计与可观测，
不属于正确性契约。ReconcileResult 是每次调和的纯结果值，
重试由宿主调度器根据 requeue 决定，核心从不 sleep 或循环等待。
"""

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ReconcilerError
from .enums import EventSeverity


class ReconcilerEvent(BaseModel):
    """面向人的调和事件"""

    severity: EventSeverity = Field(default=EventSeverity.NORMAL)
    reason: str = Field(description="CamelCase 原因")
    message: str = Field(default="")

    @classmethod
    def normal(cls, reason: str, message: str) -> "ReconcilerEvent":
        return cls(severity=EventSeverity.NORMAL, reason=reason, message=message)

    @classmethod
    def warning(cls, reason: str, message: str) -> "ReconcilerEvent":
        return cls(severity=EventSeverity.WARNING, reason=reason, message=message)


def reconciled_normal(namespace: str, name: str) -> ReconcilerEvent:
    return ReconcilerEvent.normal(
        "HeartbeatSourceReconciled",
        f'HeartbeatSource reconciled: "{namespace}/{name}"',
    )


def deployment_created(namespace: str, name: str) -> ReconcilerEvent:
    return ReconcilerEvent.normal(
        "DeploymentCreated",
        f'created deployment: "{namespace}/{name}"',
    )


def deployment_updated(namespace: str, name: str) -> ReconcilerEvent:
    return ReconcilerEvent.normal(
        "DeploymentUpdated",
        f'updated deployment: "{namespace}/{name}"',
    )


def deployment_failed(namespace: str, name: str, error: Exception) -> ReconcilerEvent:
    return ReconcilerEvent.warning(
        "DeploymentFailed",
        f'failed to reconcile deployment: "{namespace}/{name}", {error}',
    )


def event_types_updated(namespace: str, name: str, created: int, deleted: int) -> ReconcilerEvent:
    return ReconcilerEvent.normal(
        "EventTypesUpdated",
        f'updated event types of "{namespace}/{name}": {created} created, {deleted} deleted',
    )


def event_types_failed(namespace: str, name: str, error: Exception) -> ReconcilerEvent:
    return ReconcilerEvent.warning(
        "EventTypesReconcileFailed",
        f'failed to reconcile event types of "{namespace}/{name}", {error}',
    )


class ReconcileResult(BaseModel):
    """一次调和的结果：事件 + 可选错误"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    event: ReconcilerEvent | None = None
    error: ReconcilerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def requeue(self) -> bool:
        """是否需要宿主调度器退避重试"""
        return self.error is not None and self.error.retriable
