"""条件状态机

维护 SinkProvided / Deployed / EventTypesPropagated 三个依赖条件，
并在每次变更后重新推导聚合条件 Ready：
- 任一依赖条件为 False -> Ready=False，复制该条件的 reason/message
- 全部为 True -> Ready=True
- 其余情况（含条件缺失）-> Ready=Unknown

lastTransitionTime 只在 status 或 reason 变化时刷新，避免无意义的状态更新。
持久化由调用方负责，这里只修改内存中的 status。
"""

from collections.abc import Callable
from datetime import UTC, datetime

from .models.child import ChildResource
from .models.condition import Condition
from .models.enums import DEPENDENT_CONDITIONS, ConditionStatus, ConditionType
from .models.source import HeartbeatSourceStatus

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConditionManager:
    """通用条件集合管理器"""

    def __init__(
        self,
        status: HeartbeatSourceStatus,
        dependents: tuple[ConditionType, ...] = DEPENDENT_CONDITIONS,
        clock: Clock | None = None,
    ) -> None:
        self.status = status
        self._dependents = dependents
        self._clock = clock or _utcnow

    def get_condition(self, condition_type: ConditionType) -> Condition | None:
        """返回指定类型的条件，不存在返回 None"""
        for condition in self.status.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def initialize_conditions(self) -> None:
        """把尚不存在的条件初始化为 Unknown（首次见到的资源）"""
        for condition_type in (ConditionType.READY, *self._dependents):
            if self.get_condition(condition_type) is None:
                self._set(Condition(type=condition_type, status=ConditionStatus.UNKNOWN))
        self.refresh_ready()

    def set_condition(
        self,
        condition_type: ConditionType,
        status: ConditionStatus,
        reason: str = "",
        message: str = "",
    ) -> None:
        """设置依赖条件并重新推导 Ready

        Raises:
            ValueError: 试图直接设置 Ready，或条件类型不受管理
        """
        if condition_type == ConditionType.READY:
            raise ValueError("Ready is derived from the dependent conditions")
        if condition_type not in self._dependents:
            raise ValueError(f"unmanaged condition type: {condition_type}")
        self._set(
            Condition(type=condition_type, status=status, reason=reason, message=message)
        )
        self.refresh_ready()

    def mark_true(self, condition_type: ConditionType) -> None:
        self.set_condition(condition_type, ConditionStatus.TRUE)

    def mark_false(self, condition_type: ConditionType, reason: str, message: str = "") -> None:
        self.set_condition(condition_type, ConditionStatus.FALSE, reason, message)

    def mark_unknown(self, condition_type: ConditionType, reason: str, message: str = "") -> None:
        self.set_condition(condition_type, ConditionStatus.UNKNOWN, reason, message)

    def is_ready(self) -> bool:
        ready = self.get_condition(ConditionType.READY)
        return ready is not None and ready.is_true()

    def refresh_ready(self) -> None:
        """按依赖条件重新推导 Ready"""
        conditions = [self.get_condition(t) for t in self._dependents]

        for condition in conditions:
            if condition is not None and condition.is_false():
                self._set_ready(ConditionStatus.FALSE, condition.reason, condition.message)
                return

        for condition in conditions:
            if condition is None:
                self._set_ready(ConditionStatus.UNKNOWN, "", "")
                return
            if condition.is_unknown():
                self._set_ready(ConditionStatus.UNKNOWN, condition.reason, condition.message)
                return

        self._set_ready(ConditionStatus.TRUE, "", "")

    def _set_ready(self, status: ConditionStatus, reason: str, message: str) -> None:
        self._set(
            Condition(type=ConditionType.READY, status=status, reason=reason, message=message)
        )

    def _set(self, new: Condition) -> None:
        existing = self.get_condition(new.type)
        if existing is not None and existing.status == new.status and existing.reason == new.reason:
            # 同一状态内只刷新 message，不改 lastTransitionTime
            existing.message = new.message
            return

        new.last_transition_time = self._clock()
        conditions = [c for c in self.status.conditions if c.type != new.type]
        conditions.append(new)
        conditions.sort(key=lambda c: c.type.value)
        self.status.conditions = conditions


class SourceConditions(ConditionManager):
    """HeartbeatSource 专用条件流转"""

    def set_condition(
        self,
        condition_type: ConditionType,
        status: ConditionStatus,
        reason: str = "",
        message: str = "",
    ) -> None:
        if (
            condition_type == ConditionType.SINK_PROVIDED
            and status == ConditionStatus.TRUE
            and not self.status.sink_uri
        ):
            raise ValueError("SinkProvided cannot be True with an empty sink URI")
        super().set_condition(condition_type, status, reason, message)

    def mark_sink(self, uri: str | None) -> None:
        """记录解析出的 sink；空 URI 只能标记为 Unknown"""
        self.status.sink_uri = uri or None
        if uri:
            self.mark_true(ConditionType.SINK_PROVIDED)
        else:
            self.mark_unknown(
                ConditionType.SINK_PROVIDED, "SinkEmpty", "Sink has resolved to empty."
            )

    def mark_no_sink(self, reason: str, message: str = "") -> None:
        self.mark_false(ConditionType.SINK_PROVIDED, reason, message)

    def propagate_deployment_availability(self, child: ChildResource, available: bool) -> None:
        """把子 Deployment 的可用性投影到 Deployed 条件"""
        if available:
            self.mark_true(ConditionType.DEPLOYED)
        elif not child.rollout_reported():
            self.mark_unknown(
                ConditionType.DEPLOYED,
                "DeploymentPending",
                f"The Deployment '{child.name}' has not reported its rollout status yet.",
            )
        else:
            self.mark_false(
                ConditionType.DEPLOYED,
                "DeploymentUnavailable",
                f"The Deployment '{child.name}' is unavailable.",
            )

    def mark_not_deployed(self, reason: str, message: str = "") -> None:
        self.mark_false(ConditionType.DEPLOYED, reason, message)

    def mark_event_types(self) -> None:
        self.mark_true(ConditionType.EVENT_TYPES_PROPAGATED)

    def mark_no_event_types(self, reason: str, message: str = "") -> None:
        self.mark_false(ConditionType.EVENT_TYPES_PROPAGATED, reason, message)
