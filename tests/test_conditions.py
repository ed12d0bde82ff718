"""条件状态机单元测试

测试内容：
1. 初始化与 Ready 推导（False 优先，其次 Unknown，全部 True 才 Ready）
2. lastTransitionTime 只在 status/reason 变化时刷新
3. SinkProvided / Deployed 的领域流转
"""

import pytest
from heartbeatsource.conditions import ConditionManager, SourceConditions
from heartbeatsource.models import (
    ChildResource,
    ConditionStatus,
    ConditionType,
    DeploymentCondition,
    DeploymentStatus,
    HeartbeatSourceStatus,
    ObjectMeta,
)


def _ready(manager: ConditionManager):
    return manager.get_condition(ConditionType.READY)


def _child(status: DeploymentStatus | None) -> ChildResource:
    return ChildResource(metadata=ObjectMeta(name="adapter", namespace="default"), status=status)


class TestReadyDerivation:
    """Ready 推导"""

    def test_initialize_all_unknown(self, clock):
        """首次初始化：四个条件全部 Unknown，按类型排序"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.initialize_conditions()

        types = [c.type for c in manager.status.conditions]
        assert types == [
            ConditionType.DEPLOYED,
            ConditionType.EVENT_TYPES_PROPAGATED,
            ConditionType.READY,
            ConditionType.SINK_PROVIDED,
        ]
        assert all(c.is_unknown() for c in manager.status.conditions)
        assert all(c.last_transition_time == clock.now for c in manager.status.conditions)
        assert manager.is_ready() is False

    def test_initialize_keeps_existing(self, clock):
        """已有条件不被初始化覆盖"""
        status = HeartbeatSourceStatus(sink_uri="http://sink.example/")
        manager = SourceConditions(status, clock=clock)
        manager.mark_true(ConditionType.SINK_PROVIDED)

        manager.initialize_conditions()
        assert manager.get_condition(ConditionType.SINK_PROVIDED).is_true()

    def test_all_true_is_ready(self, clock):
        """全部依赖条件为 True 时 Ready=True"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.initialize_conditions()
        manager.mark_sink("http://sink.example/")
        manager.mark_true(ConditionType.DEPLOYED)
        manager.mark_event_types()

        assert manager.is_ready() is True
        assert _ready(manager).reason == ""

    def test_false_wins_over_unknown(self, clock):
        """任一 False 时 Ready=False，即使排在前面的条件为 Unknown"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.initialize_conditions()
        manager.mark_no_event_types("Forbidden", "eventtypes is forbidden")

        ready = _ready(manager)
        assert ready.status == ConditionStatus.FALSE
        assert ready.reason == "Forbidden"
        assert ready.message == "eventtypes is forbidden"

    def test_unknown_copies_first_unknown_reason(self, clock):
        """无 False 时取第一个 Unknown 条件的 reason"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.initialize_conditions()
        manager.mark_sink("http://sink.example/")
        manager.propagate_deployment_availability(_child(None), available=False)

        ready = _ready(manager)
        assert ready.status == ConditionStatus.UNKNOWN
        assert ready.reason == "DeploymentPending"

    def test_missing_dependent_is_unknown(self, clock):
        """依赖条件缺失时 Ready=Unknown"""
        manager = ConditionManager(HeartbeatSourceStatus(), clock=clock)
        manager.mark_true(ConditionType.SINK_PROVIDED)
        manager.mark_true(ConditionType.DEPLOYED)

        assert _ready(manager).status == ConditionStatus.UNKNOWN

    def test_cannot_set_ready_directly(self):
        """Ready 只能推导，不能直接设置"""
        manager = ConditionManager(HeartbeatSourceStatus())
        with pytest.raises(ValueError):
            manager.mark_true(ConditionType.READY)

    def test_unmanaged_type_rejected(self):
        """不在依赖集合中的条件类型被拒绝"""
        manager = ConditionManager(
            HeartbeatSourceStatus(),
            dependents=(ConditionType.SINK_PROVIDED,),
        )
        with pytest.raises(ValueError):
            manager.mark_true(ConditionType.DEPLOYED)


class TestTransitionTime:
    """lastTransitionTime 语义"""

    def test_same_status_and_reason_keeps_time(self, clock):
        """status 与 reason 不变时只更新 message"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.mark_no_sink("NotFound", "first")
        first = manager.get_condition(ConditionType.SINK_PROVIDED).last_transition_time

        clock.advance(30)
        manager.mark_no_sink("NotFound", "second")
        condition = manager.get_condition(ConditionType.SINK_PROVIDED)
        assert condition.last_transition_time == first
        assert condition.message == "second"

    def test_reason_change_updates_time(self, clock):
        """reason 变化视为一次流转"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.mark_no_sink("NotFound")
        clock.advance(30)
        manager.mark_no_sink("SinkMissing")

        condition = manager.get_condition(ConditionType.SINK_PROVIDED)
        assert condition.last_transition_time == clock.now

    def test_ready_time_stable_when_unchanged(self, clock):
        """Ready 推导结果不变时 Ready 的时间不变"""
        manager = SourceConditions(HeartbeatSourceStatus(), clock=clock)
        manager.initialize_conditions()
        before = _ready(manager).last_transition_time

        clock.advance(30)
        manager.refresh_ready()
        assert _ready(manager).last_transition_time == before


class TestSourceConditions:
    """HeartbeatSource 领域流转"""

    def test_sink_true_requires_uri(self):
        """sink URI 为空时不能标记 SinkProvided=True"""
        manager = SourceConditions(HeartbeatSourceStatus())
        with pytest.raises(ValueError):
            manager.mark_true(ConditionType.SINK_PROVIDED)

    def test_mark_sink_records_uri(self):
        """解析成功记录 sinkUri 并置 True"""
        manager = SourceConditions(HeartbeatSourceStatus())
        manager.mark_sink("http://sink.example/")

        assert manager.status.sink_uri == "http://sink.example/"
        assert manager.get_condition(ConditionType.SINK_PROVIDED).is_true()

    def test_mark_sink_empty_is_unknown(self):
        """解析为空 URI -> Unknown(SinkEmpty)"""
        manager = SourceConditions(HeartbeatSourceStatus(sink_uri="http://old.example/"))
        manager.mark_sink("")

        condition = manager.get_condition(ConditionType.SINK_PROVIDED)
        assert condition.status == ConditionStatus.UNKNOWN
        assert condition.reason == "SinkEmpty"
        assert condition.message == "Sink has resolved to empty."
        assert manager.status.sink_uri is None

    def test_deployment_available(self):
        """可用 -> Deployed=True"""
        manager = SourceConditions(HeartbeatSourceStatus())
        manager.propagate_deployment_availability(_child(None), available=True)
        assert manager.get_condition(ConditionType.DEPLOYED).is_true()

    def test_deployment_pending(self):
        """未上报 rollout 状态 -> Unknown(DeploymentPending)"""
        manager = SourceConditions(HeartbeatSourceStatus())
        manager.propagate_deployment_availability(_child(DeploymentStatus()), available=False)

        condition = manager.get_condition(ConditionType.DEPLOYED)
        assert condition.status == ConditionStatus.UNKNOWN
        assert condition.reason == "DeploymentPending"

    def test_deployment_unavailable(self):
        """已上报但不可用 -> False(DeploymentUnavailable)"""
        status = DeploymentStatus(
            conditions=[DeploymentCondition(type="Available", status="False")]
        )
        manager = SourceConditions(HeartbeatSourceStatus())
        manager.propagate_deployment_availability(_child(status), available=False)

        condition = manager.get_condition(ConditionType.DEPLOYED)
        assert condition.status == ConditionStatus.FALSE
        assert condition.reason == "DeploymentUnavailable"
        assert condition.message == "The Deployment 'adapter' is unavailable."
