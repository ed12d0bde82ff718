"""枚举定义 -- 状态条件、子资源动作、事件级别

包含 ConditionType / ConditionStatus 条件枚举、ChildAction 子资源调和动作、
ChildKind 子资源类型标签，以及 DEPENDENT_CONDITIONS 参与 Ready 聚合的条件集合。
"""

from enum import StrEnum


class ConditionType(StrEnum):
    """状态条件类型"""

    # 聚合条件，只能由其余条件推导，禁止直接设置
    READY = "Ready"

    SINK_PROVIDED = "SinkProvided"
    DEPLOYED = "Deployed"
    EVENT_TYPES_PROPAGATED = "EventTypesPropagated"


class ConditionStatus(StrEnum):
    """条件取值（三态）"""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


# 参与 Ready 聚合的条件，顺序决定 False/Unknown 时复制哪一个的 reason
DEPENDENT_CONDITIONS: tuple[ConditionType, ...] = (
    ConditionType.SINK_PROVIDED,
    ConditionType.DEPLOYED,
    ConditionType.EVENT_TYPES_PROPAGATED,
)


class ChildAction(StrEnum):
    """子资源调和结果动作"""

    CREATED = "Created"
    UPDATED = "Updated"
    NOOP = "NoOp"


class ChildKind(StrEnum):
    """子资源类型标签"""

    DEPLOYMENT = "Deployment"


class EventSeverity(StrEnum):
    """事件级别，对齐集群 Event 的 type 字段"""

    NORMAL = "Normal"
    WARNING = "Warning"
