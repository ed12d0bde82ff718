"""HeartbeatSource Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .child import (
    ChildResource,
    Container,
    DeploymentCondition,
    DeploymentSpec,
    DeploymentStatus,
    EnvVar,
    PodSpec,
    PodTemplateSpec,
    deployment_is_available,
)
from .condition import Condition
from .enums import (
    DEPENDENT_CONDITIONS,
    ChildAction,
    ChildKind,
    ConditionStatus,
    ConditionType,
    EventSeverity,
)
from .events import ReconcileResult, ReconcilerEvent
from .eventtype import EventTypeKey, EventTypeRecord, EventTypeSpec, event_type_key
from .meta import (
    KubeModel,
    ObjectMeta,
    OwnerReference,
    get_controller_of,
    is_controlled_by,
    new_controller_ref,
)
from .source import (
    API_VERSION,
    GROUP,
    KIND,
    PLURAL,
    VERSION,
    CloudEventAttributes,
    CloudEventOverrides,
    Destination,
    HeartbeatSource,
    HeartbeatSourceSpec,
    HeartbeatSourceStatus,
    KReference,
    parse_duration,
)

__all__ = [
    # 枚举
    "ConditionType",
    "ConditionStatus",
    "ChildAction",
    "ChildKind",
    "EventSeverity",
    "DEPENDENT_CONDITIONS",
    # 元数据
    "KubeModel",
    "ObjectMeta",
    "OwnerReference",
    "new_controller_ref",
    "get_controller_of",
    "is_controlled_by",
    # 父资源
    "API_VERSION",
    "GROUP",
    "VERSION",
    "KIND",
    "PLURAL",
    "HeartbeatSource",
    "HeartbeatSourceSpec",
    "HeartbeatSourceStatus",
    "Destination",
    "KReference",
    "CloudEventOverrides",
    "CloudEventAttributes",
    "Condition",
    "parse_duration",
    # 子资源
    "ChildResource",
    "DeploymentSpec",
    "DeploymentStatus",
    "DeploymentCondition",
    "PodTemplateSpec",
    "PodSpec",
    "Container",
    "EnvVar",
    "deployment_is_available",
    # EventType
    "EventTypeRecord",
    "EventTypeSpec",
    "EventTypeKey",
    "event_type_key",
    # 事件
    "ReconcilerEvent",
    "ReconcileResult",
]
