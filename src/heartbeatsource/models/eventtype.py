"""EventType 记录模型

集合语义：同一父资源拥有的记录集合必须与期望集合完全一致；
记录只创建或删除，不做原地修改（key 变化 = 删旧 + 建新）。
"""

from pydantic import Field

from .meta import KubeModel, ObjectMeta

EVENT_TYPE_API_VERSION = "eventing.knative.dev/v1beta1"
EVENT_TYPE_KIND = "EventType"

# (type, source, schema, broker)
EventTypeKey = tuple[str, str, str, str]


class EventTypeSpec(KubeModel):
    """EventType 声明"""

    type: str = Field(description="CloudEvent type")
    source: str = Field(default="", description="CloudEvent source")
    schema_uri: str = Field(default="", alias="schema", description="数据 schema URI")
    broker: str = Field(default="", description="所属 Broker 名称")
    description: str = Field(default="")


class EventTypeRecord(KubeModel):
    """集群中的 EventType 对象"""

    api_version: str = Field(default=EVENT_TYPE_API_VERSION)
    kind: str = Field(default=EVENT_TYPE_KIND)
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: EventTypeSpec

    @property
    def key(self) -> EventTypeKey:
        return event_type_key(self)


def event_type_key(record: EventTypeRecord) -> EventTypeKey:
    """业务复合键"""
    spec = record.spec
    return (spec.type, spec.source, spec.schema_uri, spec.broker)
