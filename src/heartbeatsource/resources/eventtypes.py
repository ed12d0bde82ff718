"""EventType 期望集合构造

只有 sink 引用 Broker 时才声明 EventType；sink 从 Broker 改为其他类型时，
期望集合为空，已拥有的记录全部删除。
"""

import hashlib

from ..models.eventtype import EventTypeRecord, EventTypeSpec, event_type_key
from ..models.meta import ObjectMeta, new_controller_ref
from ..models.source import API_VERSION, KIND, CloudEventAttributes, HeartbeatSource
from .names import child_name, labels

HEARTBEAT_EVENT_TYPE = "dev.heartbeat.source.heartbeat"

# 本资源会发出的全部事件类型
HEARTBEAT_EVENT_TYPES: tuple[str, ...] = (HEARTBEAT_EVENT_TYPE,)

BROKER_KIND = "Broker"


def event_type_name(record: EventTypeRecord, parent: str) -> str:
    """由父名称和复合键生成确定性名称（key 变化即名称变化）"""
    digest = hashlib.sha256("_".join(event_type_key(record)).encode()).hexdigest()
    return child_name(f"{parent}-", digest[:16])


def make_event_types(source: HeartbeatSource) -> list[EventTypeRecord]:
    """按父资源 spec 推导期望的 EventType 列表（顺序稳定）"""
    sink = source.spec.sink
    if sink is None or sink.ref is None or sink.ref.kind != BROKER_KIND:
        return []

    owner_ref = new_controller_ref(API_VERSION, KIND, source.metadata)
    records: list[EventTypeRecord] = []
    for event_type in HEARTBEAT_EVENT_TYPES:
        record = EventTypeRecord(
            metadata=ObjectMeta(
                namespace=source.metadata.namespace,
                labels=labels(source.metadata.name),
                owner_references=[owner_ref],
            ),
            spec=EventTypeSpec(
                type=event_type,
                source=source.event_source,
                broker=sink.ref.name,
            ),
        )
        record.metadata.name = event_type_name(record, source.metadata.name)
        records.append(record)
    return records


def make_ce_attributes(source: HeartbeatSource) -> list[CloudEventAttributes]:
    """status.ceAttributes"""
    return [
        CloudEventAttributes(type=event_type, source=source.event_source)
        for event_type in HEARTBEAT_EVENT_TYPES
    ]
