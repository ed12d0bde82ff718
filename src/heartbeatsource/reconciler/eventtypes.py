"""EventType 集合调和

按复合键 (type, source, schema, broker) 比较当前拥有的记录与期望集合，
计算待创建 / 待删除两个列表；payload 不同的同键记录以 删除旧 + 创建新 替换。
执行时先删除后创建，中途失败由下一次调和基于残留状态重新计算。
"""

import structlog
from pydantic import BaseModel, Field

from ..models.eventtype import EventTypeKey, EventTypeRecord, event_type_key
from ..models.meta import is_controlled_by
from ..models.source import HeartbeatSource
from ..resources.names import labels
from ..store.protocols import EventTypeStore

log = structlog.get_logger()


class EventTypeChanges(BaseModel):
    """一次集合调和实际执行的变更"""

    created: list[EventTypeRecord] = Field(default_factory=list)
    deleted: list[EventTypeRecord] = Field(default_factory=list)

    @property
    def mutated(self) -> bool:
        return bool(self.created or self.deleted)


def _as_map(records: list[EventTypeRecord]) -> dict[EventTypeKey, EventTypeRecord]:
    return {event_type_key(record): record for record in records}


def compute_diff(
    current: list[EventTypeRecord],
    expected: list[EventTypeRecord],
) -> tuple[list[EventTypeRecord], list[EventTypeRecord]]:
    """计算 (to_create, to_delete)

    遍历列表而不是 map，相同输入得到相同顺序。
    """
    to_create: list[EventTypeRecord] = []
    to_delete: list[EventTypeRecord] = []
    current_map = _as_map(current)
    expected_map = _as_map(expected)

    for record in expected:
        existing = current_map.get(event_type_key(record))
        if existing is None:
            to_create.append(record)
        elif existing.spec.model_dump() != record.spec.model_dump():
            to_delete.append(existing)
            to_create.append(record)

    # sink 从 Broker 改为其他类型、或 Broker 改名时，多余的记录要删除
    for record in current:
        if event_type_key(record) not in expected_map:
            to_delete.append(record)
    return to_create, to_delete


class EventTypeReconciler:
    """EventType 集合调和器"""

    def __init__(self, store: EventTypeStore) -> None:
        self._store = store

    async def get_owned(self, owner: HeartbeatSource) -> list[EventTypeRecord]:
        """列出由 owner 控制的记录（label 过滤 + owner 引用校验）"""
        records = await self._store.list_event_types(
            owner.metadata.namespace, labels(owner.metadata.name)
        )
        return [r for r in records if is_controlled_by(r.metadata, owner.metadata)]

    async def reconcile_event_types(
        self,
        owner: HeartbeatSource,
        expected: list[EventTypeRecord],
    ) -> EventTypeChanges:
        """让 owner 拥有的 EventType 集合收敛到 expected

        Raises:
            StoreError: 存储读写失败（可重试）
        """
        current = await self.get_owned(owner)
        to_create, to_delete = compute_diff(current, expected)
        changes = EventTypeChanges()

        for record in to_delete:
            await self._store.delete_event_type(record.metadata.namespace, record.metadata.name)
            log.info(
                "event_type_deleted",
                namespace=record.metadata.namespace,
                name=record.metadata.name,
                event_type=record.spec.type,
            )
            changes.deleted.append(record)

        for record in to_create:
            created = await self._store.create_event_type(record)
            log.info(
                "event_type_created",
                namespace=created.metadata.namespace,
                name=created.metadata.name,
                event_type=created.spec.type,
            )
            changes.created.append(created)

        return changes
