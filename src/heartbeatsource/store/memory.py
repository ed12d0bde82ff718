"""内存版集群存储与 sink 解析器

用于 dry-run（plan 命令）与测试：语义与真实集群一致的部分包括
- 创建已存在对象报 AlreadyExists，更新时 resourceVersion 不一致报 Conflict
- 读写都返回深拷贝，调用方修改不会泄漏到存储
- actions 按顺序记录所有写操作
"""

import uuid
from itertools import count

from ..exceptions import SinkNotFoundError, StoreError
from ..models.child import ChildResource, DeploymentStatus
from ..models.eventtype import EventTypeRecord
from ..models.meta import ObjectMeta
from ..models.source import Destination
from .addressing import direct_uri, join_uri


def _matches(meta: ObjectMeta, selector: dict[str, str]) -> bool:
    return all(meta.labels.get(k) == v for k, v in selector.items())


class InMemoryCluster:
    """DeploymentStore + EventTypeStore 的内存实现"""

    def __init__(self) -> None:
        self._deployments: dict[tuple[str, str], ChildResource] = {}
        self._event_types: dict[tuple[str, str], EventTypeRecord] = {}
        self._versions = count(1)
        # (verb, kind, "namespace/name")
        self.actions: list[tuple[str, str, str]] = []

    def _stamp(self, meta: ObjectMeta) -> None:
        meta.resource_version = str(next(self._versions))
        if not meta.uid:
            meta.uid = str(uuid.uuid4())

    def _record(self, verb: str, kind: str, namespace: str, name: str) -> None:
        self.actions.append((verb, kind, f"{namespace}/{name}"))

    # ---- Deployment ----

    async def get_deployment(self, namespace: str, name: str) -> ChildResource | None:
        stored = self._deployments.get((namespace, name))
        return stored.model_copy(deep=True) if stored is not None else None

    async def create_deployment(self, deployment: ChildResource) -> ChildResource:
        key = (deployment.namespace, deployment.name)
        if key in self._deployments:
            raise StoreError(
                "create", "Deployment", deployment.name, "already exists", reason="AlreadyExists"
            )
        stored = deployment.model_copy(deep=True)
        self._stamp(stored.metadata)
        stored.metadata.generation = 1
        stored.status = DeploymentStatus()
        self._deployments[key] = stored
        self._record("create", "Deployment", *key)
        return stored.model_copy(deep=True)

    async def update_deployment(self, deployment: ChildResource) -> ChildResource:
        key = (deployment.namespace, deployment.name)
        existing = self._deployments.get(key)
        if existing is None:
            raise StoreError(
                "update", "Deployment", deployment.name, "not found", reason="NotFound"
            )
        if deployment.metadata.resource_version != existing.metadata.resource_version:
            raise StoreError(
                "update",
                "Deployment",
                deployment.name,
                "the object has been modified; please apply your changes to the latest version",
                reason="Conflict",
            )
        stored = deployment.model_copy(deep=True)
        stored.metadata.resource_version = str(next(self._versions))
        if stored.spec.model_dump() != existing.spec.model_dump():
            stored.metadata.generation = (existing.metadata.generation or 0) + 1
        # 更新主资源不会改动平台上报的 status
        stored.status = existing.status
        self._deployments[key] = stored
        self._record("update", "Deployment", *key)
        return stored.model_copy(deep=True)

    def put_deployment(self, deployment: ChildResource) -> ChildResource:
        """直接写入对象（模拟其他参与者创建的对象），不记录 action"""
        stored = deployment.model_copy(deep=True)
        self._stamp(stored.metadata)
        self._deployments[(stored.namespace, stored.name)] = stored
        return stored.model_copy(deep=True)

    def set_deployment_status(self, namespace: str, name: str, status: DeploymentStatus) -> None:
        """模拟平台上报 rollout 状态"""
        self._deployments[(namespace, name)].status = status.model_copy(deep=True)

    # ---- EventType ----

    async def list_event_types(
        self,
        namespace: str,
        selector: dict[str, str],
    ) -> list[EventTypeRecord]:
        return [
            r.model_copy(deep=True)
            for (ns, _), r in sorted(self._event_types.items())
            if ns == namespace and _matches(r.metadata, selector)
        ]

    async def create_event_type(self, record: EventTypeRecord) -> EventTypeRecord:
        key = (record.metadata.namespace, record.metadata.name)
        if key in self._event_types:
            raise StoreError(
                "create",
                "EventType",
                record.metadata.name,
                "already exists",
                reason="AlreadyExists",
            )
        stored = record.model_copy(deep=True)
        self._stamp(stored.metadata)
        self._event_types[key] = stored
        self._record("create", "EventType", *key)
        return stored.model_copy(deep=True)

    async def delete_event_type(self, namespace: str, name: str) -> None:
        if self._event_types.pop((namespace, name), None) is not None:
            self._record("delete", "EventType", namespace, name)


class InMemoryURIResolver:
    """按 (kind, namespace, name) 查表的 sink 解析器"""

    def __init__(self) -> None:
        self._addresses: dict[tuple[str, str, str], str] = {}

    def publish(self, kind: str, namespace: str, name: str, url: str) -> None:
        """模拟可寻址对象发布地址"""
        self._addresses[(kind, namespace, name)] = url

    def unpublish(self, kind: str, namespace: str, name: str) -> None:
        self._addresses.pop((kind, namespace, name), None)

    async def uri_from_destination(
        self,
        destination: Destination,
        requester: ObjectMeta,
    ) -> str | None:
        ref = destination.ref
        if ref is None:
            return direct_uri(destination)
        address = self._addresses.get((ref.kind, ref.namespace, ref.name))
        if address is None:
            raise SinkNotFoundError(
                f'failed to get ref {ref.kind} "{ref.namespace}/{ref.name}": not found'
            )
        return join_uri(address, destination.uri)
