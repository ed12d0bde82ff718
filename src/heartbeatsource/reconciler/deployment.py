"""子资源 diff 引擎

给定期望子 Deployment 与观测值，决定 创建 / 原地更新 / 不变：
- 观测不存在：按期望创建（补齐 owner 引用并投影 sink）
- 观测存在但不属于当前父资源：OwnershipConflictError，绝不修改
- 否则做字段级合并：只覆盖同名容器的 image、补齐缺失容器、投影 sink 保留变量，
  合并结果与观测深度比较，不同才更新

字段级合并不会和其他控制器或人工修改的无关字段互相覆盖，
同时保证本控制器负责的字段总能收敛。
"""

import structlog
from pydantic import BaseModel

from ..exceptions import OwnershipConflictError
from ..models.child import ChildResource, PodSpec
from ..models.enums import ChildAction
from ..models.meta import get_controller_of, is_controlled_by, new_controller_ref
from ..models.source import HeartbeatSource
from ..store.protocols import DeploymentStore
from .sink import SinkBinding

log = structlog.get_logger()


class ChildOutcome(BaseModel):
    """子资源调和结果"""

    record: ChildResource
    action: ChildAction


def sync_image(expected: PodSpec, now: PodSpec) -> None:
    """同名容器只覆盖 image；期望中有而观测中没有的容器追加到末尾"""
    for expected_container in expected.containers:
        container = now.get_container(expected_container.name)
        if container is None:
            now.containers.append(expected_container.model_copy(deep=True))
            continue
        if container.image != expected_container.image:
            container.image = expected_container.image


def pod_spec_sync(
    binding: SinkBinding,
    expected: PodSpec,
    observed: PodSpec,
) -> tuple[PodSpec, bool]:
    """计算合并后的 pod spec

    Returns:
        (合并结果, 是否需要更新)，观测值本身不被修改
    """
    merged = observed.model_copy(deep=True)
    sync_image(expected, merged)
    binding.project(merged)
    changed = merged.model_dump(by_alias=True) != observed.model_dump(by_alias=True)
    return merged, changed


class DeploymentReconciler:
    """子 Deployment 调和器"""

    def __init__(self, store: DeploymentStore) -> None:
        self._store = store

    async def reconcile_deployment(
        self,
        owner: HeartbeatSource,
        binding: SinkBinding,
        expected: ChildResource,
    ) -> ChildOutcome:
        """调和单个子 Deployment

        Raises:
            OwnershipConflictError: 同名对象不属于 owner（终态）
            StoreError: 存储读写失败（可重试）
        """
        namespace = owner.metadata.namespace
        observed = await self._store.get_deployment(namespace, expected.name)

        if observed is None:
            desired = expected.model_copy(deep=True)
            desired.metadata.namespace = namespace
            if get_controller_of(desired.metadata) is None:
                desired.metadata.owner_references.append(
                    new_controller_ref(owner.api_version, owner.kind, owner.metadata)
                )
            binding.project(desired.pod_spec)
            created = await self._store.create_deployment(desired)
            log.info("deployment_created", namespace=namespace, name=created.name)
            return ChildOutcome(record=created, action=ChildAction.CREATED)

        if not is_controlled_by(observed.metadata, owner.metadata):
            log.warning(
                "deployment_ownership_conflict",
                namespace=namespace,
                name=observed.name,
                owner=owner.metadata.name,
            )
            raise OwnershipConflictError(
                observed.kind.value, observed.name, owner.kind, owner.metadata.name
            )

        merged, changed = pod_spec_sync(binding, expected.pod_spec, observed.pod_spec)
        if not changed:
            log.debug("deployment_reused", namespace=namespace, name=observed.name)
            return ChildOutcome(record=observed, action=ChildAction.NOOP)

        desired = observed.model_copy(deep=True)
        desired.spec.template.spec = merged
        updated = await self._store.update_deployment(desired)
        log.info("deployment_updated", namespace=namespace, name=updated.name)
        return ChildOutcome(record=updated, action=ChildAction.UPDATED)
