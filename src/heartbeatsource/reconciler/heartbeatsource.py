"""HeartbeatSource 调和编排器

单次调用的流程（跨调用无状态，只读取 status 中已有的条件）：
1. 初始化缺失的条件为 Unknown
2. sink 缺失 -> SinkProvided=False(SinkMissing)，终态错误
3. 补全 ref 命名空间并解析 sink；NotFound -> SinkProvided=False(NotFound)，可重试
4. 构造期望 Deployment 并调和；把可用性投影到 Deployed，所有权冲突时 Deployed=False
5. 调和 EventType 集合（先删后建）-> EventTypesPropagated
6. 返回事件；无论走哪个分支，返回前都重新推导 Ready

终态 / 可重试的判定只在这里发生；每个决定都只依赖 (期望, 本次观测)。
"""

import asyncio
from collections.abc import Callable

import structlog

from ..conditions import Clock, SourceConditions
from ..exceptions import (
    OwnershipConflictError,
    ReconcilerError,
    SinkNotFoundError,
    SpecValidationError,
    StoreError,
)
from ..models.child import ChildResource, deployment_is_available
from ..models.enums import ChildAction
from ..models.events import (
    ReconcileResult,
    ReconcilerEvent,
    deployment_created,
    deployment_failed,
    deployment_updated,
    event_types_failed,
    event_types_updated,
    reconciled_normal,
)
from ..models.source import HeartbeatSource
from ..resources import (
    ReceiveAdapterArgs,
    labels,
    make_ce_attributes,
    make_event_types,
    make_receive_adapter,
)
from ..store.protocols import ConfigAccessor, DeploymentStore, EventTypeStore, SinkResolver
from .deployment import DeploymentReconciler
from .eventtypes import EventTypeReconciler
from .sink import SinkBinding, resolve_sink

log = structlog.get_logger()

AvailabilityProjection = Callable[[ChildResource], bool]


class Reconciler:
    """HeartbeatSource 调和器

    所有集群访问都经由构造时注入的协作者，不缓存任何跨调用状态，
    可以对不同资源并发调用，也能容忍对同一资源的重复调用。
    """

    def __init__(
        self,
        *,
        receive_adapter_image: str,
        deployments: DeploymentStore,
        event_types: EventTypeStore,
        sink_resolver: SinkResolver,
        config_accessor: ConfigAccessor,
        is_available: AvailabilityProjection = deployment_is_available,
        clock: Clock | None = None,
    ) -> None:
        self.receive_adapter_image = receive_adapter_image
        self._deployments = DeploymentReconciler(deployments)
        self._event_types = EventTypeReconciler(event_types)
        self._sink_resolver = sink_resolver
        self._config_accessor = config_accessor
        self._is_available = is_available
        self._clock = clock

    async def reconcile(
        self,
        source: HeartbeatSource,
        timeout_s: float | None = None,
    ) -> ReconcileResult:
        """带截止时间的调和；超时视为可重试错误

        已提交到存储的单次操作各自原子，超时不回滚。
        """
        try:
            async with asyncio.timeout(timeout_s):
                return await self.reconcile_kind(source)
        except TimeoutError:
            error = ReconcilerError(
                f"reconcile did not finish within {timeout_s}s",
                retriable=True,
                reason="DeadlineExceeded",
            )
            SourceConditions(source.status, clock=self._clock).refresh_ready()
            return self._failed(source, error)

    async def reconcile_kind(self, source: HeartbeatSource) -> ReconcileResult:
        """调和一个 HeartbeatSource，就地更新 source.status"""
        conditions = SourceConditions(source.status, clock=self._clock)
        conditions.initialize_conditions()

        result = await self._reconcile(source, conditions)

        source.status.observed_generation = source.metadata.generation or 0
        conditions.refresh_ready()
        log.debug(
            "heartbeat_source_reconciled",
            namespace=source.metadata.namespace,
            name=source.metadata.name,
            ready=conditions.is_ready(),
            requeue=result.requeue,
        )
        return result

    async def _reconcile(
        self,
        source: HeartbeatSource,
        conditions: SourceConditions,
    ) -> ReconcileResult:
        meta = source.metadata

        # sink
        if source.spec.sink is None:
            conditions.mark_no_sink("SinkMissing", "spec.sink missing")
            return self._failed(
                source, SpecValidationError("spec.sink missing", reason="SinkMissing")
            )

        try:
            sink_uri = await resolve_sink(self._sink_resolver, source.spec.sink, meta)
        except SinkNotFoundError as e:
            conditions.mark_no_sink("NotFound", str(e))
            return self._failed(source, e)
        except ReconcilerError as e:
            conditions.mark_no_sink(e.reason, str(e))
            return self._failed(source, e)
        conditions.mark_sink(sink_uri)

        # 子 Deployment
        expected = make_receive_adapter(
            ReceiveAdapterArgs(
                source=source,
                image=self.receive_adapter_image,
                labels=labels(meta.name),
                event_source=source.event_source,
                additional_envs=self._config_accessor.to_env_vars(),
            )
        )
        binding = SinkBinding.for_source(source, sink_uri)
        try:
            outcome = await self._deployments.reconcile_deployment(source, binding, expected)
        except OwnershipConflictError as e:
            # 同名对象已不属于本资源，之前观测到的可用性不再成立
            conditions.mark_not_deployed(e.reason, str(e))
            return self._failed(source, e)
        except StoreError as e:
            return self._failed(source, e, deployment_failed(meta.namespace, expected.name, e))
        conditions.propagate_deployment_availability(
            outcome.record, self._is_available(outcome.record)
        )

        # EventType 集合
        source.status.ce_attributes = make_ce_attributes(source)
        try:
            changes = await self._event_types.reconcile_event_types(
                source, make_event_types(source)
            )
        except ReconcilerError as e:
            conditions.mark_no_event_types(e.reason, str(e))
            return self._failed(source, e, event_types_failed(meta.namespace, meta.name, e))
        conditions.mark_event_types()

        if outcome.action == ChildAction.CREATED:
            event = deployment_created(outcome.record.namespace, outcome.record.name)
        elif outcome.action == ChildAction.UPDATED:
            event = deployment_updated(outcome.record.namespace, outcome.record.name)
        elif changes.mutated:
            event = event_types_updated(
                meta.namespace, meta.name, len(changes.created), len(changes.deleted)
            )
        else:
            event = reconciled_normal(meta.namespace, meta.name)
        return ReconcileResult(event=event)

    def _failed(
        self,
        source: HeartbeatSource,
        error: ReconcilerError,
        event: ReconcilerEvent | None = None,
    ) -> ReconcileResult:
        log_method = log.warning if error.retriable else log.error
        log_method(
            "heartbeat_source_reconcile_failed",
            namespace=source.metadata.namespace,
            name=source.metadata.name,
            reason=error.reason,
            retriable=error.retriable,
            error=str(error),
        )
        return ReconcileResult(
            event=event or ReconcilerEvent.warning(error.reason, str(error)),
            error=error,
        )
