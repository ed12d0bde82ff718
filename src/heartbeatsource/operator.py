"""kopf 宿主适配层

把 HeartbeatSource 的 create/update/resume 事件以及周期性 timer 都路由到
同一个 Reconciler.reconcile；调和结果映射为：
- status 写回 patch.status
- 事件经 kopf.event 发布（可关闭）
- 可重试错误 -> kopf.TemporaryError(delay)，终态错误 -> kopf.PermanentError

handler 本身保持很薄，所有决策都在 reconciler 内完成。
"""

import logging
from typing import Any

import kopf
import structlog
from kubernetes import config as kube_config

from .config import (
    ControllerConfig,
    load_controller_config,
    load_observability_config,
    load_resync_interval,
)
from .exceptions import ConfigError
from .logging_config import setup_logging
from .models.events import ReconcileResult
from .models.source import GROUP, PLURAL, VERSION, HeartbeatSource
from .reconciler import Reconciler
from .store.kube import KubeDeploymentStore, KubeEventTypeStore, KubeURIResolver

log = structlog.get_logger()

RESYNC_INTERVAL_S = load_resync_interval()


def configure_kube_client() -> None:
    """优先集群内配置，失败时回退到 kubeconfig"""
    try:
        kube_config.load_incluster_config()
        log.info("kube_client_configured", mode="incluster")
    except kube_config.ConfigException:
        try:
            kube_config.load_kube_config()
        except kube_config.ConfigException as exc:
            raise kopf.PermanentError(f"could not configure kubernetes client: {exc}") from exc
        log.info("kube_client_configured", mode="kubeconfig")


def build_reconciler(config: ControllerConfig) -> Reconciler:
    return Reconciler(
        receive_adapter_image=config.receive_adapter_image,
        deployments=KubeDeploymentStore(),
        event_types=KubeEventTypeStore(),
        sink_resolver=KubeURIResolver(),
        config_accessor=load_observability_config(),
    )


@kopf.on.startup()
async def on_startup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **_: Any
) -> None:
    setup_logging()
    try:
        config = load_controller_config()
    except ConfigError as exc:
        raise kopf.PermanentError(str(exc)) from exc

    configure_kube_client()

    memo.config = config
    memo.reconciler = build_reconciler(config)

    # 事件由 reconciler 结果显式发布，kopf 自身只转发警告以上的日志
    settings.posting.level = logging.WARNING
    settings.posting.enabled = config.posting_enabled

    log.info(
        "operator_started",
        image=config.receive_adapter_image,
        namespace=config.namespace or "*",
        reconcile_timeout_s=config.reconcile_timeout_s,
        resync_interval_s=RESYNC_INTERVAL_S,
    )


def apply_result(
    body: kopf.Body,
    patch: kopf.Patch,
    source: HeartbeatSource,
    result: ReconcileResult,
    config: ControllerConfig,
) -> None:
    """把一次调和的结果交给 kopf

    Raises:
        kopf.TemporaryError: 可重试错误，按 requeue_delay_s 退避
        kopf.PermanentError: 终态错误，等待下一次 spec 变更
    """
    patch.status.update(source.status.owned_body())

    if config.posting_enabled and result.event is not None:
        kopf.event(
            body,
            type=result.event.severity.value,
            reason=result.event.reason,
            message=result.event.message,
        )

    if result.error is None:
        return
    if result.requeue:
        raise kopf.TemporaryError(str(result.error), delay=config.requeue_delay_s)
    raise kopf.PermanentError(str(result.error))


async def reconcile_body(body: kopf.Body, patch: kopf.Patch, memo: kopf.Memo) -> None:
    source = HeartbeatSource.model_validate(dict(body))
    source.set_defaults()

    config: ControllerConfig = memo.config
    reconciler: Reconciler = memo.reconciler
    result = await reconciler.reconcile(source, timeout_s=config.reconcile_timeout_s)
    apply_result(body, patch, source, result, config)


@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
@kopf.on.resume(GROUP, VERSION, PLURAL)
async def reconcile_source(
    body: kopf.Body, patch: kopf.Patch, memo: kopf.Memo, **_: Any
) -> None:
    await reconcile_body(body, patch, memo)


@kopf.timer(GROUP, VERSION, PLURAL, interval=RESYNC_INTERVAL_S, initial_delay=RESYNC_INTERVAL_S)
async def resync_source(
    body: kopf.Body, patch: kopf.Patch, memo: kopf.Memo, **_: Any
) -> None:
    """周期性全量调和，收敛子资源被外部改动或删除的情况"""
    await reconcile_body(body, patch, memo)
