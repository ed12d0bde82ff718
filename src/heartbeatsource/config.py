"""控制器配置 -- 从环境变量加载

ControllerConfig: 控制器自身的运行参数（worker 镜像、超时、重试间隔等）
ObservabilityConfig: 透传给 worker 的日志/指标/追踪配置（配置访问器）
"""

import os

import structlog
from pydantic import BaseModel, Field

from .exceptions import ConfigError
from .models.child import EnvVar

log = structlog.get_logger()


class ControllerConfig(BaseModel):
    """控制器配置

    环境变量:
        HEARTBEAT_SOURCE_RA_IMAGE: worker 镜像（必填）
        HEARTBEAT_SOURCE_NAMESPACE: 只监听该命名空间，空表示全集群
        HEARTBEAT_SOURCE_RECONCILE_TIMEOUT_S: 单次调和截止时间（秒，默认 30）
        HEARTBEAT_SOURCE_REQUEUE_DELAY_S: 可重试错误的重新入队延迟（秒，默认 10）
        HEARTBEAT_SOURCE_RESYNC_INTERVAL_S: 周期性全量调和间隔（秒，默认 300）
        HEARTBEAT_SOURCE_POST_EVENTS: 是否向集群发布事件（默认 true）
    """

    receive_adapter_image: str = Field(min_length=1, description="worker 镜像")
    namespace: str = Field(default="", description="监听的命名空间，空表示全集群")
    reconcile_timeout_s: float = Field(default=30.0, gt=0, description="单次调和截止时间")
    requeue_delay_s: float = Field(default=10.0, ge=0, description="重新入队延迟")
    resync_interval_s: float = Field(default=300.0, gt=0, description="周期性调和间隔")
    posting_enabled: bool = Field(default=True, description="是否发布集群事件")


def _float_env(env_var: str, default: float) -> float | None:
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        return float(val)
    except ValueError:
        log.warning("invalid_numeric_config", env_var=env_var, value=val, fallback=default)
        # 使用默认值，不阻塞启动
        return None


def load_controller_config() -> ControllerConfig:
    """从环境变量加载控制器配置

    Raises:
        ConfigError: 必填的 HEARTBEAT_SOURCE_RA_IMAGE 未设置
    """
    image = os.environ.get("HEARTBEAT_SOURCE_RA_IMAGE", "")
    if not image:
        raise ConfigError("required environment variable is not defined: HEARTBEAT_SOURCE_RA_IMAGE")

    kwargs: dict = {"receive_adapter_image": image}

    if val := os.environ.get("HEARTBEAT_SOURCE_NAMESPACE"):
        kwargs["namespace"] = val

    for env_var, field, default in (
        ("HEARTBEAT_SOURCE_RECONCILE_TIMEOUT_S", "reconcile_timeout_s", 30.0),
        ("HEARTBEAT_SOURCE_REQUEUE_DELAY_S", "requeue_delay_s", 10.0),
        ("HEARTBEAT_SOURCE_RESYNC_INTERVAL_S", "resync_interval_s", 300.0),
    ):
        if (value := _float_env(env_var, default)) is not None:
            kwargs[field] = value

    if val := os.environ.get("HEARTBEAT_SOURCE_POST_EVENTS"):
        kwargs["posting_enabled"] = val.lower() not in ("0", "false", "no")

    return ControllerConfig(**kwargs)


def load_resync_interval() -> float:
    """周期性调和间隔

    timer 在导入期注册，早于 startup 加载完整配置，因此单独读取。
    """
    value = _float_env("HEARTBEAT_SOURCE_RESYNC_INTERVAL_S", 300.0)
    return value if value is not None and value > 0 else 300.0


class ObservabilityConfig(BaseModel):
    """worker 可观测配置，对控制器不透明，原样透传

    环境变量:
        K_LOGGING_CONFIG / K_METRICS_CONFIG / K_TRACING_CONFIG
    """

    logging_config: str = Field(default="")
    metrics_config: str = Field(default="")
    tracing_config: str = Field(default="")

    def to_env_vars(self) -> list[EnvVar]:
        """非空配置按固定顺序转为容器环境变量"""
        pairs = (
            ("K_LOGGING_CONFIG", self.logging_config),
            ("K_METRICS_CONFIG", self.metrics_config),
            ("K_TRACING_CONFIG", self.tracing_config),
        )
        return [EnvVar(name=name, value=value) for name, value in pairs if value]


def load_observability_config() -> ObservabilityConfig:
    """从控制器进程环境读取透传配置"""
    return ObservabilityConfig(
        logging_config=os.environ.get("K_LOGGING_CONFIG", ""),
        metrics_config=os.environ.get("K_METRICS_CONFIG", ""),
        tracing_config=os.environ.get("K_TRACING_CONFIG", ""),
    )
