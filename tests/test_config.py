"""控制器配置单元测试 -- 环境变量映射与默认值"""

import pytest
from heartbeatsource.config import (
    ControllerConfig,
    ObservabilityConfig,
    load_controller_config,
    load_observability_config,
    load_resync_interval,
)
from heartbeatsource.exceptions import ConfigError
from pydantic import ValidationError

ENV_VARS = (
    "HEARTBEAT_SOURCE_RA_IMAGE",
    "HEARTBEAT_SOURCE_NAMESPACE",
    "HEARTBEAT_SOURCE_RECONCILE_TIMEOUT_S",
    "HEARTBEAT_SOURCE_REQUEUE_DELAY_S",
    "HEARTBEAT_SOURCE_RESYNC_INTERVAL_S",
    "HEARTBEAT_SOURCE_POST_EVENTS",
    "K_LOGGING_CONFIG",
    "K_METRICS_CONFIG",
    "K_TRACING_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestControllerConfig:
    """ControllerConfig 数据模型"""

    def test_defaults(self):
        config = ControllerConfig(receive_adapter_image="img:v1")
        assert config.namespace == ""
        assert config.reconcile_timeout_s == 30.0
        assert config.requeue_delay_s == 10.0
        assert config.resync_interval_s == 300.0
        assert config.posting_enabled is True

    def test_empty_image_rejected(self):
        with pytest.raises(ValidationError):
            ControllerConfig(receive_adapter_image="")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ControllerConfig(receive_adapter_image="img:v1", reconcile_timeout_s=0)


class TestLoadControllerConfig:
    """load_controller_config() 环境变量映射"""

    def test_image_required(self):
        """缺少 worker 镜像时报 ConfigError"""
        with pytest.raises(ConfigError, match="HEARTBEAT_SOURCE_RA_IMAGE"):
            load_controller_config()

    def test_all_values(self, monkeypatch):
        monkeypatch.setenv("HEARTBEAT_SOURCE_RA_IMAGE", "img:v1")
        monkeypatch.setenv("HEARTBEAT_SOURCE_NAMESPACE", "team-a")
        monkeypatch.setenv("HEARTBEAT_SOURCE_RECONCILE_TIMEOUT_S", "12.5")
        monkeypatch.setenv("HEARTBEAT_SOURCE_REQUEUE_DELAY_S", "3")
        monkeypatch.setenv("HEARTBEAT_SOURCE_RESYNC_INTERVAL_S", "60")
        monkeypatch.setenv("HEARTBEAT_SOURCE_POST_EVENTS", "false")

        config = load_controller_config()
        assert config.receive_adapter_image == "img:v1"
        assert config.namespace == "team-a"
        assert config.reconcile_timeout_s == 12.5
        assert config.requeue_delay_s == 3.0
        assert config.resync_interval_s == 60.0
        assert config.posting_enabled is False

    def test_invalid_number_falls_back(self, monkeypatch):
        """非法数值降级为默认值，不阻塞启动"""
        monkeypatch.setenv("HEARTBEAT_SOURCE_RA_IMAGE", "img:v1")
        monkeypatch.setenv("HEARTBEAT_SOURCE_RECONCILE_TIMEOUT_S", "soon")

        assert load_controller_config().reconcile_timeout_s == 30.0

    @pytest.mark.parametrize("value,expected", [("0", 300.0), ("abc", 300.0), ("45", 45.0)])
    def test_resync_interval(self, monkeypatch, value: str, expected: float):
        monkeypatch.setenv("HEARTBEAT_SOURCE_RESYNC_INTERVAL_S", value)
        assert load_resync_interval() == expected

    def test_resync_interval_default(self):
        assert load_resync_interval() == 300.0


class TestObservabilityConfig:
    """透传给 worker 的可观测配置"""

    def test_empty_values_skipped(self):
        assert ObservabilityConfig().to_env_vars() == []

    def test_fixed_order(self, monkeypatch):
        monkeypatch.setenv("K_TRACING_CONFIG", '{"backend":"zipkin"}')
        monkeypatch.setenv("K_LOGGING_CONFIG", '{"level":"debug"}')

        envs = load_observability_config().to_env_vars()
        assert [(e.name, e.value) for e in envs] == [
            ("K_LOGGING_CONFIG", '{"level":"debug"}'),
            ("K_TRACING_CONFIG", '{"backend":"zipkin"}'),
        ]
