"""测试共享 fixtures"""

import copy
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from heartbeatsource.config import ObservabilityConfig
from heartbeatsource.models.source import HeartbeatSource
from heartbeatsource.reconciler import Reconciler
from heartbeatsource.store import InMemoryCluster, InMemoryURIResolver

IMAGE = "registry.example.com/heartbeat/receive-adapter:v1"
BROKER_URL = "http://broker-ingress.knative-eventing.svc.cluster.local/default/default"

BROKER_SINK = {
    "ref": {"apiVersion": "eventing.knative.dev/v1", "kind": "Broker", "name": "default"},
}
URI_SINK = {"uri": "http://sink.example/"}


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_source() -> Callable[..., HeartbeatSource]:
    """HeartbeatSource 工厂，返回已补全默认值的对象；sink=None 表示缺失"""

    def _make(
        name: str = "heartbeat",
        namespace: str = "default",
        *,
        uid: str = "5d1f2b7c-0f3e-4c8a-9d62-1b7e4f0a9c31",
        generation: int = 1,
        sink: dict | None = BROKER_SINK,
        **spec,
    ) -> HeartbeatSource:
        data = {
            "metadata": {
                "name": name,
                "namespace": namespace,
                "uid": uid,
                "generation": generation,
            },
            "spec": dict(spec),
        }
        if sink is not None:
            data["spec"]["sink"] = copy.deepcopy(sink)
        source = HeartbeatSource.model_validate(data)
        source.set_defaults()
        return source

    return _make


@pytest.fixture
def cluster() -> InMemoryCluster:
    return InMemoryCluster()


@pytest.fixture
def resolver() -> InMemoryURIResolver:
    """默认已发布 default/default Broker 地址"""
    r = InMemoryURIResolver()
    r.publish("Broker", "default", "default", BROKER_URL)
    return r


@pytest.fixture
def make_reconciler(
    cluster: InMemoryCluster,
    resolver: InMemoryURIResolver,
    clock: FakeClock,
) -> Callable[..., Reconciler]:
    def _make(image: str = IMAGE, **overrides) -> Reconciler:
        kwargs = {
            "receive_adapter_image": image,
            "deployments": cluster,
            "event_types": cluster,
            "sink_resolver": resolver,
            "config_accessor": ObservabilityConfig(),
            "clock": clock,
        }
        kwargs.update(overrides)
        return Reconciler(**kwargs)

    return _make


@pytest.fixture
def reconciler(make_reconciler) -> Reconciler:
    return make_reconciler()
