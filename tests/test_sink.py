"""sink 解析与投影单元测试"""

import json
from unittest.mock import AsyncMock

import pytest
from heartbeatsource.exceptions import SinkMalformedError, SinkNotFoundError
from heartbeatsource.models import (
    CloudEventOverrides,
    Container,
    Destination,
    EnvVar,
    KReference,
    ObjectMeta,
    PodSpec,
)
from heartbeatsource.reconciler import SinkBinding, resolve_sink, with_default_namespace
from heartbeatsource.store import InMemoryURIResolver

REQUESTER = ObjectMeta(name="hb", namespace="team-a", uid="uid-1")


def _env(container: Container) -> list[tuple[str, str | None]]:
    return [(e.name, e.value) for e in container.env]


class TestNamespaceDefaulting:
    """ref 命名空间缺省"""

    def test_fills_missing_namespace(self):
        dest = Destination(ref=KReference(kind="Broker", name="default"))
        out = with_default_namespace(dest, "team-a")

        assert out.ref.namespace == "team-a"
        # 入参不被修改
        assert dest.ref.namespace == ""

    def test_keeps_explicit_namespace(self):
        dest = Destination(ref=KReference(kind="Broker", name="default", namespace="shared"))
        assert with_default_namespace(dest, "team-a").ref.namespace == "shared"


class TestResolveSink:
    """sink 解析"""

    async def test_ref_resolved_in_requester_namespace(self):
        """未指定命名空间的 ref 在父资源命名空间中解析"""
        resolver = InMemoryURIResolver()
        resolver.publish("Service", "team-a", "display", "http://display.team-a.svc.cluster.local/")
        dest = Destination(ref=KReference(kind="Service", name="display", api_version="v1"))

        uri = await resolve_sink(resolver, dest, REQUESTER)
        assert uri == "http://display.team-a.svc.cluster.local/"

    async def test_ref_with_relative_uri(self):
        """ref + 相对 URI 拼接"""
        resolver = InMemoryURIResolver()
        resolver.publish("Service", "team-a", "display", "http://display.team-a.svc.cluster.local/")
        dest = Destination(ref=KReference(kind="Service", name="display"), uri="events")

        uri = await resolve_sink(resolver, dest, REQUESTER)
        assert uri == "http://display.team-a.svc.cluster.local/events"

    async def test_ref_with_absolute_uri_rejected(self):
        resolver = InMemoryURIResolver()
        resolver.publish("Service", "team-a", "display", "http://display.team-a.svc.cluster.local/")
        dest = Destination(ref=KReference(kind="Service", name="display"), uri="http://x.example/")

        with pytest.raises(SinkMalformedError):
            await resolve_sink(resolver, dest, REQUESTER)

    async def test_direct_uri(self):
        uri = await resolve_sink(
            InMemoryURIResolver(), Destination(uri="http://sink.example/"), REQUESTER
        )
        assert uri == "http://sink.example/"

    async def test_relative_direct_uri_rejected(self):
        """无 ref 时 URI 必须是绝对地址（终态）"""
        with pytest.raises(SinkMalformedError) as exc_info:
            await resolve_sink(InMemoryURIResolver(), Destination(uri="/events"), REQUESTER)
        assert exc_info.value.retriable is False

    async def test_not_found_is_retriable(self):
        """引用对象未发布地址 -> NotFound，可重试"""
        dest = Destination(ref=KReference(kind="Broker", name="default"))
        with pytest.raises(SinkNotFoundError) as exc_info:
            await resolve_sink(InMemoryURIResolver(), dest, REQUESTER)

        assert exc_info.value.retriable is True
        assert exc_info.value.reason == "NotFound"
        assert '"team-a/default"' in str(exc_info.value)

    async def test_empty_resolution(self):
        """解析器返回 None 时得到空字符串"""
        resolver = AsyncMock()
        resolver.uri_from_destination.return_value = None

        uri = await resolve_sink(resolver, Destination(uri="http://sink.example/"), REQUESTER)
        assert uri == ""


class TestSinkBinding:
    """sink 投影"""

    def test_env_values(self):
        """K_CE_OVERRIDES 为紧凑、键有序的 JSON"""
        binding = SinkBinding(
            "http://sink.example/",
            ce_overrides=CloudEventOverrides(extensions={"b": "2", "a": "1"}),
            ca_certs="PEM",
        )
        values = binding.env_values()

        assert values["K_SINK"] == "http://sink.example/"
        assert values["K_CE_OVERRIDES"] == '{"extensions":{"a":"1","b":"2"}}'
        assert json.loads(values["K_CE_OVERRIDES"]) == {"extensions": {"a": "1", "b": "2"}}
        assert values["K_CA_CERTS"] == "PEM"

    def test_empty_overrides_omitted(self):
        binding = SinkBinding("http://sink.example/", ce_overrides=CloudEventOverrides())
        assert binding.env_values() == {"K_SINK": "http://sink.example/"}

    def test_project_preserves_other_env(self):
        """非保留变量的内容与顺序不变，保留变量原地更新"""
        container = Container(
            name="receive-adapter",
            env=[
                EnvVar(name="FOO", value="1"),
                EnvVar(name="K_SINK", value="http://old.example/"),
                EnvVar(name="BAR", value="2"),
            ],
        )
        pod = PodSpec(containers=[container])
        SinkBinding(
            "http://sink.example/",
            ce_overrides=CloudEventOverrides(extensions={"team": "a"}),
        ).project(pod)

        assert _env(pod.containers[0]) == [
            ("FOO", "1"),
            ("K_SINK", "http://sink.example/"),
            ("BAR", "2"),
            ("K_CE_OVERRIDES", '{"extensions":{"team":"a"}}'),
        ]

    def test_project_drops_stale_reserved(self):
        """不再需要的保留变量与重复项被移除"""
        container = Container(
            name="receive-adapter",
            env=[
                EnvVar(name="K_CA_CERTS", value="OLD"),
                EnvVar(name="K_SINK", value="http://a.example/"),
                EnvVar(name="K_SINK", value="http://b.example/"),
            ],
        )
        pod = PodSpec(containers=[container])
        SinkBinding("http://sink.example/").project(pod)

        assert _env(pod.containers[0]) == [("K_SINK", "http://sink.example/")]

    def test_project_every_container(self):
        """投影到 pod 内每个容器"""
        pod = PodSpec(containers=[Container(name="a"), Container(name="b")])
        SinkBinding("http://sink.example/").project(pod)

        assert all(_env(c) == [("K_SINK", "http://sink.example/")] for c in pod.containers)

    def test_for_source(self, make_source):
        """从父资源读取 overrides 与 CA 证书"""
        source = make_source(
            sink={"uri": "https://sink.example/", "CACerts": "PEM"},
            ceOverrides={"extensions": {"team": "a"}},
        )
        binding = SinkBinding.for_source(source, "https://sink.example/")

        assert binding.ca_certs == "PEM"
        assert binding.ce_overrides.extensions == {"team": "a"}
