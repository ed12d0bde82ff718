"""sink 解析与投影

- 命名空间缺省：ref 未指定命名空间时使用父资源所在命名空间（属于核心逻辑，不交给解析器）
- 解析：委托外部 SinkResolver，NotFound 可重试
- 投影：SinkBinding 把寻址信息写入 pod spec，只触碰保留的环境变量
"""

import json

from ..models.child import Container, EnvVar, PodSpec
from ..models.meta import ObjectMeta
from ..models.source import CloudEventOverrides, Destination, HeartbeatSource
from ..store.protocols import SinkResolver

ENV_SINK = "K_SINK"
ENV_CE_OVERRIDES = "K_CE_OVERRIDES"
ENV_CA_CERTS = "K_CA_CERTS"

# SinkBinding 独占的环境变量
RESERVED_ENV_KEYS: tuple[str, ...] = (ENV_SINK, ENV_CE_OVERRIDES, ENV_CA_CERTS)


def with_default_namespace(destination: Destination, namespace: str) -> Destination:
    """返回补全了 ref 命名空间的副本（不修改入参）"""
    dest = destination.model_copy(deep=True)
    if dest.ref is not None and not dest.ref.namespace:
        dest.ref.namespace = namespace
    return dest


async def resolve_sink(
    resolver: SinkResolver,
    destination: Destination,
    requester: ObjectMeta,
) -> str:
    """解析目的地为 URI，解析结果为空时返回空字符串

    Raises:
        SinkNotFoundError: 引用对象不存在或尚未发布地址
        SinkMalformedError: 目的地非法
    """
    dest = with_default_namespace(destination, requester.namespace)
    uri = await resolver.uri_from_destination(dest, requester)
    return uri or ""


class SinkBinding:
    """把 sink 寻址信息投影到 pod spec 的每个容器"""

    def __init__(
        self,
        sink_uri: str,
        ce_overrides: CloudEventOverrides | None = None,
        ca_certs: str | None = None,
    ) -> None:
        self.sink_uri = sink_uri
        self.ce_overrides = ce_overrides
        self.ca_certs = ca_certs

    @classmethod
    def for_source(cls, source: HeartbeatSource, sink_uri: str) -> "SinkBinding":
        sink = source.spec.sink
        return cls(
            sink_uri=sink_uri,
            ce_overrides=source.spec.ce_overrides,
            ca_certs=sink.ca_certs if sink is not None else None,
        )

    def env_values(self) -> dict[str, str]:
        """应当存在的保留环境变量（未出现的保留键会被移除）"""
        values = {ENV_SINK: self.sink_uri}
        if self.ce_overrides is not None and self.ce_overrides.extensions:
            values[ENV_CE_OVERRIDES] = json.dumps(
                {"extensions": self.ce_overrides.extensions},
                sort_keys=True,
                separators=(",", ":"),
            )
        if self.ca_certs:
            values[ENV_CA_CERTS] = self.ca_certs
        return values

    def project(self, pod_spec: PodSpec) -> None:
        """就地投影，非保留环境变量的内容与顺序保持不变"""
        values = self.env_values()
        for container in pod_spec.containers:
            _apply_env(container, values)


def _apply_env(container: Container, values: dict[str, str]) -> None:
    seen: set[str] = set()
    env: list[EnvVar] = []
    for var in container.env:
        if var.name not in RESERVED_ENV_KEYS:
            env.append(var)
            continue
        if var.name not in values or var.name in seen:
            continue
        var.value = values[var.name]
        var.value_from = None
        seen.add(var.name)
        env.append(var)

    for key in RESERVED_ENV_KEYS:
        if key in values and key not in seen:
            env.append(EnvVar(name=key, value=values[key]))
    container.env = env
