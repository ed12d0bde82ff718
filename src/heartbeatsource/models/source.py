"""HeartbeatSource 资源模型

父资源描述一个周期性事件发射器：事件目的地（sink）、发射间隔、
运行身份（service account）以及可选的 CloudEvent 覆盖属性。
spec 由资源作者维护，status 只由本控制器写入。
"""

import re
from datetime import timedelta

from pydantic import Field

from .condition import Condition
from .meta import KubeModel, ObjectMeta

GROUP = "sources.heartbeat.dev"
VERSION = "v1alpha1"
KIND = "HeartbeatSource"
PLURAL = "heartbeatsources"
API_VERSION = f"{GROUP}/{VERSION}"

DEFAULT_SERVICE_ACCOUNT_NAME = "default"
DEFAULT_INTERVAL = "10s"

# Go time.ParseDuration 兼容的单位表（秒）
_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5
    "μs": 1e-6,  # U+03BC
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """解析 Go 风格时长字符串，如 "300ms"、"-1.5h"、"2h45m"

    Raises:
        ValueError: 格式非法
    """
    text = value
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f'time: invalid duration "{value}"')

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f'time: invalid duration "{value}"')
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * total)


class KReference(KubeModel):
    """指向另一个可寻址对象的引用"""

    kind: str = Field(description="目标 kind")
    name: str = Field(description="目标名称")
    namespace: str = Field(default="", description="目标命名空间，空表示与父资源相同")
    api_version: str = Field(default="", description="目标 apiVersion")


class Destination(KubeModel):
    """事件目的地：直接 URI，或对象引用 + 可选 URI 后缀"""

    ref: KReference | None = Field(default=None)
    uri: str | None = Field(default=None, description="绝对 URI；与 ref 同时出现时为相对后缀")
    ca_certs: str | None = Field(default=None, alias="CACerts", description="PEM CA 证书")


class CloudEventOverrides(KubeModel):
    """发出事件时附加的 CloudEvent 扩展属性"""

    extensions: dict[str, str] = Field(default_factory=dict)


class CloudEventAttributes(KubeModel):
    """本资源会发出的事件属性"""

    type: str
    source: str


class HeartbeatSourceSpec(KubeModel):
    """期望状态"""

    sink: Destination | None = Field(default=None, description="事件目的地")
    ce_overrides: CloudEventOverrides | None = Field(default=None)
    service_account_name: str = Field(default="", description="worker 运行身份")
    interval: str = Field(default="", description="发射间隔，Go 时长格式")


class HeartbeatSourceStatus(KubeModel):
    """观测状态 -- 每次调和都可从 spec + 集群观测重新计算"""

    observed_generation: int = Field(default=0)
    conditions: list[Condition] = Field(default_factory=list)
    sink_uri: str | None = Field(default=None, description="已解析的 sink URI")
    ce_attributes: list[CloudEventAttributes] = Field(default_factory=list)

    def owned_body(self) -> dict:
        """只含本控制器负责的字段，用作 status 的 merge patch

        读入时保留的其他字段（例如 kopf 自己的 status.kopf 记录）不写回；
        sinkUri 为空时显式写 null，清除上一轮的旧值。
        """
        body = self.model_dump(
            by_alias=True,
            exclude_none=True,
            mode="json",
            exclude=set(self.model_extra or {}),
        )
        body.setdefault("sinkUri", None)
        return body


class HeartbeatSource(KubeModel):
    """HeartbeatSource 自定义资源"""

    api_version: str = Field(default=API_VERSION)
    kind: str = Field(default=KIND)
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: HeartbeatSourceSpec = Field(default_factory=HeartbeatSourceSpec)
    status: HeartbeatSourceStatus = Field(default_factory=HeartbeatSourceStatus)

    @property
    def event_source(self) -> str:
        """CloudEvent source 属性：<namespace>/<name>"""
        return f"{self.metadata.namespace}/{self.metadata.name}"

    def set_defaults(self) -> None:
        """填充默认值（就地修改）"""
        spec = self.spec
        if not spec.service_account_name:
            spec.service_account_name = DEFAULT_SERVICE_ACCOUNT_NAME
        if not spec.interval:
            spec.interval = DEFAULT_INTERVAL
        if spec.sink is not None and spec.sink.ref is not None:
            if not spec.sink.ref.namespace:
                spec.sink.ref.namespace = self.metadata.namespace

    def validate_spec(self) -> list[str]:
        """校验 spec，返回 "字段路径: 错误" 列表，空列表表示合法"""
        errors: list[str] = []
        sink = self.spec.sink
        if sink is None or (sink.ref is None and not sink.uri):
            errors.append("spec.sink: expected at least one, got none [ref, uri]")

        try:
            parse_duration(self.spec.interval)
        except ValueError as e:
            errors.append(f"spec.interval: invalid value: {e}")

        if not self.spec.service_account_name:
            errors.append("spec.serviceAccountName: missing field(s)")
        return errors
