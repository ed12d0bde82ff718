"""Receive Adapter Deployment 构造

期望子资源完全由父资源 spec 推导：单副本，
容器 receive-adapter 携带发射间隔、身份与可观测配置环境变量。
sink 相关环境变量不在这里生成，由 SinkBinding 投影。
"""

from pydantic import BaseModel, Field

from ..models.child import (
    ChildResource,
    Container,
    DeploymentSpec,
    EnvVar,
    PodSpec,
    PodTemplateSpec,
)
from ..models.meta import ObjectMeta, new_controller_ref
from ..models.source import API_VERSION, KIND, HeartbeatSource
from .names import child_name

RECEIVE_ADAPTER_CONTAINER = "receive-adapter"


class ReceiveAdapterArgs(BaseModel):
    """构造 Receive Adapter 的参数"""

    source: HeartbeatSource
    image: str = Field(description="worker 镜像")
    labels: dict[str, str] = Field(default_factory=dict)
    event_source: str = Field(description="CloudEvent source 属性")
    additional_envs: list[EnvVar] = Field(
        default_factory=list,
        description="外部配置访问器注入的可观测环境变量",
    )


def receive_adapter_name(source: HeartbeatSource) -> str:
    return child_name(f"heartbeatsource-{source.metadata.name}-", source.metadata.uid or "")


def make_receive_adapter(args: ReceiveAdapterArgs) -> ChildResource:
    """构造期望的子 Deployment"""
    source = args.source
    env = [
        EnvVar(name="INTERVAL", value=source.spec.interval),
        EnvVar(name="NAME", value=source.metadata.name),
        EnvVar(
            name="NAMESPACE",
            value_from={"fieldRef": {"fieldPath": "metadata.namespace"}},
        ),
        EnvVar(name="EVENT_SOURCE", value=args.event_source),
        *args.additional_envs,
    ]

    return ChildResource(
        metadata=ObjectMeta(
            name=receive_adapter_name(source),
            namespace=source.metadata.namespace,
            labels=dict(args.labels),
            owner_references=[new_controller_ref(API_VERSION, KIND, source.metadata)],
        ),
        spec=DeploymentSpec(
            replicas=1,
            selector={"matchLabels": dict(args.labels)},
            template=PodTemplateSpec(
                metadata=ObjectMeta(labels=dict(args.labels)),
                spec=PodSpec(
                    service_account_name=source.spec.service_account_name,
                    containers=[
                        Container(
                            name=RECEIVE_ADAPTER_CONTAINER,
                            image=args.image,
                            env=env,
                        )
                    ],
                ),
            ),
        ),
    )
