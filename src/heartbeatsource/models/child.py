"""子资源模型 -- Deployment 形态的 worker 记录

ChildResource 是带显式 kind 标签的单一值类型（当前只有 Deployment），
pod spec 相关模型保留所有未建模字段，部分字段合并时不会丢失外部修改。
"""

from typing import Any

from pydantic import Field

from .enums import ChildKind
from .meta import KubeModel, ObjectMeta


class EnvVar(KubeModel):
    """容器环境变量"""

    name: str
    value: str | None = None
    value_from: dict[str, Any] | None = None


class Container(KubeModel):
    """容器定义（仅建模控制器关心的字段）"""

    name: str
    image: str = ""
    env: list[EnvVar] = Field(default_factory=list)


class PodSpec(KubeModel):
    """Pod spec"""

    containers: list[Container] = Field(default_factory=list)
    service_account_name: str | None = None

    def get_container(self, name: str) -> Container | None:
        """按名称查找容器"""
        for container in self.containers:
            if container.name == name:
                return container
        return None


class PodTemplateSpec(KubeModel):
    """Pod 模板"""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)


class DeploymentSpec(KubeModel):
    """Deployment spec"""

    replicas: int | None = None
    selector: dict[str, Any] | None = None
    template: PodTemplateSpec = Field(default_factory=PodTemplateSpec)


class DeploymentCondition(KubeModel):
    """平台上报的 rollout 条件"""

    type: str
    status: str
    reason: str = ""
    message: str = ""


class DeploymentStatus(KubeModel):
    """平台上报的 rollout 状态"""

    conditions: list[DeploymentCondition] = Field(default_factory=list)


class ChildResource(KubeModel):
    """受控子资源记录"""

    api_version: str = Field(default="apps/v1")
    kind: ChildKind = Field(default=ChildKind.DEPLOYMENT, description="子资源类型标签")
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: DeploymentSpec = Field(default_factory=DeploymentSpec)
    status: DeploymentStatus | None = None

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def pod_spec(self) -> PodSpec:
        return self.spec.template.spec

    def rollout_reported(self) -> bool:
        """平台是否已经上报过 rollout 状态"""
        return self.status is not None and bool(self.status.conditions)


def deployment_is_available(child: ChildResource) -> bool:
    """可用性投影：平台上报 Available=True 时为可用"""
    if child.status is None:
        return False
    for condition in child.status.conditions:
        if condition.type == "Available":
            return condition.status == "True"
    return False
