"""外部协作者 Protocol 接口定义

定义集群存储、sink 解析器、可观测配置访问器的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
所有集群状态都通过显式注入的协作者读取，核心不持有任何全局可变状态。
"""

from typing import Protocol

from ..models.child import ChildResource, EnvVar
from ..models.eventtype import EventTypeRecord
from ..models.meta import ObjectMeta
from ..models.source import Destination


class DeploymentStore(Protocol):
    """子 Deployment 存储接口

    单次调用原子；失败抛出 StoreError。
    """

    async def get_deployment(self, namespace: str, name: str) -> ChildResource | None:
        """按名称读取，不存在返回 None"""
        ...

    async def create_deployment(self, deployment: ChildResource) -> ChildResource:
        """创建并返回服务端对象"""
        ...

    async def update_deployment(self, deployment: ChildResource) -> ChildResource:
        """按 resourceVersion 乐观并发更新"""
        ...


class EventTypeStore(Protocol):
    """EventType 存储接口"""

    async def list_event_types(
        self,
        namespace: str,
        selector: dict[str, str],
    ) -> list[EventTypeRecord]:
        """按 label selector 列出"""
        ...

    async def create_event_type(self, record: EventTypeRecord) -> EventTypeRecord:
        """创建记录"""
        ...

    async def delete_event_type(self, namespace: str, name: str) -> None:
        """删除记录（已不存在视为成功）"""
        ...


class SinkResolver(Protocol):
    """sink 解析器：把抽象目的地翻译为具体 URI

    引用对象不存在或尚未发布地址时抛出 SinkNotFoundError（可重试），
    输入格式非法时抛出 SinkMalformedError（终态）。
    """

    async def uri_from_destination(
        self,
        destination: Destination,
        requester: ObjectMeta,
    ) -> str | None:
        ...


class ConfigAccessor(Protocol):
    """可观测配置访问器：向 worker 透传日志/指标/追踪配置"""

    def to_env_vars(self) -> list[EnvVar]:
        ...
