"""集群存储与外部协作者

protocols 定义接口；memory 为内存实现（dry-run / 测试），
kube 为基于 kubernetes 客户端的实现。
"""

from .memory import InMemoryCluster, InMemoryURIResolver
from .protocols import ConfigAccessor, DeploymentStore, EventTypeStore, SinkResolver

__all__ = [
    "DeploymentStore",
    "EventTypeStore",
    "SinkResolver",
    "ConfigAccessor",
    "InMemoryCluster",
    "InMemoryURIResolver",
]
