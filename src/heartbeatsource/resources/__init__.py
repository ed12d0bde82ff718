"""期望子资源构造器"""

from .eventtypes import (
    HEARTBEAT_EVENT_TYPE,
    HEARTBEAT_EVENT_TYPES,
    make_ce_attributes,
    make_event_types,
)
from .names import child_name, labels
from .receive_adapter import (
    RECEIVE_ADAPTER_CONTAINER,
    ReceiveAdapterArgs,
    make_receive_adapter,
    receive_adapter_name,
)

__all__ = [
    "child_name",
    "labels",
    "ReceiveAdapterArgs",
    "make_receive_adapter",
    "receive_adapter_name",
    "RECEIVE_ADAPTER_CONTAINER",
    "HEARTBEAT_EVENT_TYPE",
    "HEARTBEAT_EVENT_TYPES",
    "make_event_types",
    "make_ce_attributes",
]
