"""HeartbeatSource 调和引擎

公开接口：编排器 Reconciler，以及子资源 diff、EventType 集合 diff、sink 投影。
"""

from .deployment import ChildOutcome, DeploymentReconciler, pod_spec_sync, sync_image
from .eventtypes import EventTypeChanges, EventTypeReconciler, compute_diff
from .heartbeatsource import AvailabilityProjection, Reconciler
from .sink import RESERVED_ENV_KEYS, SinkBinding, resolve_sink, with_default_namespace

__all__ = [
    "Reconciler",
    "AvailabilityProjection",
    "DeploymentReconciler",
    "ChildOutcome",
    "pod_spec_sync",
    "sync_image",
    "EventTypeReconciler",
    "EventTypeChanges",
    "compute_diff",
    "SinkBinding",
    "RESERVED_ENV_KEYS",
    "resolve_sink",
    "with_default_namespace",
]
