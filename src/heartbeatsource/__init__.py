"""HeartbeatSource 控制器

驱动 HeartbeatSource 自定义资源收敛：确保 worker Deployment 存在且与 spec 一致、
worker 指向解析后的 sink、EventType 记录与 sink 类型一致，并聚合出 Ready 条件。
"""

__version__ = "0.1.0"
