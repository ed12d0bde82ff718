"""日志配置 -- 控制器、kopf 与 kubernetes 客户端统一经 structlog 渲染

HEARTBEAT_LOG_FORMAT: "json"（集群内）或 "dev"（默认，本地可读输出）
HEARTBEAT_LOG_LEVEL: 根 logger 级别，默认 INFO

kopf 与 kubernetes 客户端走标准库 logging，通过 ProcessorFormatter 的
foreign_pre_chain 得到与控制器自身日志相同的字段。
"""

import logging
import os

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

CONTROLLER_NAME = "heartbeat-source"

# 第三方 logger 的级别下限
# kopf 在 DEBUG 下逐条打印 watch 事件与 patch 内容，kubernetes 客户端打印完整请求体
QUIET_LOGGERS: dict[str, int] = {
    "kopf": logging.INFO,
    "kubernetes": logging.INFO,
    "urllib3": logging.WARNING,
}


def add_controller_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """每条日志带上控制器名，便于和同一 Pod 内其他进程的输出区分"""
    event_dict.setdefault("controller", CONTROLLER_NAME)
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 与标准库 logging

    参数为空时读取 HEARTBEAT_LOG_FORMAT / HEARTBEAT_LOG_LEVEL。
    """
    log_format = log_format or os.environ.get("HEARTBEAT_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("HEARTBEAT_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_controller_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name, floor in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))
