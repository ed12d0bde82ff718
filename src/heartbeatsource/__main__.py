"""CLI 入口模块 -- python -m heartbeatsource <command>

支持的命令：
  run              启动控制器（kopf）
  plan <file>      对 JSON 清单做一次 dry-run 调和，打印将执行的写操作
  check <file>     补全默认值并校验 JSON 清单
"""

import asyncio
import json
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import load_controller_config
from .exceptions import ConfigError
from .models.source import HeartbeatSource

USAGE = """用法: python -m heartbeatsource <command>
命令:
  run              启动控制器
  plan <file>      dry-run 调和，打印将执行的写操作
  check <file>     补全默认值并校验清单"""

PLACEHOLDER_IMAGE = "receive-adapter:dry-run"


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "run":
        run()
    elif command in ("plan", "check"):
        if len(sys.argv) < 3:
            print(f"缺少清单文件: python -m heartbeatsource {command} <file>")
            sys.exit(1)
        source = load_source(sys.argv[2])
        if command == "check":
            sys.exit(check(source))
        sys.exit(asyncio.run(plan(source)))
    else:
        print(f"未知命令: {command}")
        print("可用命令: run, plan, check")
        sys.exit(1)


def run() -> None:
    """启动 kopf 控制器；配置了命名空间时只监听该命名空间"""
    import kopf

    from . import operator  # noqa: F401  注册 handler

    try:
        config = load_controller_config()
    except ConfigError as exc:
        print(f"配置错误: {exc}")
        sys.exit(1)

    kopf.run(
        standalone=True,
        clusterwide=not config.namespace,
        namespaces=[config.namespace] if config.namespace else [],
    )


def load_source(path: str) -> HeartbeatSource:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return HeartbeatSource.model_validate(data)
    except OSError as exc:
        print(f"无法读取清单: {exc}")
    except json.JSONDecodeError as exc:
        print(f"清单不是合法 JSON: {exc}")
    except ValidationError as exc:
        print(f"清单结构错误:\n{exc}")
    sys.exit(1)


def check(source: HeartbeatSource) -> int:
    """补全默认值后校验，打印问题列表"""
    source.set_defaults()
    problems = source.validate_spec()
    if not problems:
        print(f"{source.event_source}: OK")
        print(json.dumps(source.spec.to_body(), indent=2, ensure_ascii=False))
        return 0
    print(f"{source.event_source}: {len(problems)} 个问题")
    for problem in problems:
        print(f"  - {problem}")
    return 1


async def plan(source: HeartbeatSource) -> int:
    """对空的内存集群执行一次调和

    sink 引用的对象被视为已发布集群内 Service 地址。
    """
    from .config import load_observability_config
    from .reconciler import Reconciler
    from .store import InMemoryCluster, InMemoryURIResolver

    if check(source) != 0:
        return 1

    cluster = InMemoryCluster()
    resolver = InMemoryURIResolver()
    ref = source.spec.sink.ref if source.spec.sink is not None else None
    if ref is not None:
        resolver.publish(
            ref.kind,
            ref.namespace,
            ref.name,
            f"http://{ref.name}.{ref.namespace}.svc.cluster.local/",
        )

    reconciler = Reconciler(
        receive_adapter_image=os.environ.get("HEARTBEAT_SOURCE_RA_IMAGE") or PLACEHOLDER_IMAGE,
        deployments=cluster,
        event_types=cluster,
        sink_resolver=resolver,
        config_accessor=load_observability_config(),
    )
    result = await reconciler.reconcile(source)

    print("写操作:")
    for verb, kind, key in cluster.actions:
        print(f"  {verb:<7} {kind} {key}")
    if result.event is not None:
        print(f"事件: {result.event.severity} {result.event.reason}: {result.event.message}")
    print("status:")
    print(json.dumps(source.status.to_body(), indent=2, ensure_ascii=False))
    return 0 if result.ok else 1


if __name__ == "__main__":
    main()
