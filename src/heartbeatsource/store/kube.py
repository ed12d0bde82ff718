"""集群存储与 sink 解析器的 Kubernetes 实现

基于同步的 kubernetes 客户端，每次调用通过 asyncio.to_thread 下放到线程池，
不阻塞事件循环。ApiException 统一转换为 StoreError / SinkNotFoundError。
"""

import asyncio
import json

import structlog
from kubernetes import client
from kubernetes.client.rest import ApiException

from ..exceptions import SinkMalformedError, SinkNotFoundError, StoreError
from ..models.child import ChildResource
from ..models.eventtype import EVENT_TYPE_API_VERSION, EventTypeRecord
from ..models.meta import ObjectMeta
from ..models.source import Destination
from .addressing import direct_uri, join_uri

log = structlog.get_logger()

EVENT_TYPE_GROUP, _, EVENT_TYPE_VERSION = EVENT_TYPE_API_VERSION.partition("/")
EVENT_TYPE_PLURAL = "eventtypes"

CLUSTER_DOMAIN = "cluster.local"


def label_selector(labels: dict[str, str]) -> str:
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def _api_reason(exc: ApiException) -> str:
    """优先取响应体中的集群 reason（AlreadyExists/Conflict/...），否则取 HTTP reason"""
    try:
        body = json.loads(exc.body or "")
    except (TypeError, ValueError):
        body = {}
    if isinstance(body, dict) and body.get("reason"):
        return body["reason"]
    return exc.reason or "Unknown"


def _store_error(operation: str, kind: str, name: str, exc: ApiException) -> StoreError:
    return StoreError(operation, kind, name, exc.reason or exc, reason=_api_reason(exc))


class KubeDeploymentStore:
    """DeploymentStore 的 Kubernetes 实现"""

    def __init__(self, apps_api: client.AppsV1Api | None = None) -> None:
        self._api = apps_api or client.AppsV1Api()

    def _to_child(self, obj) -> ChildResource:
        data = self._api.api_client.sanitize_for_serialization(obj)
        return ChildResource.model_validate(data)

    @staticmethod
    def _body(deployment: ChildResource) -> dict:
        body = deployment.to_body()
        body.pop("status", None)
        return body

    async def get_deployment(self, namespace: str, name: str) -> ChildResource | None:
        try:
            obj = await asyncio.to_thread(self._api.read_namespaced_deployment, name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise _store_error("get", "Deployment", name, e) from e
        return self._to_child(obj)

    async def create_deployment(self, deployment: ChildResource) -> ChildResource:
        try:
            obj = await asyncio.to_thread(
                self._api.create_namespaced_deployment,
                deployment.namespace,
                self._body(deployment),
            )
        except ApiException as e:
            raise _store_error("create", "Deployment", deployment.name, e) from e
        return self._to_child(obj)

    async def update_deployment(self, deployment: ChildResource) -> ChildResource:
        try:
            obj = await asyncio.to_thread(
                self._api.replace_namespaced_deployment,
                deployment.name,
                deployment.namespace,
                self._body(deployment),
            )
        except ApiException as e:
            raise _store_error("update", "Deployment", deployment.name, e) from e
        return self._to_child(obj)


class KubeEventTypeStore:
    """EventTypeStore 的 Kubernetes 实现（CustomObjectsApi）"""

    def __init__(self, custom_api: client.CustomObjectsApi | None = None) -> None:
        self._api = custom_api or client.CustomObjectsApi()

    async def list_event_types(
        self,
        namespace: str,
        selector: dict[str, str],
    ) -> list[EventTypeRecord]:
        try:
            result = await asyncio.to_thread(
                self._api.list_namespaced_custom_object,
                EVENT_TYPE_GROUP,
                EVENT_TYPE_VERSION,
                namespace,
                EVENT_TYPE_PLURAL,
                label_selector=label_selector(selector),
            )
        except ApiException as e:
            log.error("event_type_list_failed", namespace=namespace, error=str(e))
            raise _store_error("list", "EventType", namespace, e) from e
        return [EventTypeRecord.model_validate(item) for item in result.get("items", [])]

    async def create_event_type(self, record: EventTypeRecord) -> EventTypeRecord:
        try:
            obj = await asyncio.to_thread(
                self._api.create_namespaced_custom_object,
                EVENT_TYPE_GROUP,
                EVENT_TYPE_VERSION,
                record.metadata.namespace,
                EVENT_TYPE_PLURAL,
                record.to_body(),
            )
        except ApiException as e:
            raise _store_error("create", "EventType", record.metadata.name, e) from e
        return EventTypeRecord.model_validate(obj)

    async def delete_event_type(self, namespace: str, name: str) -> None:
        try:
            await asyncio.to_thread(
                self._api.delete_namespaced_custom_object,
                EVENT_TYPE_GROUP,
                EVENT_TYPE_VERSION,
                namespace,
                EVENT_TYPE_PLURAL,
                name,
            )
        except ApiException as e:
            if e.status == 404:
                return
            raise _store_error("delete", "EventType", name, e) from e


class KubeURIResolver:
    """SinkResolver 的 Kubernetes 实现

    - 核心 Service：按集群内 DNS 约定生成地址
    - 其他可寻址对象：读取 status.address.url
    """

    def __init__(
        self,
        custom_api: client.CustomObjectsApi | None = None,
        core_api: client.CoreV1Api | None = None,
    ) -> None:
        self._custom_api = custom_api or client.CustomObjectsApi()
        self._core_api = core_api or client.CoreV1Api()

    async def uri_from_destination(
        self,
        destination: Destination,
        requester: ObjectMeta,
    ) -> str | None:
        ref = destination.ref
        if ref is None:
            return direct_uri(destination)

        if ref.kind == "Service" and ref.api_version in ("", "v1"):
            address = await self._service_address(ref.name, ref.namespace)
        else:
            address = await self._addressable_address(
                ref.api_version, ref.kind, ref.name, ref.namespace
            )
        return join_uri(address, destination.uri)

    async def _service_address(self, name: str, namespace: str) -> str:
        try:
            await asyncio.to_thread(self._core_api.read_namespaced_service, name, namespace)
        except ApiException as e:
            if e.status == 404:
                raise SinkNotFoundError(
                    f'failed to get ref Service "{namespace}/{name}": not found'
                ) from e
            raise _store_error("get", "Service", name, e) from e
        return f"http://{name}.{namespace}.svc.{CLUSTER_DOMAIN}/"

    async def _addressable_address(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str,
    ) -> str:
        group, _, version = api_version.rpartition("/")
        if not group or not version:
            raise SinkMalformedError(f"ref apiVersion {api_version!r} must be <group>/<version>")
        # TODO: 用 discovery API 查询 plural，替代 kind 小写加 s 的约定
        plural = f"{kind.lower()}s"
        try:
            obj = await asyncio.to_thread(
                self._custom_api.get_namespaced_custom_object,
                group,
                version,
                namespace,
                plural,
                name,
            )
        except ApiException as e:
            if e.status == 404:
                raise SinkNotFoundError(
                    f'failed to get ref {kind} "{namespace}/{name}": not found'
                ) from e
            raise _store_error("get", kind, name, e) from e

        url = ((obj.get("status") or {}).get("address") or {}).get("url")
        if not url:
            raise SinkNotFoundError(f'{kind} "{namespace}/{name}" does not contain address')
        return url
