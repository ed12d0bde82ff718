"""目的地 URI 处理 -- 解析器实现共用"""

from urllib.parse import urljoin, urlsplit

from ..exceptions import SinkMalformedError
from ..models.source import Destination


def is_absolute_uri(uri: str) -> bool:
    parts = urlsplit(uri)
    return bool(parts.scheme) and bool(parts.netloc)


def direct_uri(destination: Destination) -> str:
    """无 ref 的目的地：URI 必须是绝对地址，原样返回

    Raises:
        SinkMalformedError: 既无 ref 也无 URI，或 URI 不是绝对地址
    """
    if not destination.uri:
        raise SinkMalformedError("destination has neither ref nor uri")
    if not is_absolute_uri(destination.uri):
        raise SinkMalformedError(f"destination uri {destination.uri!r} is not absolute")
    return destination.uri


def join_uri(address: str, suffix: str | None) -> str:
    """把 ref 解析出的地址与可选的相对后缀合并"""
    if not suffix:
        return address
    if is_absolute_uri(suffix):
        raise SinkMalformedError(f"uri {suffix!r} must be relative when ref is set")
    return urljoin(address, suffix)
