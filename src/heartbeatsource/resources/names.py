"""子资源命名与标签

名称是父资源名称 + 后缀的确定性函数，长度不超过 63（DNS-1123 label），
超长时用 md5 摘要截断。
"""

import hashlib

from ..models.source import GROUP

# DNS-1123 label 最大长度
MAX_NAME_LENGTH = 63

CONTROLLER_AGENT_NAME = "heartbeat-source-controller"

SOURCE_LABEL = f"{GROUP}/source"
NAME_LABEL = f"{GROUP}/name"


def child_name(parent: str, suffix: str) -> str:
    """由父名称和后缀生成长度受限的子资源名称"""
    name = parent + suffix
    if len(name) <= MAX_NAME_LENGTH:
        return name

    digest = hashlib.md5(parent.encode()).hexdigest()
    head = MAX_NAME_LENGTH - len(suffix) - len(digest)
    if head <= 0:
        return hashlib.md5(name.encode()).hexdigest()
    return parent[:head] + digest + suffix


def labels(name: str) -> dict[str, str]:
    """父资源拥有的子资源统一标签（list 时的 label selector）"""
    return {
        SOURCE_LABEL: CONTROLLER_AGENT_NAME,
        NAME_LABEL: name,
    }
