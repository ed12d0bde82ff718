"""对象元数据模型 -- ObjectMeta / OwnerReference

集群对象统一使用 camelCase 序列化，未建模字段原样保留（extra="allow"），
保证读取-修改-写回时不丢失其他控制器或用户维护的字段。
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class KubeModel(BaseModel):
    """集群对象模型基类：camelCase 别名 + 保留未知字段"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_body(self) -> dict:
        """序列化为集群 API 请求体"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class OwnerReference(KubeModel):
    """属主反向引用（子对象上记录其控制者）"""

    api_version: str = Field(description="属主 apiVersion")
    kind: str = Field(description="属主 kind")
    name: str = Field(description="属主名称")
    uid: str = Field(description="属主 UID，所有权判定的身份依据")
    controller: bool | None = Field(default=None, description="是否为控制者")
    block_owner_deletion: bool | None = Field(default=None)


class ObjectMeta(KubeModel):
    """对象元数据"""

    name: str = Field(default="", description="对象名称")
    namespace: str = Field(default="", description="命名空间")
    uid: str | None = Field(default=None, description="对象 UID")
    generation: int | None = Field(default=None, description="spec 代数")
    resource_version: str | None = Field(default=None, description="乐观并发版本号")
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)


def new_controller_ref(api_version: str, kind: str, owner: ObjectMeta) -> OwnerReference:
    """构造指向 owner 的控制者引用"""
    return OwnerReference(
        api_version=api_version,
        kind=kind,
        name=owner.name,
        uid=owner.uid or "",
        controller=True,
        block_owner_deletion=True,
    )


def get_controller_of(meta: ObjectMeta) -> OwnerReference | None:
    """返回对象的控制者引用，没有则返回 None"""
    for ref in meta.owner_references:
        if ref.controller:
            return ref
    return None


def is_controlled_by(meta: ObjectMeta, owner: ObjectMeta) -> bool:
    """判断对象是否由 owner 控制（按 UID 身份比较）"""
    ref = get_controller_of(meta)
    return ref is not None and bool(owner.uid) and ref.uid == owner.uid
