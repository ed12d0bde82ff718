"""Condition 数据模型

lastTransitionTime 只在 status 或 reason 变化时更新，由条件状态机维护。
"""

from datetime import datetime

from pydantic import Field

from .enums import ConditionStatus, ConditionType
from .meta import KubeModel


class Condition(KubeModel):
    """命名的三态状态标志"""

    type: ConditionType = Field(description="条件类型")
    status: ConditionStatus = Field(default=ConditionStatus.UNKNOWN, description="条件取值")
    reason: str = Field(default="", description="机器可读原因（CamelCase）")
    message: str = Field(default="", description="人类可读说明")
    last_transition_time: datetime | None = Field(default=None, description="最近一次流转时间")

    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE

    def is_false(self) -> bool:
        return self.status == ConditionStatus.FALSE

    def is_unknown(self) -> bool:
        return self.status == ConditionStatus.UNKNOWN
