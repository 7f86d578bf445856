"""
评估引擎的输入 / 输出结构。

引擎只认识这些 dataclass，永远不碰 ORM 对象或外部原始文档。
ORM → snapshot 的转换在 services.py，外部文档 → snapshot 在 intake/。
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Union

from ..constants import ActionNeeded, ProactiveStatus, RecipeStatus

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class AuditEntry:
    status: Union[RecipeStatus, str]
    date: DateLike             # ISO 8601 时间戳


@dataclass(frozen=True)
class RecipeItem:
    principal_active_ingredient: str


@dataclass(frozen=True)
class RecipeSnapshot:
    """
    一张处方在某一时刻的只读快照。

    audit_trail 按写入顺序排列（append-only）。
    due_date 允许为 None —— 缺失时由引擎报 ValidationError，而不是在这里猜默认值。
    """

    id: str
    status: Union[RecipeStatus, str]
    due_date: Optional[DateLike]
    items: tuple[RecipeItem, ...] = ()
    audit_trail: tuple[AuditEntry, ...] = ()
    created_at: Optional[DateLike] = None
    is_magistral: bool = True


@dataclass(frozen=True)
class PatientSnapshot:
    id: str
    name: str
    is_chronic: bool
    locale: Optional[str] = None


@dataclass(frozen=True)
class EvaluationContext:
    """
    Input Assembler 的产物：规则只读取这里的派生字段。

    reference_recipe 为 None 表示"没有有效的慢病处方"，
    此时三个派生指标也全部为 None。
    """

    patient: PatientSnapshot
    current_date: date
    max_cycles: int
    reference_recipe: Optional[RecipeSnapshot] = None
    dispensation_count: Optional[int] = None
    days_until_due: Optional[int] = None
    days_since_last_dispensation: Optional[int] = None

    @property
    def has_reference_recipe(self) -> bool:
        return self.reference_recipe is not None


@dataclass(frozen=True)
class ProactiveOutcome:
    proactive_status: ProactiveStatus
    action_needed: ActionNeeded
    proactive_message: str
    rule: int                                  # 命中的规则编号 1..6
    reference_recipe_id: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            'proactive_status': self.proactive_status.value,
            'action_needed': self.action_needed.value,
            'proactive_message': self.proactive_message,
            'rule': self.rule,
            'reference_recipe_id': self.reference_recipe_id,
        }


@dataclass
class EvaluationRequest:
    """intake adapter 的标准输出：一次完整的无状态评估请求。"""

    patient: PatientSnapshot
    recipes: list[RecipeSnapshot] = field(default_factory=list)
    current_date: Optional[DateLike] = None
    max_cycles: Optional[int] = None
    source: str = ""
    raw_payload: Any = field(default=None, repr=False)
