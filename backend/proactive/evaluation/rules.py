"""
六条主动评估规则。

RULES 的顺序就是优先级：引擎从上往下检查，第一条命中即返回，后面的不再看。
按紧急程度降序：
  1. 调剂次数用尽        URGENT    / CREATE_NEW_RECIPE
  2. 已过期或 30 天内过期  URGENT    / CREATE_NEW_RECIPE
  3. 慢病患者没有有效处方  URGENT    / CREATE_NEW_RECIPE
  4. 30~60 天内过期       ATTENTION / CREATE_NEW_RECIPE
  5. 距上次调剂 > 25 天    ATTENTION / REPREPARE_CYCLE
  6. 兜底                OK        / NONE

新增规则：继承 ProactiveRule，实现 matches()，插到 RULES 合适的位置。
"""

from abc import ABC, abstractmethod

from ..constants import (
    EXPIRY_URGENT_DAYS,
    RENEWAL_WINDOW_END_DAYS,
    REPREPARE_AFTER_DAYS,
    ActionNeeded,
    ProactiveStatus,
)
from . import messages
from .types import EvaluationContext, ProactiveOutcome


class ProactiveRule(ABC):

    number: int = 0
    status: ProactiveStatus = ProactiveStatus.OK
    action: ActionNeeded = ActionNeeded.NONE
    message_key: str = ''

    @abstractmethod
    def matches(self, ctx: EvaluationContext) -> bool:
        """只读 ctx 的派生字段，不做任何 I/O。"""

    def message_params(self, ctx: EvaluationContext) -> dict:
        return {}

    def outcome(self, ctx: EvaluationContext, locale=None) -> ProactiveOutcome:
        return ProactiveOutcome(
            proactive_status=self.status,
            action_needed=self.action,
            proactive_message=messages.render(self.message_key, locale, **self.message_params(ctx)),
            rule=self.number,
            reference_recipe_id=ctx.reference_recipe.id if ctx.has_reference_recipe else None,
        )

    def __repr__(self):
        return f"<{type(self).__name__} #{self.number} {self.status.value}/{self.action.value}>"


class CycleLimitReachedRule(ProactiveRule):
    number = 1
    status = ProactiveStatus.URGENT
    action = ActionNeeded.CREATE_NEW_RECIPE
    message_key = 'cycle_limit_reached'

    def matches(self, ctx):
        return ctx.has_reference_recipe and ctx.dispensation_count >= ctx.max_cycles

    def message_params(self, ctx):
        return {'max_cycles': ctx.max_cycles}


class ExpiredOrExpiringRule(ProactiveRule):
    number = 2
    status = ProactiveStatus.URGENT
    action = ActionNeeded.CREATE_NEW_RECIPE
    message_key = 'expired_or_expiring'

    def matches(self, ctx):
        # 负数（已过期）同样落在这里
        return ctx.has_reference_recipe and ctx.days_until_due < EXPIRY_URGENT_DAYS


class NoActiveRecipeRule(ProactiveRule):
    number = 3
    status = ProactiveStatus.URGENT
    action = ActionNeeded.CREATE_NEW_RECIPE
    message_key = 'no_active_recipe'

    def matches(self, ctx):
        return ctx.patient.is_chronic and not ctx.has_reference_recipe


class RenewalWindowRule(ProactiveRule):
    number = 4
    status = ProactiveStatus.ATTENTION
    action = ActionNeeded.CREATE_NEW_RECIPE
    message_key = 'renewal_window'

    def matches(self, ctx):
        # 两端都是闭区间；30 属于本规则而不是规则 2
        return (
            ctx.has_reference_recipe
            and EXPIRY_URGENT_DAYS <= ctx.days_until_due <= RENEWAL_WINDOW_END_DAYS
        )


class RepreparationDueRule(ProactiveRule):
    number = 5
    status = ProactiveStatus.ATTENTION
    action = ActionNeeded.REPREPARE_CYCLE
    message_key = 'reprepare_cycle'

    def matches(self, ctx):
        if not ctx.has_reference_recipe:
            return False
        if ctx.days_since_last_dispensation is None:   # 从未调剂过
            return False
        return (
            ctx.days_until_due > RENEWAL_WINDOW_END_DAYS
            and ctx.dispensation_count < ctx.max_cycles
            and ctx.days_since_last_dispensation > REPREPARE_AFTER_DAYS
        )


class UpToDateRule(ProactiveRule):
    number = 6
    status = ProactiveStatus.OK
    action = ActionNeeded.NONE
    message_key = 'up_to_date'

    def matches(self, ctx):
        return True


RULES = (
    CycleLimitReachedRule(),
    ExpiredOrExpiringRule(),
    NoActiveRecipeRule(),
    RenewalWindowRule(),
    RepreparationDueRule(),
    UpToDateRule(),
)
