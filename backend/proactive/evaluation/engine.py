"""
Rule Engine —— 主动评估的唯一入口。

evaluate() 是确定性的纯函数：
  - current_date 由调用方注入，整个评估过程不读系统时钟
  - 对合法输入总是返回六个结果之一
  - 数据缺失 / 格式错误直接 raise，从不替换成默认结果
"""

import logging
from typing import Optional, Sequence

from ..exceptions import ConfigurationError
from .assembler import assemble
from .dates import resolve_timezone, to_local_date
from .rules import RULES
from .types import DateLike, PatientSnapshot, ProactiveOutcome, RecipeSnapshot

logger = logging.getLogger(__name__)


def validate_max_cycles(max_cycles) -> int:
    # bool 是 int 的子类，要单独排除
    if isinstance(max_cycles, bool) or not isinstance(max_cycles, int) or max_cycles <= 0:
        raise ConfigurationError(
            message=f"maxCycles must be a positive integer, got {max_cycles!r}.",
            code='INVALID_MAX_CYCLES',
            detail={'max_cycles': repr(max_cycles)},
        )
    return max_cycles


def evaluate(
    patient: PatientSnapshot,
    recipes: Sequence[RecipeSnapshot],
    current_date: DateLike,
    max_cycles: int,
    tz=None,
    locale: Optional[str] = None,
) -> ProactiveOutcome:
    """
    评估一个患者的主动随访状态。

    Args:
        patient:      患者快照
        recipes:      该患者的处方快照，按创建顺序排列
        current_date: 参考日期（date / datetime / ISO 字符串）
        max_cycles:   单张处方最大调剂次数（正整数）
        tz:           计算自然日差所用的时区（名称或 tzinfo），默认 UTC
        locale:       提示文案语言，默认取 patient.locale

    Raises:
        ConfigurationError: max_cycles 非法 / 时区未知
        ValidationError:    参考处方缺 dueDate、日期格式错误等
    """
    max_cycles = validate_max_cycles(max_cycles)
    zone = resolve_timezone(tz)
    today = to_local_date(current_date, zone, 'currentDate')

    ctx = assemble(patient, recipes, today, max_cycles, zone)
    rule = next(r for r in RULES if r.matches(ctx))

    logger.debug(
        "patient=%s reference_recipe=%s dispensations=%s days_until_due=%s "
        "days_since_last=%s → rule %d",
        patient.id,
        ctx.reference_recipe.id if ctx.has_reference_recipe else None,
        ctx.dispensation_count, ctx.days_until_due, ctx.days_since_last_dispensation,
        rule.number,
    )
    return rule.outcome(ctx, locale or patient.locale)
