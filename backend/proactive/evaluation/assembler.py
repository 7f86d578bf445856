"""
Input Assembler：从患者的全部处方中挑出参考处方，并计算规则需要的派生指标。

纯函数，无副作用。
"""

from datetime import date, tzinfo
from typing import Optional, Sequence

from ..constants import TERMINAL_RECIPE_STATUSES, RecipeStatus
from ..exceptions import ValidationError
from .dates import days_between, to_local_date, to_local_datetime
from .types import EvaluationContext, PatientSnapshot, RecipeSnapshot


def coerce_status(value, field: str) -> RecipeStatus:
    try:
        return RecipeStatus(value)
    except ValueError as exc:
        raise ValidationError(
            message=f"Unknown recipe status in '{field}': {value!r}.",
            code='INVALID_STATUS',
            detail={'field': field, 'value': str(value)},
        ) from exc


def select_reference_recipe(recipes: Sequence[RecipeSnapshot], tz: tzinfo) -> Optional[RecipeSnapshot]:
    """
    参考处方 = 最近创建的、仍然有效（非 Cancelled / Rejected / Archived）的magistral处方。

    按 created_at 取最新；created_at 相同或缺失时按序列位置决定
    （调用方保证序列按创建顺序排列，越靠后越新）。
    一张都没有时返回 None，绝不退回到一张过期的旧处方。
    """
    best = None
    best_key = None

    for index, recipe in enumerate(recipes):
        status = coerce_status(recipe.status, f"recipes[{index}].status")
        if status in TERMINAL_RECIPE_STATUSES or not recipe.is_magistral:
            continue

        # 没有 created_at 的处方排在所有有时间戳的处方之前
        if recipe.created_at is None:
            key = (0, 0.0, index)
        else:
            created = to_local_datetime(recipe.created_at, tz, f"recipes[{index}].created_at")
            key = (1, created.timestamp(), index)

        if best_key is None or key > best_key:
            best, best_key = recipe, key

    return best


def count_dispensations(recipe: RecipeSnapshot) -> int:
    return sum(
        1 for i, entry in enumerate(recipe.audit_trail)
        if coerce_status(entry.status, f"auditTrail[{i}].status") == RecipeStatus.DISPENSED
    )


def last_dispensation_date(recipe: RecipeSnapshot, tz: tzinfo) -> Optional[date]:
    # 每条记录的日期都要解析，非调剂记录的日期写错同样报错
    dates = []
    for i, entry in enumerate(recipe.audit_trail):
        entry_date = to_local_date(entry.date, tz, f"auditTrail[{i}].date")
        if coerce_status(entry.status, f"auditTrail[{i}].status") == RecipeStatus.DISPENSED:
            dates.append(entry_date)
    return max(dates) if dates else None


def assemble(
    patient: PatientSnapshot,
    recipes: Sequence[RecipeSnapshot],
    current_date: date,
    max_cycles: int,
    tz: tzinfo,
) -> EvaluationContext:
    reference = select_reference_recipe(recipes, tz)
    if reference is None:
        return EvaluationContext(patient=patient, current_date=current_date, max_cycles=max_cycles)

    if reference.due_date is None or reference.due_date == '':
        raise ValidationError(
            message=f"Recipe {reference.id} has no dueDate.",
            code='MISSING_DUE_DATE',
            detail={'recipe_id': reference.id},
        )
    due_date = to_local_date(reference.due_date, tz, 'dueDate')

    last_dispensed = last_dispensation_date(reference, tz)

    return EvaluationContext(
        patient=patient,
        current_date=current_date,
        max_cycles=max_cycles,
        reference_recipe=reference,
        dispensation_count=count_dispensations(reference),
        days_until_due=days_between(current_date, due_date),
        days_since_last_dispensation=(
            days_between(last_dispensed, current_date) if last_dispensed is not None else None
        ),
    )
