import logging
from dataclasses import dataclass
from datetime import tzinfo

from django.conf import settings
from django.core.cache import cache
from django.db.models import Case, IntegerField, Prefetch, Value, When
from django.utils import timezone

from .constants import (
    DEFAULT_MAX_CYCLES,
    TERMINAL_RECIPE_STATUSES,
    ActionNeeded,
    ProactiveStatus,
)
from .evaluation import evaluate
from .evaluation.assembler import select_reference_recipe
from .evaluation.dates import resolve_timezone, to_local_date
from .evaluation.engine import validate_max_cycles
from .evaluation.messages import render
from .evaluation.types import (
    AuditEntry,
    PatientSnapshot,
    ProactiveOutcome,
    RecipeItem,
    RecipeSnapshot,
)
from .exceptions import BlockError, ConfigurationError, ValidationError
from .intake import get_adapter
from .models import Patient, Recipe

logger = logging.getLogger(__name__)

# 非慢病患者在进入引擎之前就短路为 OK / NONE
NOT_CHRONIC_RULE = 0


@dataclass(frozen=True)
class ProactiveConfig:
    max_cycles: int
    tz: tzinfo
    default_locale: str
    cache_timeout: int


def get_proactive_config():
    """从 settings 读取评估配置。max_cycles / 时区非法时 raise ConfigurationError。"""
    return ProactiveConfig(
        max_cycles=validate_max_cycles(getattr(settings, 'PROACTIVE_MAX_CYCLES', DEFAULT_MAX_CYCLES)),
        tz=resolve_timezone(getattr(settings, 'PROACTIVE_TIMEZONE', 'UTC')),
        default_locale=getattr(settings, 'PROACTIVE_DEFAULT_LOCALE', 'es'),
        cache_timeout=getattr(settings, 'PROACTIVE_CACHE_TIMEOUT', 3600),
    )


def resolve_current_date(current_date, config):
    """
    参考日期只在最外层决定一次：调用方没给就读一次时钟，之后整个评估都用这个值。
    """
    if current_date is None:
        return timezone.now().astimezone(config.tz).date()
    return to_local_date(current_date, config.tz, 'currentDate')


# ── ORM → snapshot ─────────────────────────────────────────────────────────

def recipe_to_snapshot(recipe):
    return RecipeSnapshot(
        id=str(recipe.id),
        status=recipe.status,
        due_date=recipe.due_date,
        items=tuple(
            RecipeItem(principal_active_ingredient=item.get('principal_active_ingredient', ''))
            for item in (recipe.items or [])
        ),
        audit_trail=tuple(
            AuditEntry(status=entry.status, date=entry.date)
            for entry in recipe.audit_trail.all()
        ),
        created_at=recipe.created_at,
        is_magistral=recipe.is_magistral,
    )


def patient_to_snapshot(patient, default_locale=None):
    return PatientSnapshot(
        id=str(patient.id),
        name=patient.name,
        is_chronic=patient.is_chronic,
        locale=patient.locale or default_locale,
    )


def _active_recipes_prefetch():
    queryset = (
        Recipe.objects
        .exclude(status__in=[s.value for s in TERMINAL_RECIPE_STATUSES])
        .order_by('created_at', 'id')
        .prefetch_related('audit_trail')
    )
    return Prefetch('recipes', queryset=queryset)


def get_patients_with_active_recipes(chronic_only=True, default_locale=None):
    """
    数据层协作者：逐个 yield (PatientSnapshot, [RecipeSnapshot, ...])。

    - 处方排除 Cancelled / Rejected / Archived，按创建顺序排列
    - audit trail 按写入顺序排列
    - 没有任何有效处方的患者同样会返回（recipes 为空列表），规则 3 依赖这一点
    """
    for _, snapshot, recipes in _iter_patients(chronic_only, default_locale):
        yield snapshot, recipes


def _iter_patients(chronic_only=True, default_locale=None):
    """同上，但额外带上 ORM 行本身：巡检要把结果写回同一行，不能再查第二次。"""
    patients = Patient.objects.all().prefetch_related(_active_recipes_prefetch()).order_by('created_at', 'id')
    if chronic_only:
        patients = patients.filter(is_chronic=True)

    for patient in patients:
        yield (
            patient,
            patient_to_snapshot(patient, default_locale),
            [recipe_to_snapshot(r) for r in patient.recipes.all()],
        )


# ── 单个患者评估 ──────────────────────────────────────────────────────────────

def get_patient(patient_id):
    """Get patient by ID. Raises BlockError if not found."""
    try:
        return Patient.objects.prefetch_related(_active_recipes_prefetch()).get(id=patient_id)
    except Patient.DoesNotExist:
        raise BlockError(
            message='Patient not found',
            code='PATIENT_NOT_FOUND',
            detail={'patient_id': str(patient_id)},
            http_status=404,
        )


def not_chronic_outcome(locale):
    return ProactiveOutcome(
        proactive_status=ProactiveStatus.OK,
        action_needed=ActionNeeded.NONE,
        proactive_message=render('not_chronic', locale),
        rule=NOT_CHRONIC_RULE,
    )


def _cache_key(snapshot, reference, day, max_cycles):
    # reference.updated_at 不在快照里，用 audit trail 长度区分同一天内的新调剂；
    # 文案语言和 max_cycles 都会改变结果，也放进 key
    if reference is None:
        recipe_part = "none"
    else:
        recipe_part = f"{reference.id}:{len(reference.audit_trail)}"
    return f"proactive:{snapshot.id}:{recipe_part}:{snapshot.locale}:{max_cycles}:{day.isoformat()}"


def evaluate_patient(patient_id, current_date=None):
    """
    按需评估单个患者（UI 徽章 / 患者门户通知横幅）。

    结果按 (patient_id, 参考处方, 语言, max_cycles, 日期) 缓存。
    Returns: (patient, ProactiveOutcome, current_date)
    Raises: BlockError(404) / ValidationError / ConfigurationError
    """
    config = get_proactive_config()
    patient = get_patient(patient_id)
    day = resolve_current_date(current_date, config)
    snapshot = patient_to_snapshot(patient, config.default_locale)

    if not patient.is_chronic:
        return patient, not_chronic_outcome(snapshot.locale), day

    recipes = [recipe_to_snapshot(r) for r in patient.recipes.all()]
    reference = select_reference_recipe(recipes, config.tz)
    key = _cache_key(snapshot, reference, day, config.max_cycles)

    cached = cache.get(key)
    if cached is not None:
        logger.debug("[evaluate_patient] cache hit %s", key)
        return patient, cached, day

    outcome = evaluate(snapshot, recipes, day, config.max_cycles, tz=config.tz)
    cache.set(key, outcome, config.cache_timeout)
    return patient, outcome, day


def evaluate_document(source, raw_body, content_type=''):
    """
    无状态评估：请求体自带 patient / recipes（文档库导出格式），不读写数据库。

    maxCycles 缺省时用 settings 里的值；currentDate 缺省时取今天。
    """
    config = get_proactive_config()
    request = get_adapter(source, raw_body, content_type).process()

    max_cycles = config.max_cycles
    if request.max_cycles is not None:
        try:
            max_cycles = validate_max_cycles(request.max_cycles)
        except ConfigurationError as exc:
            # 请求体里给错的 maxCycles 是客户端问题，不是服务端配置问题
            exc.http_status = 400
            raise
    day = resolve_current_date(request.current_date, config)
    locale = request.patient.locale or config.default_locale

    if not request.patient.is_chronic:
        return request, not_chronic_outcome(locale)

    outcome = evaluate(request.patient, request.recipes, day, max_cycles, tz=config.tz, locale=locale)
    return request, outcome


def _has_changed(patient, outcome):
    return (
        patient.proactive_status != outcome.proactive_status.value
        or patient.action_needed != outcome.action_needed.value
        or patient.proactive_message != outcome.proactive_message
    )


def save_outcome(patient, outcome):
    patient.proactive_status = outcome.proactive_status.value
    patient.action_needed = outcome.action_needed.value
    patient.proactive_message = outcome.proactive_message
    patient.proactive_evaluated_at = timezone.now()
    patient.save(update_fields=[
        'proactive_status', 'action_needed', 'proactive_message',
        'proactive_evaluated_at', 'updated_at',
    ])


# ── 批量巡检 ────────────────────────────────────────────────────────────────

def run_proactive_sweep(current_date=None):
    """
    对所有慢病患者做一次主动评估，只在结果变化时写库。

    单个患者数据校验失败 → 记录日志并跳过，继续下一个患者。
    配置错误（max_cycles / 时区）在循环开始前就 raise，整次巡检中止。

    Returns: {'current_date', 'evaluated', 'updated', 'skipped'}
    """
    config = get_proactive_config()
    day = resolve_current_date(current_date, config)
    logger.info("[sweep] 开始主动评估 current_date=%s max_cycles=%d", day, config.max_cycles)

    evaluated = updated = skipped = 0

    for patient, snapshot, recipes in _iter_patients(default_locale=config.default_locale):
        try:
            outcome = evaluate(snapshot, recipes, day, config.max_cycles, tz=config.tz)
        except ValidationError as exc:
            skipped += 1
            logger.warning(
                "[sweep] patient=%s 数据校验失败，跳过: %s (%s)",
                snapshot.id, exc.message, exc.code,
            )
            continue

        evaluated += 1
        if _has_changed(patient, outcome):
            save_outcome(patient, outcome)
            updated += 1
            logger.info(
                "[sweep] patient=%s → %s/%s (rule %d)",
                snapshot.id, outcome.proactive_status.value, outcome.action_needed.value, outcome.rule,
            )

    logger.info("[sweep] 完成：evaluated=%d updated=%d skipped=%d", evaluated, updated, skipped)
    return {
        'current_date': day.isoformat(),
        'evaluated': evaluated,
        'updated': updated,
        'skipped': skipped,
    }


# ── 提醒列表 ────────────────────────────────────────────────────────────────

ALERT_STATUSES = (ProactiveStatus.URGENT.value, ProactiveStatus.ATTENTION.value)


def get_proactive_alerts(status=None):
    """URGENT / ATTENTION 的慢病患者，URGENT 排在前面。可按单个状态过滤。"""
    if status:
        if status not in ALERT_STATUSES:
            raise ValidationError(
                message=f"Unknown alert status: {status!r}.",
                code='INVALID_ALERT_STATUS',
                detail={'allowed': list(ALERT_STATUSES)},
            )
        statuses = [status]
    else:
        statuses = list(ALERT_STATUSES)

    return (
        Patient.objects
        .filter(is_chronic=True, proactive_status__in=statuses)
        .annotate(urgency=Case(
            When(proactive_status=ProactiveStatus.URGENT.value, then=Value(0)),
            default=Value(1),
            output_field=IntegerField(),
        ))
        .order_by('urgency', 'name')
    )
