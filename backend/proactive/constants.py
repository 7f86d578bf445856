"""
领域枚举与规则阈值。

纯 Python，不依赖 Django —— evaluation/ 下的引擎和 models.py 共用同一套取值。
"""

from enum import Enum


class RecipeStatus(str, Enum):
    PENDING_REVIEW_PORTAL = 'pending_review_portal'
    PENDING_VALIDATION = 'pending_validation'
    VALIDATED = 'validated'
    SENT_TO_EXTERNAL = 'sent_to_external'
    PREPARATION = 'preparation'
    QUALITY_CONTROL = 'quality_control'
    RECEIVED_AT_SKOL = 'received_at_skol'
    READY_FOR_PICKUP = 'ready_for_pickup'
    DISPENSED = 'dispensed'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'
    ARCHIVED = 'archived'


class ProactiveStatus(str, Enum):
    OK = 'OK'
    ATTENTION = 'ATTENTION'
    URGENT = 'URGENT'


class ActionNeeded(str, Enum):
    NONE = 'NONE'
    CREATE_NEW_RECIPE = 'CREATE_NEW_RECIPE'
    REPREPARE_CYCLE = 'REPREPARE_CYCLE'


# 不参与主动评估的终态
TERMINAL_RECIPE_STATUSES = frozenset({
    RecipeStatus.CANCELLED,
    RecipeStatus.REJECTED,
    RecipeStatus.ARCHIVED,
})

# ── 规则阈值（单位：天） ─────────────────────────────────────────────────────
EXPIRY_URGENT_DAYS = 30        # days_until_due < 30 → URGENT
RENEWAL_WINDOW_END_DAYS = 60   # 30 <= days_until_due <= 60 → ATTENTION
REPREPARE_AFTER_DAYS = 25      # 距上次调剂 > 25 天 → 该准备下一周期

# 药房默认的单张处方最大调剂次数
DEFAULT_MAX_CYCLES = 4
