"""
主动患者状态评估（Proactive Patient Status Evaluator）。

纯 Python 包，不依赖 Django：services.py / tasks.py / views.py 都只通过 evaluate() 调用。
"""

from .engine import evaluate
from .types import (
    AuditEntry,
    EvaluationContext,
    EvaluationRequest,
    PatientSnapshot,
    ProactiveOutcome,
    RecipeItem,
    RecipeSnapshot,
)

__all__ = [
    'evaluate',
    'AuditEntry',
    'EvaluationContext',
    'EvaluationRequest',
    'PatientSnapshot',
    'ProactiveOutcome',
    'RecipeItem',
    'RecipeSnapshot',
]
