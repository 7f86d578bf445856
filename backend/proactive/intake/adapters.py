"""
具体 Adapter 实现。

新增数据源：在此文件添加一个类，然后在 factory.py 注册即可。

已注册数据源：
  document_store — DocumentStoreAdapter (文档库导出的 camelCase JSON，状态为西语标签)
  internal       — InternalAdapter      (本系统自己的 snake_case JSON，状态为枚举值)
"""

from typing import Any

from ..constants import RecipeStatus
from ..evaluation.types import (
    AuditEntry,
    EvaluationRequest,
    PatientSnapshot,
    RecipeItem,
    RecipeSnapshot,
)
from .base import BaseIntakeAdapter


# ── DocumentStoreAdapter ───────────────────────────────────────────────────
#
# 外部格式示例（JSON）:
# {
#   "patient": { "id": "p-001", "name": "María Soto", "isChronic": true },
#   "recipes": [
#     {
#       "id": "r-017",
#       "status": "Dispensada",
#       "dueDate": "2025-03-01",
#       "createdAt": "2024-09-01T12:00:00Z",
#       "items": [ { "principalActiveIngredient": "Minoxidil" } ],
#       "auditTrail": [ { "date": "2024-09-10T15:30:00Z", "status": "Dispensada" } ]
#     }
#   ],
#   "currentDate": "2024-11-20",
#   "maxCycles": 4
# }
#
# 状态既可能是西语展示标签（"Dispensada"），也可能是枚举键名（"Dispensed"）。

DOCUMENT_STATUS_LABELS = {
    'Revisión Portal': RecipeStatus.PENDING_REVIEW_PORTAL,
    'Pendiente Validación': RecipeStatus.PENDING_VALIDATION,
    'Validada': RecipeStatus.VALIDATED,
    'Enviada a Recetario': RecipeStatus.SENT_TO_EXTERNAL,
    'En Preparación': RecipeStatus.PREPARATION,
    'Control de Calidad': RecipeStatus.QUALITY_CONTROL,
    'Recepcionado en Skol': RecipeStatus.RECEIVED_AT_SKOL,
    'Lista para Retiro': RecipeStatus.READY_FOR_PICKUP,
    'Dispensada': RecipeStatus.DISPENSED,
    'Rechazada': RecipeStatus.REJECTED,
    'Anulada': RecipeStatus.CANCELLED,
    'Archivada': RecipeStatus.ARCHIVED,
}

# "PendingValidation" → RecipeStatus.PENDING_VALIDATION
DOCUMENT_STATUS_KEYS = {
    member.name.title().replace('_', ''): member for member in RecipeStatus
}


def normalize_document_status(raw_status: Any) -> Any:
    """
    已知标签 / 键名 → RecipeStatus；未知值原样返回，由引擎报 INVALID_STATUS。
    """
    if isinstance(raw_status, str):
        text = raw_status.strip()
        if text in DOCUMENT_STATUS_LABELS:
            return DOCUMENT_STATUS_LABELS[text]
        if text in DOCUMENT_STATUS_KEYS:
            return DOCUMENT_STATUS_KEYS[text]
    return raw_status


class DocumentStoreAdapter(BaseIntakeAdapter):
    source = "document_store"

    def _recipe(self, raw: dict) -> RecipeSnapshot:
        return RecipeSnapshot(
            id=str(raw.get("id") or "").strip(),
            status=normalize_document_status(raw.get("status")),
            due_date=raw.get("dueDate"),
            items=tuple(
                RecipeItem(principal_active_ingredient=(item.get("principalActiveIngredient") or "").strip())
                for item in (raw.get("items") or [])
            ),
            audit_trail=tuple(
                AuditEntry(status=normalize_document_status(entry.get("status")), date=entry.get("date"))
                for entry in (raw.get("auditTrail") or [])
            ),
            created_at=raw.get("createdAt"),
            is_magistral=raw.get("isMagistral", True),
        )

    def transform(self) -> EvaluationRequest:
        raw = self._parsed
        patient = raw.get("patient") or {}

        return EvaluationRequest(
            source=self.source,
            raw_payload=raw,
            patient=PatientSnapshot(
                id=str(patient.get("id") or "").strip(),
                name=(patient.get("name") or "").strip() or "Unknown",
                is_chronic=patient.get("isChronic"),
                locale=patient.get("locale") or None,
            ),
            recipes=[self._recipe(r) for r in (raw.get("recipes") or [])],
            current_date=raw.get("currentDate"),
            max_cycles=raw.get("maxCycles"),
        )


# ── InternalAdapter ────────────────────────────────────────────────────────
#
# 本系统自己的格式（snake_case，状态直接用枚举值）:
# {
#   "patient": { "id": "...", "name": "...", "is_chronic": true, "locale": "en" },
#   "recipes": [
#     { "id": "...", "status": "dispensed", "due_date": "2025-03-01",
#       "created_at": "...", "is_magistral": true,
#       "items": [ { "principal_active_ingredient": "..." } ],
#       "audit_trail": [ { "date": "...", "status": "dispensed" } ] }
#   ],
#   "current_date": "2024-11-20",
#   "max_cycles": 4
# }

class InternalAdapter(BaseIntakeAdapter):
    source = "internal"

    def _recipe(self, raw: dict) -> RecipeSnapshot:
        return RecipeSnapshot(
            id=str(raw.get("id") or "").strip(),
            status=raw.get("status"),
            due_date=raw.get("due_date"),
            items=tuple(
                RecipeItem(principal_active_ingredient=(item.get("principal_active_ingredient") or "").strip())
                for item in (raw.get("items") or [])
            ),
            audit_trail=tuple(
                AuditEntry(status=entry.get("status"), date=entry.get("date"))
                for entry in (raw.get("audit_trail") or [])
            ),
            created_at=raw.get("created_at"),
            is_magistral=raw.get("is_magistral", True),
        )

    def transform(self) -> EvaluationRequest:
        raw = self._parsed
        patient = raw.get("patient") or {}

        return EvaluationRequest(
            source=self.source,
            raw_payload=raw,
            patient=PatientSnapshot(
                id=str(patient.get("id") or "").strip(),
                name=(patient.get("name") or "").strip() or "Unknown",
                is_chronic=patient.get("is_chronic"),
                locale=patient.get("locale") or None,
            ),
            recipes=[self._recipe(r) for r in (raw.get("recipes") or [])],
            current_date=raw.get("current_date"),
            max_cycles=raw.get("max_cycles"),
        )
