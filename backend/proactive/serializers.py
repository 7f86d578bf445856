"""
Response serializers — 评估结果 / ORM 对象 → JSON-able dict。

只负责「输出格式化」，不做任何解析或校验。
输入解析和校验在 proactive/intake/ adapter 系统。
"""


def serialize_outcome(outcome):
    return {
        'proactive_status': outcome.proactive_status.value,
        'action_needed': outcome.action_needed.value,
        'proactive_message': outcome.proactive_message,
        'rule': outcome.rule,
        'reference_recipe_id': outcome.reference_recipe_id,
    }


def serialize_patient_status(patient, outcome, current_date):
    """GET /api/patients/<id>/proactive-status/ 的响应。"""
    return {
        'patient_id': str(patient.id),
        'patient_name': patient.name,
        'is_chronic': patient.is_chronic,
        'current_date': current_date.isoformat(),
        **serialize_outcome(outcome),
    }


def serialize_document_evaluation(request, outcome):
    """POST /api/proactive/evaluate/ 的响应。"""
    return {
        'source': request.source,
        'patient_id': request.patient.id,
        **serialize_outcome(outcome),
    }


def serialize_sweep_queued(task_id, current_date):
    return {
        'task_id': task_id,
        'status': 'queued',
        'current_date': current_date,
        'message': 'Proactive sweep queued.',
    }


def serialize_alerts(patients):
    """Serialize proactive alerts list (URGENT first)."""
    results = [
        {
            'patient_id': str(patient.id),
            'patient_name': patient.name,
            'proactive_status': patient.proactive_status,
            'action_needed': patient.action_needed,
            'proactive_message': patient.proactive_message,
            'evaluated_at': (
                patient.proactive_evaluated_at.isoformat() if patient.proactive_evaluated_at else None
            ),
        }
        for patient in patients
    ]
    return {
        'count': len(results),
        'alerts': results,
    }
