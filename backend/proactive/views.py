from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .serializers import (
    serialize_alerts,
    serialize_document_evaluation,
    serialize_patient_status,
    serialize_sweep_queued,
)


class PatientProactiveStatusView(APIView):
    """GET /api/patients/<patient_id>/proactive-status/?date=YYYY-MM-DD - On-demand evaluation"""

    def get(self, request, patient_id):
        patient, outcome, current_date = services.evaluate_patient(
            patient_id, current_date=request.query_params.get('date'),
        )
        return Response(serialize_patient_status(patient, outcome, current_date))


class ProactiveEvaluateView(APIView):
    """
    POST /api/proactive/evaluate/ - Stateless evaluation of a raw document payload

    数据源由 Header X-Evaluation-Source 指定（默认 document_store）。
    直接把原始 body 交给 intake adapter，不走 DRF 的 parser。
    """

    def post(self, request):
        source = request.headers.get('X-Evaluation-Source', '')
        eval_request, outcome = services.evaluate_document(
            source, request.body, content_type=request.content_type,
        )
        return Response(serialize_document_evaluation(eval_request, outcome))


class ProactiveSweepView(APIView):
    """POST /api/proactive/sweep/ - Queue the proactive sweep for all chronic patients"""

    def post(self, request):
        from proactive.tasks import run_proactive_sweep_task

        current_date = request.data.get('current_date') if isinstance(request.data, dict) else None
        if current_date is not None:
            # 入队前先校验，格式错误直接 400，而不是在 worker 里才失败
            config = services.get_proactive_config()
            current_date = services.resolve_current_date(current_date, config).isoformat()
        result = run_proactive_sweep_task.delay(current_date)
        return Response(
            serialize_sweep_queued(result.id, current_date),
            status=status.HTTP_202_ACCEPTED,
        )


class ProactiveAlertsView(APIView):
    """GET /api/proactive/alerts/?status=URGENT|ATTENTION - Patients needing action, URGENT first"""

    def get(self, request):
        patients = services.get_proactive_alerts(request.query_params.get('status'))
        return Response(serialize_alerts(patients))
