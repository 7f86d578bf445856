from django.urls import path
from .views import (
    PatientProactiveStatusView,
    ProactiveAlertsView,
    ProactiveEvaluateView,
    ProactiveSweepView,
)

urlpatterns = [
    path('patients/<uuid:patient_id>/proactive-status/', PatientProactiveStatusView.as_view(), name='patient-proactive-status'),
    path('proactive/evaluate/', ProactiveEvaluateView.as_view(), name='proactive-evaluate'),
    path('proactive/sweep/', ProactiveSweepView.as_view(), name='proactive-sweep'),
    path('proactive/alerts/', ProactiveAlertsView.as_view(), name='proactive-alerts'),
]
