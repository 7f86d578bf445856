"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.
"""
import pytest
from datetime import date, datetime, timedelta, timezone as dt_timezone

import factory
from django.core.cache import cache
from rest_framework.test import APIClient

from proactive.constants import RecipeStatus
from proactive.evaluation.types import AuditEntry, PatientSnapshot, RecipeSnapshot
from proactive.models import Patient, Recipe, RecipeAuditEntry


TODAY = date(2024, 11, 20)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class PatientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Patient

    name = factory.Sequence(lambda n: f'Paciente {n}')
    rut = factory.Sequence(lambda n: f'{10000000 + n}-{n % 10}')
    is_chronic = True
    locale = 'en'


class RecipeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Recipe

    patient = factory.SubFactory(PatientFactory)
    status = RecipeStatus.DISPENSED.value
    due_date = TODAY + timedelta(days=90)
    is_magistral = True
    items = factory.LazyFunction(lambda: [{'principal_active_ingredient': 'Minoxidil'}])
    created_at = factory.Sequence(
        lambda n: datetime(2024, 6, 1, 12, 0, tzinfo=dt_timezone.utc) + timedelta(minutes=n)
    )


class RecipeAuditEntryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = RecipeAuditEntry

    recipe = factory.SubFactory(RecipeFactory)
    status = RecipeStatus.DISPENSED.value
    date = datetime(2024, 10, 1, 15, 0, tzinfo=dt_timezone.utc)


def dispense(recipe, *days_ago):
    """在 recipe 的 audit trail 里追加若干条 Dispensed 记录（相对 TODAY 的天数）。"""
    for n in days_ago:
        RecipeAuditEntryFactory(
            recipe=recipe,
            date=datetime.combine(TODAY - timedelta(days=n), datetime.min.time()).replace(
                hour=15, tzinfo=dt_timezone.utc,
            ),
        )
    return recipe


# ---------------------------------------------------------------------------
# Snapshot builders（纯引擎测试用，不碰数据库）
# ---------------------------------------------------------------------------

def make_patient(is_chronic=True, locale='en', patient_id='p-1'):
    return PatientSnapshot(id=patient_id, name='María Soto', is_chronic=is_chronic, locale=locale)


def make_recipe(
    recipe_id='r-1',
    due_in=90,
    dispensed_days_ago=(),
    status=RecipeStatus.DISPENSED,
    created_at='2024-06-01T12:00:00+00:00',
    is_magistral=True,
    today=TODAY,
):
    """due_in / dispensed_days_ago 都是相对 today 的天数。"""
    trail = tuple(
        AuditEntry(status=RecipeStatus.DISPENSED, date=f"{(today - timedelta(days=n)).isoformat()}T15:00:00+00:00")
        for n in dispensed_days_ago
    )
    return RecipeSnapshot(
        id=recipe_id,
        status=status,
        due_date=(today + timedelta(days=due_in)).isoformat() if due_in is not None else None,
        audit_trail=trail,
        created_at=created_at,
        is_magistral=is_magistral,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """DRF test client for integration tests."""
    return APIClient()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sample_document_payload():
    """Minimal valid document-store payload for POST /api/proactive/evaluate/."""
    return {
        'patient': {'id': 'p-001', 'name': 'María Soto', 'isChronic': True, 'locale': 'en'},
        'recipes': [
            {
                'id': 'r-017',
                'status': 'Dispensada',
                'dueDate': '2025-02-18',
                'createdAt': '2024-06-01T12:00:00Z',
                'items': [{'principalActiveIngredient': 'Minoxidil'}],
                'auditTrail': [
                    {'date': '2024-07-01T15:00:00Z', 'status': 'Dispensada'},
                    {'date': '2024-10-21T15:00:00Z', 'status': 'Dispensada'},
                ],
            },
        ],
        'currentDate': '2024-11-20',
        'maxCycles': 6,
    }
