"""
Unit tests for the proactive rule engine.

纯 Python，不需要数据库：
1. 六个典型场景
2. 规则优先级（先命中先返回）
3. 30 / 60 天边界、调剂次数边界
4. 无处方路径、幂等性
5. 数据错误 / 配置错误必须 raise，不能退化成 OK
"""
from datetime import date, datetime, timezone as dt_timezone

import pytest

from proactive.constants import ActionNeeded, ProactiveStatus, RecipeStatus
from proactive.evaluation import evaluate
from proactive.evaluation.rules import RULES
from proactive.evaluation.types import AuditEntry, RecipeSnapshot
from proactive.exceptions import ConfigurationError, ValidationError
from tests.conftest import TODAY, make_patient, make_recipe


def run(recipes, max_cycles=6, patient=None, **kwargs):
    return evaluate(patient or make_patient(), recipes, TODAY, max_cycles, **kwargs)


# -------------------------------------------------------------------
# Example scenarios
# -------------------------------------------------------------------

class TestScenarios:

    def test_overdue_recipe_is_urgent(self):
        outcome = run([make_recipe(due_in=-5, dispensed_days_ago=(20,))])

        assert outcome.proactive_status == ProactiveStatus.URGENT
        assert outcome.action_needed == ActionNeeded.CREATE_NEW_RECIPE
        assert outcome.proactive_message == "New recipe required. Document is expired or about to expire."
        assert outcome.rule == 2

    def test_cycle_limit_wins_even_with_far_due_date(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(150, 120, 90, 60, 30, 5))])

        assert outcome.proactive_status == ProactiveStatus.URGENT
        assert outcome.action_needed == ActionNeeded.CREATE_NEW_RECIPE
        assert outcome.proactive_message == "New recipe required. Preparation cycle limit of 6 reached."
        assert outcome.rule == 1

    def test_chronic_patient_without_recipes(self):
        outcome = run([])

        assert outcome.proactive_status == ProactiveStatus.URGENT
        assert outcome.action_needed == ActionNeeded.CREATE_NEW_RECIPE
        assert outcome.proactive_message == (
            "Chronic patient with no active magistral recipe. One must be arranged."
        )
        assert outcome.rule == 3
        assert outcome.reference_recipe_id is None

    def test_preventive_window(self):
        outcome = run([make_recipe(due_in=45, dispensed_days_ago=(40, 10))])

        assert outcome.proactive_status == ProactiveStatus.ATTENTION
        assert outcome.action_needed == ActionNeeded.CREATE_NEW_RECIPE
        assert outcome.proactive_message == (
            "Attention: recipe will expire soon. Plan the request for a new one."
        )
        assert outcome.rule == 4

    def test_time_to_reprepare(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(60, 30))])

        assert outcome.proactive_status == ProactiveStatus.ATTENTION
        assert outcome.action_needed == ActionNeeded.REPREPARE_CYCLE
        assert outcome.proactive_message == "Time to prepare the next medication cycle for the patient."
        assert outcome.rule == 5

    def test_recently_dispensed_is_ok(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(10,))])

        assert outcome.proactive_status == ProactiveStatus.OK
        assert outcome.action_needed == ActionNeeded.NONE
        assert outcome.proactive_message == (
            "Patient up to date with treatment. No immediate action required."
        )
        assert outcome.rule == 6
        assert outcome.reference_recipe_id == 'r-1'


# -------------------------------------------------------------------
# Priority & boundaries
# -------------------------------------------------------------------

class TestPriority:

    def test_rules_are_ordered_one_to_six(self):
        assert [rule.number for rule in RULES] == [1, 2, 3, 4, 5, 6]

    def test_cycle_limit_beats_repreparation(self):
        # 同时满足规则 1（次数用尽）和规则 5 的"距上次调剂 > 25 天"
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(90, 60, 30))], max_cycles=3)
        assert outcome.rule == 1

    def test_cycle_limit_beats_expiry(self):
        outcome = run([make_recipe(due_in=-10, dispensed_days_ago=(60, 30))], max_cycles=2)
        assert outcome.rule == 1

    def test_expiry_beats_preventive_and_repreparation(self):
        outcome = run([make_recipe(due_in=10, dispensed_days_ago=(40,))])
        assert outcome.rule == 2


class TestDueDateBoundaries:

    @pytest.mark.parametrize('due_in, expected_rule', [
        (-1, 2),
        (0, 2),
        (29, 2),
        (30, 4),
        (60, 4),
    ])
    def test_thirty_and_sixty_day_edges(self, due_in, expected_rule):
        outcome = run([make_recipe(due_in=due_in, dispensed_days_ago=(40,))])
        assert outcome.rule == expected_rule

    def test_sixty_one_days_is_eligible_for_repreparation(self):
        outcome = run([make_recipe(due_in=61, dispensed_days_ago=(26,))])
        assert outcome.rule == 5

    def test_sixty_one_days_recently_dispensed_is_ok(self):
        outcome = run([make_recipe(due_in=61, dispensed_days_ago=(25,))])
        assert outcome.rule == 6


class TestCycleBoundaries:

    def test_one_below_limit_is_not_rule_one(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(90, 60, 5))], max_cycles=4)
        assert outcome.rule != 1
        assert outcome.rule == 6

    def test_exactly_at_limit_is_rule_one(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(90, 60, 30, 5))], max_cycles=4)
        assert outcome.rule == 1

    def test_only_dispensed_entries_are_counted(self):
        recipe = RecipeSnapshot(
            id='r-1',
            status=RecipeStatus.DISPENSED,
            due_date='2025-02-18',
            audit_trail=(
                AuditEntry(RecipeStatus.VALIDATED, '2024-09-01T10:00:00+00:00'),
                AuditEntry(RecipeStatus.PREPARATION, '2024-09-02T10:00:00+00:00'),
                AuditEntry(RecipeStatus.DISPENSED, '2024-09-03T10:00:00+00:00'),
                AuditEntry(RecipeStatus.PREPARATION, '2024-11-15T10:00:00+00:00'),
                AuditEntry(RecipeStatus.DISPENSED, '2024-11-16T10:00:00+00:00'),
            ),
        )
        outcome = run([recipe], max_cycles=3)
        assert outcome.rule == 6


class TestRepreparation:

    def test_never_dispensed_recipe_is_ok(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(), status=RecipeStatus.VALIDATED)])
        assert outcome.rule == 6

    def test_uses_most_recent_dispensation(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(80, 3))])
        assert outcome.rule == 6


# -------------------------------------------------------------------
# No-recipe path
# -------------------------------------------------------------------

class TestNoActiveRecipe:

    @pytest.mark.parametrize('status', [
        RecipeStatus.CANCELLED,
        RecipeStatus.REJECTED,
        RecipeStatus.ARCHIVED,
    ])
    def test_terminal_recipes_are_ignored(self, status):
        outcome = run([make_recipe(due_in=-100, dispensed_days_ago=(1, 2, 3, 4, 5, 6), status=status)])
        assert outcome.rule == 3

    def test_non_magistral_recipes_are_ignored(self):
        outcome = run([make_recipe(due_in=90, is_magistral=False)])
        assert outcome.rule == 3

    def test_non_chronic_without_recipes_falls_through_to_ok(self):
        outcome = run([], patient=make_patient(is_chronic=False))
        assert outcome.rule == 6


# -------------------------------------------------------------------
# Determinism
# -------------------------------------------------------------------

class TestDeterminism:

    def test_idempotent(self):
        recipes = [make_recipe(due_in=90, dispensed_days_ago=(60, 30))]
        first = run(recipes)
        second = run(recipes)

        assert first == second
        assert first.as_dict() == second.as_dict()

    def test_current_date_accepts_date_datetime_and_string(self):
        recipes = [make_recipe(due_in=45)]
        by_date = evaluate(make_patient(), recipes, TODAY, 6)
        by_string = evaluate(make_patient(), recipes, '2024-11-20', 6)
        by_datetime = evaluate(
            make_patient(), recipes, datetime(2024, 11, 20, 12, 0, tzinfo=dt_timezone.utc), 6,
        )
        assert by_date == by_string == by_datetime

    def test_day_difference_uses_configured_timezone(self):
        # 2024-11-21T01:00Z 在 Santiago（UTC-3）仍是 11-20
        recipes = [make_recipe(due_in=30)]
        in_utc = evaluate(make_patient(), recipes, '2024-11-21T01:00:00+00:00', 6)
        in_santiago = evaluate(
            make_patient(), recipes, '2024-11-21T01:00:00+00:00', 6, tz='America/Santiago',
        )
        assert in_utc.rule == 2          # UTC: 29 天
        assert in_santiago.rule == 4     # Santiago: 30 天


class TestLocale:

    def test_spanish_message(self):
        outcome = run([make_recipe(due_in=90, dispensed_days_ago=(150, 120, 90, 60, 30, 5))],
                      patient=make_patient(locale='es'))
        assert outcome.proactive_message == (
            "Se requiere una nueva receta. Se alcanzó el límite de 6 ciclos de preparación."
        )

    def test_explicit_locale_overrides_patient(self):
        outcome = run([], patient=make_patient(locale='es'), locale='en')
        assert outcome.proactive_message.startswith("Chronic patient")

    def test_unknown_locale_falls_back_to_english(self):
        outcome = run([], patient=make_patient(locale='fr-FR'))
        assert outcome.proactive_message.startswith("Chronic patient")


# -------------------------------------------------------------------
# Failure semantics
# -------------------------------------------------------------------

class TestValidationErrors:

    def test_missing_due_date_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            run([make_recipe(due_in=None)])

        assert exc_info.value.code == 'MISSING_DUE_DATE'
        assert exc_info.value.detail == {'recipe_id': 'r-1'}

    def test_malformed_due_date_raises(self):
        recipe = RecipeSnapshot(id='r-1', status=RecipeStatus.VALIDATED, due_date='18/02/2025')
        with pytest.raises(ValidationError) as exc_info:
            run([recipe])
        assert exc_info.value.code == 'INVALID_DATE'

    def test_malformed_audit_date_raises(self):
        recipe = RecipeSnapshot(
            id='r-1',
            status=RecipeStatus.DISPENSED,
            due_date='2025-02-18',
            audit_trail=(AuditEntry(RecipeStatus.DISPENSED, 'last tuesday'),),
        )
        with pytest.raises(ValidationError):
            run([recipe])

    def test_malformed_current_date_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            evaluate(make_patient(), [], 'not-a-date', 6)
        assert exc_info.value.detail['field'] == 'currentDate'

    def test_unknown_status_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            run([make_recipe(status='lost_in_transit')])
        assert exc_info.value.code == 'INVALID_STATUS'

    def test_stale_recipe_with_missing_due_date_is_not_validated(self):
        # 只有参考处方需要 dueDate；被更新处方取代的旧处方不检查
        old = make_recipe(recipe_id='old', due_in=None, created_at='2024-01-01T00:00:00+00:00')
        new = make_recipe(recipe_id='new', due_in=90, created_at='2024-06-01T00:00:00+00:00')
        assert run([old, new]).reference_recipe_id == 'new'


class TestConfigurationErrors:

    @pytest.mark.parametrize('max_cycles', [0, -1, 2.5, '4', None, True])
    def test_invalid_max_cycles(self, max_cycles):
        with pytest.raises(ConfigurationError) as exc_info:
            run([], max_cycles=max_cycles)
        assert exc_info.value.code == 'INVALID_MAX_CYCLES'

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError) as exc_info:
            run([], tz='Mars/Olympus_Mons')
        assert exc_info.value.code == 'INVALID_TIMEZONE'

    def test_configuration_checked_before_data(self):
        with pytest.raises(ConfigurationError):
            run([make_recipe(due_in=None)], max_cycles=0)
