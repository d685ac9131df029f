"""
Test Suite for the WHO MEC Rules Engine

Covers the partition and reason contracts, the age / smoking / postpartum
scenarios, max-wins conflict resolution and malformed-rule tolerance.

Run: pytest test_mec_rules_engine.py
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List

import pytest

from mec_rules import Rule, RuleEffect, MEC_RULES, RULE_SECTIONS
from mec_rules_engine import (
    MECRulesEngine,
    METHODS,
    MEC_METHOD_NAMES,
    eligible_methods,
    format_mec_response,
)


NOW = datetime(2026, 3, 1, 12, 0, 0)


def scores_of(result) -> Dict[str, int]:
    return {r.method_key: r.score for r in result.mec_results}


def reasons_of(result, method_key: str) -> List[str]:
    return next(r.reasons for r in result.mec_results if r.method_key == method_key)


# ==================== SCENARIOS ====================

@dataclass
class MECScenario:
    """Answers plus the scores expected for a subset of methods"""
    name: str
    answers: Dict[str, Any]
    expected_scores: Dict[str, int]
    expected_avoid: List[str] = field(default_factory=list)
    expected_greater_benefit: List[str] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────
# CATEGORY 1: AGE
# ──────────────────────────────────────────────────────────────

AGE_SCENARIOS = [
    MECScenario(
        name="Age 16 - DMPA and IUD caution",
        answers={"age": 16},
        expected_scores={"d": 2, "f": 2, "g": 2, "a": 1, "h": 1},
    ),
    MECScenario(
        name="Age 18 - IUDs in greater benefit",
        answers={"age": 18},
        expected_scores={"d": 1, "f": 2, "g": 2},
        expected_greater_benefit=["f", "g"],
    ),
    MECScenario(
        name="Age 30 - sterilization avoided",
        answers={"age": 30},
        expected_scores={"h": 3, "o": 3, "f": 1},
        expected_avoid=["h", "o"],
    ),
    MECScenario(
        name="Age as numeric string",
        answers={"age": "30"},
        expected_scores={"h": 3, "o": 3},
    ),
    MECScenario(
        name="Age 46 - DMPA and combined caution",
        answers={"age": 46},
        expected_scores={"d": 2, "a": 2, "b": 2, "i": 2, "k": 2, "h": 1},
    ),
]

# ──────────────────────────────────────────────────────────────
# CATEGORY 2: CARDIOVASCULAR RISK
# ──────────────────────────────────────────────────────────────

CVS_SCENARIOS = [
    MECScenario(
        name="Smoker aged 40, 10 per day",
        answers={"age": 40, "smokes": True, "cigarettes-per-day": 10},
        expected_scores={"a": 3, "b": 3, "i": 3, "k": 2},
        expected_avoid=["a", "b", "i"],
        expected_greater_benefit=["k"],
    ),
    MECScenario(
        name="Smoker aged 45, 20 per day",
        answers={"age": 45, "smokes": True, "cigarettes-per-day": 20},
        expected_scores={"a": 4, "b": 4, "i": 4, "k": 3},
        expected_avoid=["a", "b", "i", "k"],
    ),
    MECScenario(
        name="Smoker aged 25",
        answers={"age": 25, "smokes": True},
        expected_scores={"a": 2, "b": 2, "i": 2, "k": 2},
    ),
    MECScenario(
        name="BMI over 29 adult",
        answers={"age": 25, "weight": 90, "height": 165},
        expected_scores={"a": 2, "b": 2, "k": 2, "i": 1},
    ),
    MECScenario(
        name="Stage 2 hypertension",
        answers={"has-hypertension": True, "blood-pressure": {"systolic": 165, "diastolic": 95}},
        expected_scores={"a": 4, "b": 4, "k": 4, "d": 3, "c": 2, "e": 2, "g": 2},
    ),
    MECScenario(
        name="Hypertension without a reading",
        answers={"has-hypertension": True},
        expected_scores={"a": 3, "b": 3, "i": 3, "k": 3, "c": 2, "d": 2, "e": 2, "g": 2},
    ),
]

# ──────────────────────────────────────────────────────────────
# CATEGORY 3: PREGNANCY HISTORY / MEDICATIONS
# ──────────────────────────────────────────────────────────────

HISTORY_SCENARIOS = [
    MECScenario(
        name="Breastfeeding 3 weeks postpartum",
        answers={"birth-past-2y": True, "breastfeeding": True, "birth-date": "2026-02-08"},
        expected_scores={"a": 4, "b": 4, "i": 4, "k": 4, "c": 2, "d": 2, "e": 2, "f": 3, "g": 3},
    ),
    MECScenario(
        name="Not breastfeeding 10 days postpartum with risk factors",
        answers={
            "birth-past-2y": True,
            "breastfeeding": False,
            "postpartum-risk-factors": True,
            "birth-date": "2026-02-19T00:00:00Z",
        },
        expected_scores={"a": 4, "b": 4, "i": 4, "k": 4, "c": 1},
    ),
    MECScenario(
        name="Never pregnant",
        answers={"ever-pregnant": False},
        expected_scores={"f": 2, "g": 2},
    ),
    MECScenario(
        name="Lamotrigine keeps combined injectable at 2",
        answers={"on-medications": True, "medications-list": ["lamotrigine"]},
        expected_scores={"a": 3, "i": 3, "k": 3, "b": 2},
    ),
    MECScenario(
        name="Medication list as a single identifier",
        answers={"on-medications": True, "medications-list": "rifampicin"},
        expected_scores={"a": 3, "c": 3, "i": 3, "k": 3, "b": 2, "e": 2},
    ),
    MECScenario(
        name="Medication selected without the gating answer",
        answers={"medications-list": ["rifampicin"]},
        expected_scores={"a": 1, "c": 1},
    ),
    MECScenario(
        name="Unexplained vaginal bleeding",
        answers={"unexplained-vaginal-bleeding": True},
        expected_scores={"a": 2, "c": 2, "d": 3, "e": 3, "f": 4, "g": 4},
    ),
]

ALL_SCENARIOS = AGE_SCENARIOS + CVS_SCENARIOS + HISTORY_SCENARIOS


# ==================== SCENARIO TESTS ====================

@pytest.mark.parametrize("scenario", ALL_SCENARIOS, ids=lambda s: s.name)
def test_scenario_scores(scenario: MECScenario):
    result = MECRulesEngine.evaluate(scenario.answers, now=NOW)
    scores = scores_of(result)

    for method_key, expected in scenario.expected_scores.items():
        assert scores[method_key] == expected, f"{method_key}: {scores[method_key]} != {expected}"
    for method_key in scenario.expected_avoid:
        assert method_key in result.avoid
    for method_key in scenario.expected_greater_benefit:
        assert method_key in result.greater_benefit


@pytest.mark.parametrize("scenario", ALL_SCENARIOS, ids=lambda s: s.name)
def test_partition_and_reason_contract(scenario: MECScenario):
    result = MECRulesEngine.evaluate(scenario.answers, now=NOW)

    assert [r.method_key for r in result.mec_results] == list(METHODS)
    partition = result.suggested + result.greater_benefit + result.avoid
    assert sorted(partition) == sorted(METHODS)
    assert len(partition) == len(set(partition))

    for r in result.mec_results:
        if r.score == 1:
            assert r.reasons == []
        else:
            assert r.reasons, f"{r.method_key} scored {r.score} without reasons"
            assert len(r.reasons) == len(set(r.reasons))


# ==================== CONTRACT TESTS ====================

def test_empty_answers_score_everything_one():
    result = MECRulesEngine.evaluate({})

    assert all(r.score == 1 for r in result.mec_results)
    assert result.suggested == list(METHODS)
    assert result.greater_benefit == []
    assert result.avoid == []
    assert result.fired_rules == []


def test_none_answers_treated_as_empty():
    result = MECRulesEngine.evaluate(None)
    assert result.suggested == list(METHODS)


def test_age_16_dmpa_reason_mentions_bone_density():
    result = MECRulesEngine.evaluate({"age": 16})
    assert scores_of(result)["d"] == 2
    assert any("bone density" in reason for reason in reasons_of(result, "d"))


def test_reasons_accumulate_in_rule_order():
    result = MECRulesEngine.evaluate({"age": 40, "smokes": True, "cigarettes-per-day": 10})

    assert reasons_of(result, "k") == [
        "Age >39: Combined hormonal methods have increased cardiovascular risk",
        "Smoking >34 years: Vaginal ring caution",
    ]


def test_adding_a_condition_never_lowers_a_score():
    base = scores_of(MECRulesEngine.evaluate({"age": 40}))
    escalated = scores_of(MECRulesEngine.evaluate({"age": 40, "smokes": True, "cigarettes-per-day": 10}))

    for method_key in METHODS:
        assert escalated[method_key] >= base[method_key]
    assert escalated["a"] > base["a"]


def test_final_score_is_maximum_regardless_of_rule_order():
    rules = (
        Rule("high", "test", 1, lambda a: True, (RuleEffect(("a",), 4, "high"),)),
        Rule("low", "test", 2, lambda a: True, (RuleEffect(("a",), 2, "low"),)),
    )
    forward = MECRulesEngine.evaluate({}, rules=rules)
    backward = MECRulesEngine.evaluate({}, rules=tuple(reversed(rules)))

    assert scores_of(forward)["a"] == 4
    assert scores_of(backward)["a"] == 4
    assert reasons_of(forward, "a") == ["high", "low"]


def test_mec_1_effect_records_no_reason():
    rules = (Rule("benign", "test", 1, lambda a: True, (RuleEffect(("a",), 1, "benign"),)),)
    result = MECRulesEngine.evaluate({}, rules=rules)

    assert scores_of(result)["a"] == 1
    assert reasons_of(result, "a") == []
    assert result.fired_rules == ["benign"]


def test_duplicate_reason_recorded_once():
    effect = RuleEffect(("c",), 2, "same reason")
    rules = (
        Rule("one", "test", 1, lambda a: True, (effect,)),
        Rule("two", "test", 2, lambda a: True, (effect,)),
    )
    result = MECRulesEngine.evaluate({}, rules=rules)
    assert reasons_of(result, "c") == ["same reason"]


def test_unknown_method_keys_are_skipped():
    rules = (Rule("typo", "test", 1, lambda a: True, (RuleEffect(("z", "a"), 3, "typo"),)),)
    result = MECRulesEngine.evaluate({}, rules=rules)

    assert scores_of(result)["a"] == 3
    assert len(result.mec_results) == 15


# ==================== FAULT ISOLATION ====================

def _raising_trigger(answers):
    raise KeyError("missing-field")


def test_raising_trigger_is_treated_as_not_fired():
    rules = (
        Rule("broken", "test", 1, _raising_trigger, (RuleEffect(("a",), 4, "broken"),)),
        Rule("working", "test", 2, lambda a: True, (RuleEffect(("c",), 3, "working"),)),
    )
    result = MECRulesEngine.evaluate({}, rules=rules)

    assert scores_of(result)["a"] == 1
    assert scores_of(result)["c"] == 3
    assert result.fired_rules == ["working"]


def test_failing_effect_leaves_no_partial_update():
    rules = (
        Rule(
            "half-broken", "test", 1, lambda a: True,
            (RuleEffect(("a",), 3, "applied first"), RuleEffect(None, 3, "not iterable")),
        ),
    )
    result = MECRulesEngine.evaluate({}, rules=rules)

    assert scores_of(result)["a"] == 1
    assert reasons_of(result, "a") == []
    assert result.fired_rules == []


def test_malformed_answers_do_not_raise():
    answers = {
        "age": "abc",
        "weight": None,
        "height": 0,
        "blood-pressure": "high",
        "lipid-profile": ["ldl"],
        "birth-date": "yesterday",
        "cycle-durations": "28",
        "medications-list": 42,
    }
    result = MECRulesEngine.evaluate(answers)
    assert len(result.mec_results) == 15


@pytest.mark.parametrize("answers", [
    {"age": 10**400},
    {"age": -10**400},
    {"age": float("inf")},
    {"age": float("nan")},
    {"weight": 1e308, "height": 1e-300},
    {"weight": 1e308, "height": 1e-10},
    {"cycle-durations": [10**400, 28, 28, 28, 28, 28]},
    {"blood-pressure": {"systolic": 10**400, "diastolic": 90}},
    {"lipid-profile": {"ldl": 10**400}},
    {"birth-date": "0001-01-01T00:00:00+01:00"},
    {"abortion-week": 10**400},
], ids=lambda a: ",".join(a))
def test_out_of_range_numbers_still_score_every_method(answers):
    result = MECRulesEngine.evaluate(answers, now=NOW)

    assert [r.method_key for r in result.mec_results] == list(METHODS)
    assert all(1 <= r.score <= 4 for r in result.mec_results)


def test_normalization_failure_still_scores_every_method(monkeypatch):
    def broken_normalize(answers, now=None):
        raise OverflowError("int too large to convert to float")

    monkeypatch.setattr("mec_rules_engine.normalize_answers", broken_normalize)
    result = MECRulesEngine.evaluate({"age": 30}, now=NOW)

    assert len(result.mec_results) == 15
    assert all(1 <= r.score <= 4 for r in result.mec_results)


def test_input_answers_not_mutated():
    answers = {"age": 30, "weight": 70, "height": 170, "computed": {"age": 99}}
    snapshot = json.dumps(answers, sort_keys=True)

    MECRulesEngine.evaluate(answers)
    assert json.dumps(answers, sort_keys=True) == snapshot


def test_caller_supplied_computed_is_ignored():
    result = MECRulesEngine.evaluate({"computed": {"age": 16, "bmi": 40}})
    assert result.suggested == list(METHODS)


# ==================== RULE TABLE ====================

def test_rule_ids_unique():
    ids = [rule.id for rule in MEC_RULES]
    assert len(ids) == len(set(ids))


def test_rule_table_is_priority_sorted_union_of_sections():
    assert len(MEC_RULES) == sum(len(section) for section in RULE_SECTIONS.values())
    priorities = [rule.priority for rule in MEC_RULES]
    assert priorities == sorted(priorities)


def test_every_effect_targets_known_methods_with_valid_score():
    for rule in MEC_RULES:
        assert rule.section in RULE_SECTIONS
        for effect in rule.effects:
            assert 1 <= effect.mec <= 4
            assert set(effect.method_keys) <= set(METHODS), rule.id
            assert effect.reason


# ==================== OUTPUT FORMAT ====================

def test_evaluation_is_idempotent():
    answers = {"age": 40, "smokes": True, "cigarettes-per-day": 10, "weight": 90, "height": 160}

    first = json.dumps(format_mec_response(MECRulesEngine.evaluate(answers, now=NOW)))
    second = json.dumps(format_mec_response(MECRulesEngine.evaluate(answers, now=NOW)))
    assert first == second


def test_format_mec_response_shape():
    response = format_mec_response(MECRulesEngine.evaluate({"age": 30}))

    assert set(response) == {"mecResults", "suggested", "greaterBenefit", "avoid"}
    assert len(response["mecResults"]) == 15
    assert response["mecResults"][7] == {
        "methodKey": "h",
        "score": 3,
        "reasons": ["Age 20-38: Possible regret with permanent sterilization"],
    }


def test_eligible_methods_are_mec_one_and_two():
    result = MECRulesEngine.evaluate({"age": 40, "smokes": True, "cigarettes-per-day": 10})
    eligible = eligible_methods(result)

    assert "k" in eligible
    assert not {"a", "b", "i"} & set(eligible)


def test_every_method_has_a_display_name():
    assert set(MEC_METHOD_NAMES) == set(METHODS)
