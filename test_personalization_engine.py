"""
Test Suite for the Personalization Filter Pipeline

Run: pytest test_personalization_engine.py
"""

import json
import math

import pytest

from error_handler import ErrorCode, PersonalizationError
from personalization_engine import (
    PersonalizationEngine,
    PersonalizationFilters,
    STI_PROTECTION_NOTICE,
    personalize,
    format_personalization_response,
)


ALL_METHODS = ["a", "b", "c", "d", "e", "f", "g", "h", "i", "j", "k", "l", "m", "n", "o"]


def eliminated_methods(result):
    return [e.method for e in result.eliminated]


def assert_every_drop_recorded(eligible, result):
    kept = set(result.recommended) - {"j"}
    assert set(eligible) - {"j"} <= kept | set(eliminated_methods(result)) | {"j"}
    assert not kept & set(eliminated_methods(result))


# ==================== STAGE 1: FUTURE PREGNANCY ====================

def test_future_pregnancy_drops_sterilization():
    eligible = ["a", "f", "h", "o"]
    result = personalize(eligible, {"wantsFuturePregnancy": True})

    assert result.recommended == ["a", "f", "j"]
    assert eliminated_methods(result) == ["h", "o"]
    assert all(e.reason == PersonalizationEngine.REASON_FUTURE_PREGNANCY for e in result.eliminated)


def test_surgical_preference_returns_eligible_sterilization_only():
    result = personalize(["a", "h", "j"], {"wantsFuturePregnancy": False, "wantsSurgicalMethod": True})

    assert result.recommended == ["h"]
    assert result.should_show_permanent_methods is True
    assert result.notices == [PersonalizationEngine.NOTICE_STERILIZATION_PERMANENT]
    assert eliminated_methods(result) == ["a", "j"]


def test_surgical_preference_never_recommends_ineligible_sterilization():
    result = personalize(["a", "c"], {"wantsFuturePregnancy": False, "wantsSurgicalMethod": True})

    assert result.recommended == []
    assert result.should_show_permanent_methods is False
    assert result.notices == [PersonalizationEngine.NOTICE_STERILIZATION_UNSUITABLE]
    assert eliminated_methods(result) == ["a", "c"]


def test_declined_long_term_eliminates_everything():
    eligible = ["a", "c", "h", "j"]
    result = personalize(eligible, {
        "wantsFuturePregnancy": False,
        "wantsSurgicalMethod": False,
        "wantsToContinueWithLongTerm": False,
        "preferredFrequency": "daily",
    })

    assert result.recommended == []
    assert result.notices == [PersonalizationEngine.NOTICE_DECLINED_LONG_TERM]
    assert eliminated_methods(result) == ["h", "a", "c", "j"]
    assert result.eliminated[0].reason == PersonalizationEngine.REASON_NO_SURGERY
    assert result.eliminated[1].reason == PersonalizationEngine.REASON_DECLINED_LONG_TERM


def test_no_surgery_and_continue_goes_on_to_later_stages():
    result = personalize(["a", "d", "h"], {
        "wantsFuturePregnancy": False,
        "wantsSurgicalMethod": False,
        "wantsToContinueWithLongTerm": True,
        "okayWithIrregularPeriods": False,
    })

    assert result.recommended == ["a", "j"]
    assert eliminated_methods(result) == ["h", "d"]


# ==================== STAGE 2: IRREGULAR PERIODS ====================

def test_irregular_periods_keeps_regular_bleeding_methods():
    eligible = ["a", "c", "d", "j"]
    result = personalize(eligible, {"okayWithIrregularPeriods": False})

    assert set(result.recommended) <= {"a", "j"}
    assert result.recommended == ["a", "j"]
    assert eliminated_methods(result) == ["c", "d"]
    assert all(e.reason == PersonalizationEngine.REASON_IRREGULAR_PERIODS for e in result.eliminated)


def test_irregular_periods_tolerated_changes_nothing():
    result = personalize(["c", "d"], {"okayWithIrregularPeriods": True})
    assert result.recommended == ["c", "d", "j"]
    assert result.eliminated == []


# ==================== STAGE 3: FREQUENCY ====================

@pytest.mark.parametrize("frequency, eligible, expected", [
    ("daily", ["a", "c", "d", "k"], ["a", "c", "k", "j"]),
    ("every-3-weeks", ["a", "i", "k"], ["i", "k", "j"]),
    ("every-3-months", ["a", "d", "j"], ["d", "j"]),
    ("every-3-years", ["d", "e"], ["e", "j"]),
    ("every-8-years", ["e", "f", "g"], ["f", "g", "j"]),
    ("Every 3 months", ["a", "d"], ["d", "j"]),
])
def test_frequency_allow_list(frequency, eligible, expected):
    result = personalize(eligible, {"preferredFrequency": frequency})

    assert result.recommended == expected
    assert all(e.reason == PersonalizationEngine.REASON_FREQUENCY for e in result.eliminated)
    assert_every_drop_recorded(eligible, result)


def test_barrier_method_survives_frequency_stage():
    result = personalize(["d", "j"], {"preferredFrequency": "daily"})

    assert result.recommended == ["j"]
    assert eliminated_methods(result) == ["d"]
    assert result.notices == [PersonalizationEngine.NOTICE_NO_FREQUENCY_MATCH]


def test_no_frequency_match_leaves_empty_set():
    result = personalize(["d", "e"], {"preferredFrequency": "daily"})

    assert result.recommended == []
    assert result.notices == [PersonalizationEngine.NOTICE_NO_FREQUENCY_MATCH]


def test_three_weekly_with_high_bmi_eliminates_everything():
    result = personalize(["i", "k", "j"], {"preferredFrequency": "every-3-weeks", "currentBMI": 32})

    assert result.recommended == []
    assert result.bmi_too_high_for_3_weeks is True
    assert result.notices == [PersonalizationEngine.NOTICE_BMI_3_WEEKLY]
    assert eliminated_methods(result) == ["i", "k", "j"]


def test_three_weekly_bmi_from_height_and_weight():
    result = personalize(["i", "k"], {
        "preferredFrequency": "every-3-weeks",
        "heightWeight": {"height": 160, "weight": 80},
    })

    assert result.bmi_too_high_for_3_weeks is True
    assert result.recommended == []


def test_three_weekly_bmi_at_threshold_is_allowed():
    result = personalize(["i", "k"], {"preferredFrequency": "every-3-weeks", "currentBMI": 30})

    assert result.bmi_too_high_for_3_weeks is False
    assert result.recommended == ["i", "k", "j"]


def test_high_bmi_ignored_for_other_frequencies():
    result = personalize(["d"], {"preferredFrequency": "every-3-months", "currentBMI": 40})
    assert result.recommended == ["d", "j"]


# ==================== STAGE 4: BARRIER FLOOR ====================

def test_barrier_appended_once():
    assert personalize(["a"], {}).recommended == ["a", "j"]
    assert personalize(["j", "a"], {}).recommended == ["j", "a"]


def test_empty_eligible_set_stays_empty():
    result = personalize([], {"okayWithIrregularPeriods": False})
    assert result.recommended == []
    assert result.eliminated == []


def test_full_funnel_records_every_elimination():
    result = personalize(ALL_METHODS, {
        "wantsFuturePregnancy": True,
        "okayWithIrregularPeriods": False,
        "preferredFrequency": "daily",
    })

    assert result.recommended == ["a", "j", "k"]
    assert set(eliminated_methods(result)) == set(ALL_METHODS) - {"a", "j", "k"}
    assert len(result.eliminated) == len(set(eliminated_methods(result)))


# ==================== VALIDATION ====================

@pytest.mark.parametrize("eligible, filters", [
    ("a,b,c", {}),
    (None, {}),
    (["a"], {"currentBMI": 150}),
    (["a"], {"currentBMI": -1}),
    (["a"], {"currentBMI": math.nan}),
    (["a"], {"currentBMI": "thirty"}),
    (["a"], {"preferredFrequency": "weekly"}),
    (["a"], {"preferredFrequency": 3}),
    (["a"], {"currentBMI": 10**400}),
    ([["a"]], {}),
    (["a", 3], {}),
    (["a", None], {}),
])
def test_invalid_input_raises_typed_error(eligible, filters):
    with pytest.raises(PersonalizationError) as exc_info:
        personalize(eligible, filters)

    assert exc_info.value.code is ErrorCode.PERSONALIZATION_INVALID_FILTERS
    assert exc_info.value.details["reason"]


def test_validation_runs_before_any_elimination():
    filters = PersonalizationFilters(wants_future_pregnancy=True, current_bmi=200)
    with pytest.raises(PersonalizationError):
        PersonalizationEngine.personalize(["h"], filters)


# ==================== ANSWER ADAPTER ====================

def test_from_answers_accepts_snake_case():
    filters = PersonalizationFilters.from_answers({
        "wants_future_pregnancy": False,
        "okay_with_irregular_periods": True,
        "preferred_frequency": "daily",
        "current_bmi": 22.5,
    })

    assert filters.wants_future_pregnancy is False
    assert filters.okay_with_irregular_periods is True
    assert filters.preferred_frequency == "daily"
    assert filters.current_bmi == 22.5


def test_from_answers_derives_bmi():
    filters = PersonalizationFilters.from_answers({"heightWeight": {"height": 200, "weight": 80}})
    assert filters.current_bmi == pytest.approx(20.0)


def test_from_answers_missing_measurements_leave_bmi_unset():
    assert PersonalizationFilters.from_answers({"heightWeight": {"height": 170}}).current_bmi is None


# ==================== OUTPUT FORMAT ====================

def test_format_includes_sti_notice_when_recommending():
    response = format_personalization_response(personalize(["a"], {}))

    assert response["recommended"] == ["a", "j"]
    assert response["stiProtectionNotice"] == STI_PROTECTION_NOTICE
    assert response["shouldShowPermanentMethods"] is False
    assert response["bmiTooHighFor3Weeks"] is False


def test_format_omits_sti_notice_when_empty():
    response = format_personalization_response(
        personalize(["a"], {"wantsFuturePregnancy": False, "wantsSurgicalMethod": True})
    )

    assert response["recommended"] == []
    assert "stiProtectionNotice" not in response
    assert response["eliminated"] == [
        {"method": "a", "reason": PersonalizationEngine.REASON_PREFERS_SURGERY}
    ]


def test_personalization_is_idempotent():
    answers = {"okayWithIrregularPeriods": False, "preferredFrequency": "daily"}

    first = json.dumps(format_personalization_response(personalize(ALL_METHODS, answers)))
    second = json.dumps(format_personalization_response(personalize(ALL_METHODS, answers)))
    assert first == second
