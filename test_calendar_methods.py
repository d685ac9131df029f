"""
Test Suite for the Calendar and Standard Days cycle calculators

Run: pytest test_calendar_methods.py
"""

from datetime import date

import pytest

from error_handler import CalculatorInputError, ErrorCode
from calendar_method_engine import (
    CalendarMethodEngine,
    complete_cycles,
    format_calendar_method_response,
    format_date,
    format_long_date,
    format_short_day,
)
from standard_days_engine import StandardDaysEngine, format_standard_days_response


REGULAR_CYCLES = [26, 27, 28, 29, 30, 28]
LMP = "2026-03-01"


# ==================== SHARED HELPERS ====================

def test_complete_cycles_requires_all_six():
    assert complete_cycles([28] * 6) == [28] * 6
    assert complete_cycles([28, 28, None, 28, 28, 28]) is None
    assert complete_cycles([28] * 5) is None


@pytest.mark.parametrize("cycles", [
    "28,28,28,28,28,28",
    None,
    [28, "28", 28, 28, 28, 28],
    [28, 0, 28, 28, 28, 28],
    [10**400, 28, 28, 28, 28, 28],
    [float("nan"), 28, 28, 28, 28, 28],
])
def test_complete_cycles_rejects_malformed_input(cycles):
    with pytest.raises(CalculatorInputError) as exc_info:
        complete_cycles(cycles)
    assert exc_info.value.code is ErrorCode.CALCULATOR_INVALID_INPUT


def test_date_formats():
    day = date(2026, 3, 29)
    assert format_date(day) == "29/03/2026"
    assert format_long_date(day) == "Sunday, March 29, 2026"
    assert format_short_day(day) == "Sun 29"


# ==================== CALENDAR METHOD ====================

def test_calendar_missing_cycle():
    result = CalendarMethodEngine.evaluate([28, 28, 28, None, 28, 28])

    assert result.eligible is False
    assert result.message == "Please provide all 6 cycle lengths to calculate your fertile window."


def test_calendar_cycle_outside_range():
    result = CalendarMethodEngine.evaluate([20, 28, 28, 28, 28, 28])

    assert result.eligible is False
    assert result.warning == "One or more of your cycles is outside the typical range (21-35 days)."
    assert result.shortest_cycle == 20


def test_calendar_eligible_without_lmp():
    result = CalendarMethodEngine.evaluate(REGULAR_CYCLES)

    assert result.eligible is True
    assert (result.earliest_fertile_day, result.latest_fertile_day) == (8, 19)
    assert result.avg_cycle_length == 28
    assert result.message == (
        "Based on your cycles (shortest: 26 days, longest: 30 days), you are eligible for the Calendar Method!"
    )
    assert result.calendar_days == []


def test_calendar_earliest_day_floored_at_one():
    earliest, latest, valid = CalendarMethodEngine.fertile_window(18, 30)
    assert (earliest, latest, valid) == (1, 19, True)


def test_calendar_average_rounds_half_up():
    assert CalendarMethodEngine.evaluate([28, 28, 28, 29, 29, 29]).avg_cycle_length == 29


def test_calendar_with_lmp():
    result = CalendarMethodEngine.evaluate(REGULAR_CYCLES, LMP)

    assert result.message == "Based on your cycles, your fertile window is from Day 8 to Day 19 of your cycle."
    assert result.fertile_start == date(2026, 3, 8)
    assert result.fertile_end == date(2026, 3, 19)
    assert result.safe_before_end == date(2026, 3, 7)
    assert result.safe_after_start == date(2026, 3, 20)
    assert result.safe_after_end == date(2026, 3, 28)
    assert result.next_period == date(2026, 3, 29)

    days = result.calendar_days
    assert len(days) == 28
    assert days[0].type == "safe"
    assert days[7].type == "fertile" and days[7].day_number == 8
    assert days[18].type == "fertile"
    assert days[19].type == "safe"
    assert days[-1].type == "expected-period"


def test_calendar_response_with_lmp():
    response = format_calendar_method_response(CalendarMethodEngine.evaluate(REGULAR_CYCLES, LMP))

    assert response["fertileWindow"] == {"start": "08/03/2026", "end": "19/03/2026"}
    assert response["safeWindow"] == {
        "beforeFertile": {"start": "01/03/2026", "end": "07/03/2026"},
        "afterFertile": {"start": "20/03/2026", "end": "28/03/2026"},
    }
    assert response["nextPeriod"] == "Sunday, March 29, 2026"
    assert response["recalculationDate"] == response["nextPeriod"]
    assert response["calendarDates"][0] == {
        "date": "2026-03-01", "formattedDate": "Sun 1", "type": "safe", "dayNumber": 1,
    }
    assert "Does not protect against sexually transmitted infections." in response["educationalMessage"]


def test_calendar_response_without_lmp_has_no_dates():
    response = format_calendar_method_response(CalendarMethodEngine.evaluate(REGULAR_CYCLES))

    assert response["lmpDate"] is None
    assert "fertileWindow" not in response
    assert "warning" not in response


def test_calendar_rejects_unparseable_lmp():
    with pytest.raises(CalculatorInputError):
        CalendarMethodEngine.evaluate(REGULAR_CYCLES, "01/03/2026")


def test_calendar_blank_lmp_is_absent():
    assert CalendarMethodEngine.evaluate(REGULAR_CYCLES, "").lmp_date is None


# ==================== STANDARD DAYS METHOD ====================

@pytest.mark.parametrize("cycles, eligible", [
    ([26] * 6, True),
    ([32] * 6, True),
    ([28, 29, 27, 28, 30, 26], True),
    ([25] * 6, False),
    ([33] * 6, False),
    ([24, 24, 24, 24, 24, 40], True),
])
def test_standard_days_eligibility(cycles, eligible):
    assert StandardDaysEngine.evaluate(cycles).eligible is eligible


def test_standard_days_missing_cycle():
    result = StandardDaysEngine.evaluate([28, None, 28, 28, 28, 28])

    assert result.eligible is False
    assert result.avg_cycle_length is None
    assert result.message == "Please provide all 6 cycle lengths to determine eligibility."
    assert "irregular cycles" in result.educational_message


def test_standard_days_not_eligible_message():
    result = StandardDaysEngine.evaluate([24] * 6)

    assert result.message == (
        "Your average cycle length is 24.0 days. The Standard Days Method is validated only "
        "for women with cycles between 26 and 32 days."
    )


def test_standard_days_eligible_message():
    result = StandardDaysEngine.evaluate([28] * 6)

    assert result.message == "Your average cycle length is 28.0 days. You are eligible for the Standard Days Method!"
    assert "approximately 87%" in result.educational_message


def test_standard_days_with_lmp():
    result = StandardDaysEngine.evaluate([28] * 6, LMP)
    response = format_standard_days_response(result)

    assert result.fertile_start == date(2026, 3, 8)
    assert result.fertile_end == date(2026, 3, 19)
    assert response["fertileWindow"] == {"start": "08/03/2026", "end": "19/03/2026"}
    assert response["safeWindow"] == {
        "beforeFertile": {"start": "01/03/2026", "end": "07/03/2026"},
        "afterFertile": {"start": "20/03/2026"},
    }


def test_standard_days_ineligible_ignores_lmp():
    response = format_standard_days_response(StandardDaysEngine.evaluate([24] * 6, LMP))
    assert "fertileWindow" not in response
