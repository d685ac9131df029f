"""
Standard Days Method (SDM) Calculator

Georgetown IRH / WHO Standard Days Method: for women whose cycles average
26-32 days, cycle days 8 through 19 are treated as fertile. Days 1-7 and
day 20 onward are the safe days. Eligibility needs all six recorded cycle
lengths.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass
from datetime import date, timedelta
import logging

from calendar_method_engine import complete_cycles, lmp_from, format_date

logger = logging.getLogger(__name__)


MIN_AVG_CYCLE = 26
MAX_AVG_CYCLE = 32
FIRST_FERTILE_DAY = 8
LAST_FERTILE_DAY = 19

_BASE_EDUCATION = "Standard Days Method requires consistent tracking and cycles 26-32 days long.\n\n"
_NO_STI_PROTECTION = "Does not protect against sexually transmitted infections."


def educational_message(eligible: bool) -> str:
    if not eligible:
        return (
            _BASE_EDUCATION
            + "You may want to consider other contraceptive methods that are more suitable "
            + "for irregular cycles. "
            + _NO_STI_PROTECTION
        )
    return _BASE_EDUCATION + "Typical-use effectiveness is approximately 87%.\n\n" + _NO_STI_PROTECTION


@dataclass
class StandardDaysResult:
    eligible: bool
    avg_cycle_length: Optional[float]
    message: str
    educational_message: str
    lmp_date: Optional[date] = None
    fertile_start: Optional[date] = None
    fertile_end: Optional[date] = None
    safe_before_end: Optional[date] = None
    safe_after_start: Optional[date] = None


class StandardDaysEngine:

    @staticmethod
    def evaluate(cycle_lengths: Any, lmp_date: Any = None) -> StandardDaysResult:
        cycles = complete_cycles(cycle_lengths)
        lmp = lmp_from(lmp_date)

        if cycles is None:
            return StandardDaysResult(
                eligible=False,
                avg_cycle_length=None,
                message="Please provide all 6 cycle lengths to determine eligibility.",
                educational_message=educational_message(False),
            )

        average = sum(cycles) / len(cycles)
        if not (MIN_AVG_CYCLE <= average <= MAX_AVG_CYCLE):
            logger.info(f"📅 SDM not eligible: average cycle {average:.1f} days")
            return StandardDaysResult(
                eligible=False,
                avg_cycle_length=average,
                message=(
                    f"Your average cycle length is {average:.1f} days. The Standard Days Method is "
                    f"validated only for women with cycles between 26 and 32 days."
                ),
                educational_message=educational_message(False),
            )

        if lmp is None:
            return StandardDaysResult(
                eligible=True,
                avg_cycle_length=average,
                message=(
                    f"Your average cycle length is {average:.1f} days. "
                    f"You are eligible for the Standard Days Method!"
                ),
                educational_message=educational_message(True),
            )

        return StandardDaysResult(
            eligible=True,
            avg_cycle_length=average,
            lmp_date=lmp,
            fertile_start=lmp + timedelta(days=FIRST_FERTILE_DAY - 1),
            fertile_end=lmp + timedelta(days=LAST_FERTILE_DAY - 1),
            safe_before_end=lmp + timedelta(days=FIRST_FERTILE_DAY - 2),
            safe_after_start=lmp + timedelta(days=LAST_FERTILE_DAY),
            message=(
                f"Based on your average cycle length of {average:.1f} days and your last menstrual "
                f"period, your fertile window has been calculated."
            ),
            educational_message=educational_message(True),
        )


def format_standard_days_response(result: StandardDaysResult) -> Dict[str, Any]:
    response = {
        "eligible": result.eligible,
        "avgCycleLength": result.avg_cycle_length,
        "message": result.message,
        "educationalMessage": result.educational_message,
    }
    if result.fertile_start is not None:
        response["fertileWindow"] = {
            "start": format_date(result.fertile_start),
            "end": format_date(result.fertile_end),
        }
        response["safeWindow"] = {
            "beforeFertile": {
                "start": format_date(result.lmp_date),
                "end": format_date(result.safe_before_end),
            },
            "afterFertile": {
                "start": format_date(result.safe_after_start),
            },
        }
    return response
