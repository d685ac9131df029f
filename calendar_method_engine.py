"""
Calendar (Rhythm) Method Calculator

Ogino-Knaus calendar calculation as described in the WHO Family Planning
Handbook and CDC fertility awareness guidance:

    earliest fertile day a = shortest cycle - 18   (never before day 1)
    latest fertile day   b = longest cycle  - 11

Requires six recorded cycle lengths, all within 21-35 days. When a > b the
cycles vary too much for the arithmetic to bound the fertile window.

With a last menstrual period (LMP) date the window is projected onto the
calendar together with the safe days, the expected next period and a
per-day calendar for display.
"""

from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
import math

from answer_normalizer import is_real_number, parse_date
from error_handler import CalculatorInputError

logger = logging.getLogger(__name__)


REQUIRED_CYCLES = 6
MIN_REGULAR_CYCLE = 21
MAX_REGULAR_CYCLE = 35
SHORTEST_CYCLE_OFFSET = 18
LONGEST_CYCLE_OFFSET = 11

EDUCATIONAL_MESSAGE = (
    "Fertility awareness methods require consistent tracking and correct use.\n\n"
    "Typical-use effectiveness: ~76-88%.\n\n"
    "Perfect-use effectiveness: up to ~95%.\n\n"
    "Does not protect against sexually transmitted infections."
)


# ==================== DATA MODELS ====================

@dataclass
class CalendarDay:
    date: date
    day_number: int
    type: str  # "safe" | "fertile" | "expected-period"


@dataclass
class CalendarMethodResult:
    eligible: bool
    message: str
    shortest_cycle: Optional[int] = None
    longest_cycle: Optional[int] = None
    avg_cycle_length: Optional[int] = None
    earliest_fertile_day: Optional[int] = None
    latest_fertile_day: Optional[int] = None
    lmp_date: Optional[date] = None
    warning: Optional[str] = None
    fertile_start: Optional[date] = None
    fertile_end: Optional[date] = None
    safe_before_end: Optional[date] = None
    safe_after_start: Optional[date] = None
    safe_after_end: Optional[date] = None
    next_period: Optional[date] = None
    calendar_days: List[CalendarDay] = field(default_factory=list)
    educational_message: str = EDUCATIONAL_MESSAGE


# ==================== SHARED CYCLE HELPERS ====================

def complete_cycles(cycle_lengths: Any) -> Optional[List[float]]:
    """
    The recorded cycle lengths when all six are present, else None.

    Blank entries (None) count as missing. A non-list input or a
    non-numeric entry is a caller error.
    """
    if not isinstance(cycle_lengths, (list, tuple)):
        raise CalculatorInputError(details={"reason": "Cycle lengths must be a list"})

    recorded = []
    for length in cycle_lengths:
        if length is None:
            continue
        if not is_real_number(length):
            raise CalculatorInputError(details={"reason": "Cycle lengths must be numbers", "provided": repr(length)})
        if length <= 0:
            raise CalculatorInputError(details={"reason": "Cycle lengths must be positive", "provided": length})
        recorded.append(int(length) if float(length).is_integer() else length)

    return recorded if len(recorded) == REQUIRED_CYCLES else None


def lmp_from(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    lmp = parse_date(value)
    if lmp is None:
        raise CalculatorInputError(details={"reason": "Unparseable LMP date", "provided": repr(value)})
    return lmp


def format_date(day: date) -> str:
    """DD/MM/YYYY"""
    return day.strftime("%d/%m/%Y")


def format_long_date(day: date) -> str:
    """e.g. Monday, March 15, 2026"""
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def format_short_day(day: date) -> str:
    """e.g. Mon 15"""
    return f"{day:%a} {day.day}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ==================== CALCULATOR ====================

class CalendarMethodEngine:

    @staticmethod
    def fertile_window(shortest: int, longest: int):
        earliest = max(shortest - SHORTEST_CYCLE_OFFSET, 1)
        latest = longest - LONGEST_CYCLE_OFFSET
        return earliest, latest, earliest <= latest

    @staticmethod
    def calendar_days(lmp: date, avg_cycle: int, earliest: int, latest: int) -> List[CalendarDay]:
        days = []
        for day_number in range(1, avg_cycle + 1):
            if earliest <= day_number <= latest:
                day_type = "fertile"
            elif day_number == avg_cycle:
                day_type = "expected-period"
            else:
                day_type = "safe"
            days.append(CalendarDay(lmp + timedelta(days=day_number - 1), day_number, day_type))
        return days

    @staticmethod
    def evaluate(cycle_lengths: Any, lmp_date: Any = None) -> CalendarMethodResult:
        cycles = complete_cycles(cycle_lengths)
        lmp = lmp_from(lmp_date)

        if cycles is None:
            return CalendarMethodResult(
                eligible=False,
                message="Please provide all 6 cycle lengths to calculate your fertile window.",
            )

        shortest = min(cycles)
        longest = max(cycles)
        average = _round_half_up(sum(cycles) / len(cycles))

        if not all(MIN_REGULAR_CYCLE <= c <= MAX_REGULAR_CYCLE for c in cycles):
            logger.info(f"📅 Calendar method: cycles outside {MIN_REGULAR_CYCLE}-{MAX_REGULAR_CYCLE} days")
            return CalendarMethodResult(
                eligible=False,
                shortest_cycle=shortest,
                longest_cycle=longest,
                avg_cycle_length=average,
                lmp_date=lmp,
                message="Your cycles may be irregular. Calendar-based methods may not be reliable.",
                warning="One or more of your cycles is outside the typical range (21-35 days).",
            )

        earliest, latest, valid = CalendarMethodEngine.fertile_window(shortest, longest)
        if not valid:
            return CalendarMethodResult(
                eligible=False,
                shortest_cycle=shortest,
                longest_cycle=longest,
                avg_cycle_length=average,
                earliest_fertile_day=earliest,
                latest_fertile_day=latest,
                lmp_date=lmp,
                message="Cycle variability is high. Calendar method may not be reliable.",
                warning=(
                    "The difference between your shortest and longest cycles is too large "
                    "for accurate prediction."
                ),
            )

        if lmp is None:
            return CalendarMethodResult(
                eligible=True,
                shortest_cycle=shortest,
                longest_cycle=longest,
                avg_cycle_length=average,
                earliest_fertile_day=earliest,
                latest_fertile_day=latest,
                message=(
                    f"Based on your cycles (shortest: {shortest:g} days, longest: {longest:g} days), "
                    f"you are eligible for the Calendar Method!"
                ),
            )

        logger.info(f"📅 Calendar method: fertile days {earliest}-{latest} from LMP {lmp.isoformat()}")
        return CalendarMethodResult(
            eligible=True,
            shortest_cycle=shortest,
            longest_cycle=longest,
            avg_cycle_length=average,
            earliest_fertile_day=earliest,
            latest_fertile_day=latest,
            lmp_date=lmp,
            fertile_start=lmp + timedelta(days=earliest - 1),
            fertile_end=lmp + timedelta(days=latest - 1),
            safe_before_end=lmp + timedelta(days=earliest - 2),
            safe_after_start=lmp + timedelta(days=latest),
            safe_after_end=lmp + timedelta(days=average - 1),
            next_period=lmp + timedelta(days=average),
            calendar_days=CalendarMethodEngine.calendar_days(lmp, average, earliest, latest),
            message=(
                f"Based on your cycles, your fertile window is from Day {earliest} "
                f"to Day {latest} of your cycle."
            ),
        )


# ==================== UTILITY FUNCTIONS ====================

def format_calendar_method_response(result: CalendarMethodResult) -> Dict[str, Any]:
    response = {
        "eligible": result.eligible,
        "shortestCycle": result.shortest_cycle,
        "longestCycle": result.longest_cycle,
        "avgCycleLength": result.avg_cycle_length,
        "earliestFertileDay": result.earliest_fertile_day,
        "latestFertileDay": result.latest_fertile_day,
        "lmpDate": result.lmp_date.isoformat() if result.lmp_date else None,
        "message": result.message,
        "educationalMessage": result.educational_message,
    }
    if result.warning:
        response["warning"] = result.warning

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
                "end": format_date(result.safe_after_end),
            },
        }
        response["nextPeriod"] = format_long_date(result.next_period)
        response["recalculationDate"] = format_long_date(result.next_period)
        response["calendarDates"] = [
            {
                "date": day.date.isoformat(),
                "formattedDate": format_short_day(day.date),
                "type": day.type,
                "dayNumber": day.day_number,
            }
            for day in result.calendar_days
        ]
    return response
