"""
AnswerState Normalizer

Derives the computed facts the MEC rule table depends on (age, BMI,
postpartum timing, cycle irregularity) from raw questionnaire answers.

OPEN-WORLD POLICY:
Missing or malformed answers are never an error here. A fact that cannot be
derived is simply left out of the computed record, and every rule that reads
it evaluates to False. Risk is only escalated by an explicit answer.

POSTPARTUM TIMING:
Months are a fixed 30-day block (months = floor(days / 30)), not calendar
months. The postpartum thresholds in the pregnancy-history rules were written
against this approximation and rely on it.

The shared getters at the bottom are the only way rule triggers read
numeric or structured answers.
"""

from typing import Dict, Any, Optional, Tuple
from datetime import datetime, date, timezone
import logging
import math

logger = logging.getLogger(__name__)


# Plausible cycle length window (days between period starts)
MIN_CYCLE_DAYS = 21
MAX_CYCLE_DAYS = 45
IRREGULAR_CYCLE_RANGE_DAYS = 7

DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
SECONDS_PER_DAY = 24 * 60 * 60


# ==================== NORMALIZATION ====================

def normalize_answers(answers: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Return a new answer mapping with a freshly derived "computed" record.

    The input mapping is never mutated. Any caller-supplied "computed" value
    is discarded, so running this twice on the same raw answers yields the
    same computed facts.

    Computed keys: age, bmi, daysSinceBirth, weeksSinceBirth, monthsSinceBirth.
    The derived "irregular-periods" flag is written at the top level because
    rules read it like any other answer.
    """
    normalized = dict(answers or {})
    normalized.pop("computed", None)
    computed: Dict[str, Any] = {}

    # ── Age ──
    age = get_number(normalized, "age")
    if age is not None:
        computed["age"] = age

    # ── BMI from weight (kg) and height (cm) ──
    bmi = calculate_bmi(get_number(normalized, "weight"), get_number(normalized, "height"))
    if bmi is not None:
        computed["bmi"] = bmi

    # ── Cycle irregularity from recorded cycle durations ──
    irregular = detect_irregular_cycles(normalized.get("cycle-durations"))
    if irregular is not None:
        normalized["irregular-periods"] = irregular

    # ── Days / weeks / months since birth ──
    timing = postpartum_timing(normalized.get("birth-date"), now)
    if timing is not None:
        days, weeks, months = timing
        computed["daysSinceBirth"] = days
        computed["weeksSinceBirth"] = weeks
        computed["monthsSinceBirth"] = months

    normalized["computed"] = computed
    return normalized


def calculate_bmi(weight_kg: Optional[float], height_cm: Optional[float]) -> Optional[float]:
    """
    BMI = kg / m^2, or None when either measurement is missing, height is not
    positive, or the arithmetic leaves the float range.
    """
    if weight_kg is None or height_cm is None or height_cm <= 0:
        return None
    height_m = height_cm / 100
    denominator = height_m * height_m
    if denominator <= 0:
        return None
    bmi = weight_kg / denominator
    return bmi if math.isfinite(bmi) else None


def detect_irregular_cycles(cycle_durations: Any) -> Optional[bool]:
    """
    Flag irregular cycles when the spread of plausible samples exceeds 7 days.

    Samples outside 21-45 days (or non-numeric) are ignored. Returns None when
    fewer than two plausible samples remain, leaving irregularity unknown.
    """
    if not isinstance(cycle_durations, (list, tuple)) or len(cycle_durations) < 2:
        return None

    valid = [
        n for n in cycle_durations
        if is_real_number(n) and n > 0 and MIN_CYCLE_DAYS <= n <= MAX_CYCLE_DAYS
    ]
    if len(valid) < 2:
        return None

    return (max(valid) - min(valid)) > IRREGULAR_CYCLE_RANGE_DAYS


def postpartum_timing(birth_date: Any, now: Optional[datetime] = None) -> Optional[Tuple[int, int, int]]:
    """
    Whole (days, weeks, months) elapsed since delivery.

    Accepts a date, a datetime or an ISO-8601 string. Unparseable values and
    birth dates in the future yield None.
    """
    birth = _to_datetime(birth_date)
    if birth is None:
        return None

    reference = _to_naive_utc(now) if now is not None else datetime.now(timezone.utc).replace(tzinfo=None)
    elapsed_seconds = (reference - birth).total_seconds()
    if elapsed_seconds < 0:
        logger.debug(f"Ignoring birth date in the future: {birth_date}")
        return None

    days = int(elapsed_seconds // SECONDS_PER_DAY)
    return days, days // DAYS_PER_WEEK, days // DAYS_PER_MONTH


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable date answer: {value!r}")
            return None
    if not isinstance(value, datetime):
        return None
    try:
        return _to_naive_utc(value)
    except OverflowError:
        # offsets at the ends of the datetime range
        logger.debug(f"Date answer out of range: {value!r}")
        return None


def parse_date(value: Any) -> Optional[date]:
    """Calendar date from a date, datetime or ISO-8601 string; None when unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            logger.debug(f"Unparseable date answer: {value!r}")
    return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ==================== ABSENCE-TOLERANT GETTERS ====================

def is_real_number(value: Any) -> bool:
    """Finite int or float, excluding bools and ints too large for a float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def get_number(answers: Dict[str, Any], key: str) -> Optional[float]:
    """
    Numeric answer, coercing numeric-looking strings.

    Booleans, NaN/inf, ints beyond the float range and unparseable strings
    are treated as absent.
    """
    value = answers.get(key)
    if is_real_number(value):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def get_age(answers: Dict[str, Any]) -> Optional[float]:
    """Computed age when normalized, else a raw numeric age answer."""
    computed = answers.get("computed") or {}
    age = computed.get("age")
    if is_real_number(age):
        return age
    raw = answers.get("age")
    return raw if is_real_number(raw) else None


def get_computed(answers: Dict[str, Any], key: str) -> Optional[float]:
    computed = answers.get("computed") or {}
    value = computed.get(key)
    return value if is_real_number(value) else None


def get_blood_pressure(answers: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """(systolic, diastolic) when the reading has both numeric fields."""
    bp = answers.get("blood-pressure")
    if not isinstance(bp, dict):
        return None
    systolic = bp.get("systolic")
    diastolic = bp.get("diastolic")
    if is_real_number(systolic) and is_real_number(diastolic):
        return systolic, diastolic
    return None


def get_lipid_profile(answers: Dict[str, Any]) -> Dict[str, float]:
    """Numeric lipid panel fields only; missing fields are left out."""
    profile = answers.get("lipid-profile")
    if not isinstance(profile, dict):
        return {}
    return {
        field: value
        for field, value in profile.items()
        if field in ("ldl", "hdl", "cholesterol", "triglyceride") and is_real_number(value)
    }


def has_medication(answers: Dict[str, Any], medication: str) -> bool:
    """The medication list may be a list of identifiers or a single identifier."""
    selected = answers.get("medications-list")
    if isinstance(selected, (list, tuple)):
        return medication in selected
    if isinstance(selected, str):
        return selected == medication
    return False
