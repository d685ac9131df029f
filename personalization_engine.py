"""
Personalization Filter Pipeline

Narrows the medically eligible method set (MEC 1-2) by lifestyle preference.
Runs after the MEC rules engine and never widens what the rules allow: a
method that is not eligible is never recommended, whatever the preference.

FUNNEL (each stage only removes methods still in the working set):
1. Future pregnancy intent
   - wants pregnancy      -> drop sterilization
   - no pregnancy + surgery wanted -> EARLY RETURN with eligible sterilization
   - no pregnancy + no surgery     -> drop sterilization, then
       declined long-term options  -> EARLY RETURN, everything eliminated
2. Irregular-period tolerance -> keep only COC, patch, barrier, ring
3. Dosing frequency          -> keep the frequency allow-list (barrier exempt);
                                every-3-weeks with BMI > 30 eliminates everything
4. STI-protection floor      -> barrier method appended to any non-empty set

AUDITABILITY:
Every removal is an EliminationRecord(method, reason). Records are append
only and no method leaves the working set without one.
"""

from typing import Dict, Any, List, Optional, Union, Mapping
from dataclasses import dataclass, field
import logging

from answer_normalizer import calculate_bmi, is_real_number
from error_handler import ErrorCode, PersonalizationError

logger = logging.getLogger(__name__)


STI_PROTECTION_NOTICE = (
    "None of the below methods provide protection against STIs, so if you think you're at an "
    "increased risk of STI, barrier methods should be used either alone acting both as a "
    "contraceptive and a protector for STI or you can use barrier methods along with your "
    "chosen contraceptive."
)


# ==================== DATA MODELS ====================

@dataclass
class PersonalizationFilters:
    """Lifestyle preferences; None means the question was not answered"""
    wants_future_pregnancy: Optional[bool] = None
    wants_surgical_method: Optional[bool] = None
    wants_to_continue_with_long_term: Optional[bool] = None
    okay_with_irregular_periods: Optional[bool] = None
    preferred_frequency: Optional[str] = None
    current_bmi: Optional[float] = None
    height: Optional[float] = None  # cm
    weight: Optional[float] = None  # kg

    @classmethod
    def from_answers(cls, answers: Mapping[str, Any]) -> "PersonalizationFilters":
        """
        Build filters from questionnaire answers.

        Accepts camelCase or snake_case keys. Height and weight may arrive as
        a `heightWeight` record; BMI is derived from them when not given.
        """
        def pick(camel: str, snake: str):
            return answers.get(camel, answers.get(snake))

        height_weight = pick("heightWeight", "height_weight") or {}
        if not isinstance(height_weight, Mapping):
            height_weight = {}
        height = height_weight.get("height", answers.get("height"))
        weight = height_weight.get("weight", answers.get("weight"))

        current_bmi = pick("currentBMI", "current_bmi")
        if current_bmi is None:
            current_bmi = PersonalizationEngine.compute_bmi(height, weight)

        return cls(
            wants_future_pregnancy=pick("wantsFuturePregnancy", "wants_future_pregnancy"),
            wants_surgical_method=pick("wantsSurgicalMethod", "wants_surgical_method"),
            wants_to_continue_with_long_term=pick(
                "wantsToContinueWithLongTerm", "wants_to_continue_with_long_term"
            ),
            okay_with_irregular_periods=pick("okayWithIrregularPeriods", "okay_with_irregular_periods"),
            preferred_frequency=pick("preferredFrequency", "preferred_frequency"),
            current_bmi=current_bmi,
            height=height,
            weight=weight,
        )


@dataclass
class EliminationRecord:
    method: str
    reason: str


@dataclass
class PersonalizationResult:
    recommended: List[str]
    notices: List[str] = field(default_factory=list)
    eliminated: List[EliminationRecord] = field(default_factory=list)
    should_show_permanent_methods: bool = False
    bmi_too_high_for_3_weeks: bool = False


# ==================== PIPELINE ====================

class PersonalizationEngine:
    """
    Sequential elimination funnel with early-exit branches.
    """

    STERILIZATION_METHODS = ("h", "o")
    BARRIER_METHOD = "j"

    # Methods that keep a regular withdrawal bleed
    REGULAR_BLEEDING_METHODS = ("a", "i", "j", "k")

    FREQUENCY_METHODS = {
        "daily": ("a", "c", "k"),
        "every-3-weeks": ("i", "k"),
        "every-3-months": ("d",),
        "every-3-years": ("e",),
        "every-8-years": ("f", "g"),
    }

    # Questionnaire option text accepted in place of the frequency identifier
    FREQUENCY_LABELS = {
        "Every day": "daily",
        "Every 3 weeks": "every-3-weeks",
        "Every 3 months": "every-3-months",
        "Every 3 years": "every-3-years",
        "Every 8 years": "every-8-years",
    }

    MAX_BMI_FOR_3_WEEKLY = 30
    MIN_VALID_BMI = 0
    MAX_VALID_BMI = 100

    # ── Reasons ──
    REASON_FUTURE_PREGNANCY = "Wants future pregnancy - sterilization is permanent"
    REASON_NO_SURGERY = "Does not want surgical method"
    REASON_PREFERS_SURGERY = "Prefers a permanent surgical method"
    REASON_DECLINED_LONG_TERM = "Declined to continue with long-term options"
    REASON_IRREGULAR_PERIODS = "May cause irregular or no periods"
    REASON_FREQUENCY = "Does not match preferred frequency"
    REASON_BMI_3_WEEKLY = "BMI >30 - no safe method can be used every 3 weeks"

    # ── Notices ──
    NOTICE_STERILIZATION_PERMANENT = "Sterilization is permanent and fertility is not reversible"
    NOTICE_STERILIZATION_UNSUITABLE = (
        "Sterilization may not be medically suitable based on your health profile"
    )
    NOTICE_DECLINED_LONG_TERM = (
        "You chose not to continue with long-term options, so no method is recommended. "
        "You can change your answers at any time."
    )
    NOTICE_BMI_3_WEEKLY = (
        "Unfortunately there's no safe method that can be used every 3 weeks for BMI >30"
    )
    NOTICE_NO_FREQUENCY_MATCH = (
        "None of the methods matching your preferred frequency are available based on your "
        "previous answers."
    )

    @staticmethod
    def compute_bmi(height_cm: Any, weight_kg: Any) -> Optional[float]:
        if not (is_real_number(height_cm) and is_real_number(weight_kg)):
            return None
        if height_cm <= 0 or weight_kg <= 0:
            return None
        return calculate_bmi(weight_kg, height_cm)

    @staticmethod
    def validate(eligible_methods: Any, filters: PersonalizationFilters) -> Optional[str]:
        """
        Returns: the canonical frequency identifier (or None)

        Raises PersonalizationError before any elimination logic runs.
        """
        if not isinstance(eligible_methods, (list, tuple)):
            raise PersonalizationError(
                ErrorCode.PERSONALIZATION_INVALID_FILTERS,
                details={
                    "reason": "Eligible methods must be an array",
                    "provided": type(eligible_methods).__name__,
                },
            )
        not_keys = [method for method in eligible_methods if not isinstance(method, str)]
        if not_keys:
            raise PersonalizationError(
                ErrorCode.PERSONALIZATION_INVALID_FILTERS,
                details={"reason": "Eligible methods must be method keys", "provided": repr(not_keys[0])},
            )

        bmi = filters.current_bmi
        if bmi is not None:
            if not is_real_number(bmi):
                raise PersonalizationError(
                    ErrorCode.PERSONALIZATION_INVALID_FILTERS,
                    details={"reason": "BMI must be a finite number", "provided": repr(bmi)},
                )
            if not (PersonalizationEngine.MIN_VALID_BMI <= bmi <= PersonalizationEngine.MAX_VALID_BMI):
                raise PersonalizationError(
                    ErrorCode.PERSONALIZATION_INVALID_FILTERS,
                    details={"reason": "BMI must be between 0 and 100", "provided": bmi},
                )

        frequency = filters.preferred_frequency
        if frequency is None or frequency == "":
            return None
        if isinstance(frequency, str):
            frequency = PersonalizationEngine.FREQUENCY_LABELS.get(frequency, frequency)
        if not isinstance(frequency, str) or frequency not in PersonalizationEngine.FREQUENCY_METHODS:
            raise PersonalizationError(
                ErrorCode.PERSONALIZATION_INVALID_FILTERS,
                details={"reason": "Unknown preferred frequency", "provided": repr(filters.preferred_frequency)},
            )
        return frequency

    @staticmethod
    def personalize(
        eligible_methods: List[str],
        filters: Union[PersonalizationFilters, Mapping[str, Any]],
    ) -> PersonalizationResult:
        if not isinstance(filters, PersonalizationFilters):
            filters = PersonalizationFilters.from_answers(filters or {})

        try:
            frequency = PersonalizationEngine.validate(eligible_methods, filters)
        except PersonalizationError as e:
            logger.warning(f"❌ Personalization input rejected: {e.details}")
            raise

        working = list(dict.fromkeys(eligible_methods))
        eliminated: List[EliminationRecord] = []
        notices: List[str] = []

        def eliminate(methods, reason: str) -> None:
            for method in methods:
                if method in working:
                    working.remove(method)
                    eliminated.append(EliminationRecord(method, reason))

        sterilization = PersonalizationEngine.STERILIZATION_METHODS

        # ─── STAGE 1: Future pregnancy intent ───
        if filters.wants_future_pregnancy is True:
            eliminate(sterilization, PersonalizationEngine.REASON_FUTURE_PREGNANCY)

        elif filters.wants_future_pregnancy is False:
            if filters.wants_surgical_method is True:
                surgical = [m for m in working if m in sterilization]
                eliminate(
                    [m for m in working if m not in sterilization],
                    PersonalizationEngine.REASON_PREFERS_SURGERY,
                )
                if surgical:
                    logger.info(f"🔚 Early exit: surgical preference, recommending {surgical}")
                    return PersonalizationResult(
                        recommended=surgical,
                        notices=[PersonalizationEngine.NOTICE_STERILIZATION_PERMANENT],
                        eliminated=eliminated,
                        should_show_permanent_methods=True,
                    )
                logger.info("🔚 Early exit: surgical preference, no sterilization eligible")
                return PersonalizationResult(
                    recommended=[],
                    notices=[PersonalizationEngine.NOTICE_STERILIZATION_UNSUITABLE],
                    eliminated=eliminated,
                )

            if filters.wants_surgical_method is False:
                eliminate(sterilization, PersonalizationEngine.REASON_NO_SURGERY)

                if filters.wants_to_continue_with_long_term is False:
                    eliminate(list(working), PersonalizationEngine.REASON_DECLINED_LONG_TERM)
                    logger.info("🔚 Early exit: declined long-term options")
                    return PersonalizationResult(
                        recommended=[],
                        notices=[PersonalizationEngine.NOTICE_DECLINED_LONG_TERM],
                        eliminated=eliminated,
                    )

        # ─── STAGE 2: Period-regularity tolerance ───
        if filters.okay_with_irregular_periods is False:
            eliminate(
                [m for m in working if m not in PersonalizationEngine.REGULAR_BLEEDING_METHODS],
                PersonalizationEngine.REASON_IRREGULAR_PERIODS,
            )

        # ─── STAGE 3: Frequency preference ───
        bmi_too_high = False
        if frequency is not None:
            bmi = filters.current_bmi
            if bmi is None:
                bmi = PersonalizationEngine.compute_bmi(filters.height, filters.weight)

            if frequency == "every-3-weeks" and bmi is not None and bmi > PersonalizationEngine.MAX_BMI_FOR_3_WEEKLY:
                bmi_too_high = True
                notices.append(PersonalizationEngine.NOTICE_BMI_3_WEEKLY)
                eliminate(list(working), PersonalizationEngine.REASON_BMI_3_WEEKLY)
            else:
                allowed = PersonalizationEngine.FREQUENCY_METHODS[frequency]
                eliminate(
                    [
                        m for m in working
                        if m not in allowed and m != PersonalizationEngine.BARRIER_METHOD
                    ],
                    PersonalizationEngine.REASON_FREQUENCY,
                )
                if not any(m in allowed for m in working):
                    notices.append(PersonalizationEngine.NOTICE_NO_FREQUENCY_MATCH)

        # ─── STAGE 4: STI-protection floor ───
        if working and PersonalizationEngine.BARRIER_METHOD not in working:
            working.append(PersonalizationEngine.BARRIER_METHOD)

        logger.info(f"✅ Personalization complete: recommended={working}")
        logger.debug(f"Eliminated {len(eliminated)} methods, {len(notices)} notices")

        return PersonalizationResult(
            recommended=working,
            notices=notices,
            eliminated=eliminated,
            bmi_too_high_for_3_weeks=bmi_too_high,
        )


def personalize(
    eligible_methods: List[str],
    filters: Union[PersonalizationFilters, Mapping[str, Any]],
) -> PersonalizationResult:
    return PersonalizationEngine.personalize(eligible_methods, filters)


# ==================== UTILITY FUNCTIONS ====================

def format_personalization_response(result: PersonalizationResult) -> Dict[str, Any]:
    """
    Convert PersonalizationResult to a JSON-serializable dictionary.
    """
    response = {
        "recommended": list(result.recommended),
        "notices": list(result.notices),
        "eliminated": [
            {"method": e.method, "reason": e.reason}
            for e in result.eliminated
        ],
        "shouldShowPermanentMethods": result.should_show_permanent_methods,
        "bmiTooHighFor3Weeks": result.bmi_too_high_for_3_weeks,
    }
    if result.recommended:
        response["stiProtectionNotice"] = STI_PROTECTION_NOTICE
    return response
