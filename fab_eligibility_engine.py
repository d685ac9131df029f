"""
Fertility Awareness-Based (FAB) Method Eligibility Engine

Evaluates the two FAB sub-methods independently:
- SYM: symptoms-based tracking (basal temperature, cervical secretions)
- CAL: calendar-based tracking (cycle-length arithmetic)

CATEGORY SCALE (WHO MEC, FAB section):
    A  Accept  - no medical reason to deny the method
    C  Caution - method can be offered with enhanced counselling
    D  Delay   - use a temporary method until the condition resolves

Each condition casts one vote per track. The final category per track is
the most restrictive vote cast (D > C > A); with no votes it is A.
STI/HIV risk and high-risk pregnancy never vote. They only add advisories.

CONDITION GROUPS:
1. Current pregnancy (short-circuits to "not applicable")
2. Postpartum
3. Recent abortion
4. Life stage (menarche, perimenopause)
5. Menstrual & infection status
6. Drugs & medical conditions
7. STI/HIV risk (advisory)
8. Pregnancy-risk severity (advisory)
"""

from typing import Dict, Any, List, Optional, Tuple
from dataclasses import dataclass, field, replace
from enum import Enum
import logging

from answer_normalizer import get_number

logger = logging.getLogger(__name__)


# ==================== DATA MODELS ====================

class FABCategory(Enum):
    """Ordinal FAB eligibility scale (more restrictive = higher priority)"""
    A = "A"
    C = "C"
    D = "D"

    @property
    def priority(self) -> int:
        return CATEGORY_PRIORITY[self]


CATEGORY_PRIORITY = {
    FABCategory.A: 1,
    FABCategory.C: 2,
    FABCategory.D: 3,
}

CATEGORY_LABELS = {
    FABCategory.A: "Accept (no restriction)",
    FABCategory.C: "Caution (enhanced counselling required)",
    FABCategory.D: "Delay (temporary method recommended until condition resolved)",
}

METHOD_NAMES = {
    "SYM": "Symptoms-Based Method (SYM)",
    "CAL": "Calendar-Based Method (CAL)",
}

ACTION_REQUIRED = {
    FABCategory.C: "Enhanced counselling required before use.",
    FABCategory.D: "Recommend temporary method until condition resolved.",
}

EXPLANATIONS = {
    ("SYM", FABCategory.A): (
        "No identified restrictions for symptoms-based tracking. "
        "Client may use SYM with standard counselling."
    ),
    ("CAL", FABCategory.A): (
        "No identified restrictions for calendar-based tracking. "
        "Client may use CAL with standard counselling."
    ),
    ("SYM", FABCategory.C): (
        "One or more caution conditions present (e.g., postpartum, perimenopause, medications). "
        "Enhanced counselling and cycle stability evaluation recommended."
    ),
    ("CAL", FABCategory.C): (
        "One or more caution conditions present (e.g., irregular cycles, perimenopause). "
        "Enhanced counselling recommended."
    ),
    ("SYM", FABCategory.D): (
        "Conditions present that temporarily limit reliability of fertility signs "
        "(e.g., recent delivery, irregular bleeding, acute illness). "
        "Recommend alternative method until resolved."
    ),
    ("CAL", FABCategory.D): (
        "Conditions present that limit calendar method reliability. "
        "Recommend alternative method until resolved."
    ),
}

NOT_APPLICABLE_MESSAGE = "FAB methods are not relevant during pregnancy."


@dataclass
class FABContributingFactor:
    """A condition and the category it voted for on one track"""
    condition: str
    category: FABCategory


@dataclass
class FABMethodResult:
    """Final eligibility for one FAB sub-method"""
    method: str  # "SYM" or "CAL"
    method_name: str
    category: FABCategory
    category_label: str
    explanation: str
    action_required: Optional[str] = None
    contributing_factors: List[FABContributingFactor] = field(default_factory=list)


@dataclass
class FABAdvisory:
    """Non-scoring message that is always surfaced alongside the categories"""
    id: str
    type: str
    message: str


@dataclass
class FABEligibilityResult:
    not_applicable: bool
    sym: Optional[FABMethodResult]
    cal: Optional[FABMethodResult]
    advisories: List[FABAdvisory] = field(default_factory=list)
    not_applicable_message: Optional[str] = None


def most_restrictive(categories: List[FABCategory]) -> FABCategory:
    """D > C > A; an empty vote list means no restriction."""
    if not categories:
        return FABCategory.A
    return max(categories, key=lambda c: c.priority)


# ==================== CONDITION GROUPS ====================

class PostpartumEvaluator:
    """
    Postpartum voting for both tracks.

    Fertility signs are unreliable while lactational amenorrhoea persists,
    and the first postpartum cycles are too irregular for calendar counting.
    An unknown delivery interval falls back to the conservative SYM C / CAL D.
    """

    @staticmethod
    def evaluate(answers: Dict[str, Any]) -> Optional[Tuple[str, FABCategory, FABCategory]]:
        """
        Returns: (condition, sym_category, cal_category), or None when not postpartum
        """
        if answers.get("fab-delivered-last-6-months") is not True:
            return None

        weeks = get_number(answers, "fab-weeks-since-delivery")
        breastfeeding = answers.get("fab-currently-breastfeeding") is True
        menses_resumed = answers.get("fab-menses-resumed") is True

        if breastfeeding:
            if weeks is not None and weeks < 6:
                return "Postpartum (<6 weeks, breastfeeding)", FABCategory.D, FABCategory.D
            if weeks is not None and not menses_resumed:
                return (
                    "Postpartum (≥6 weeks, breastfeeding, menses not resumed)",
                    FABCategory.C, FABCategory.D,
                )
            if menses_resumed:
                return "Postpartum (breastfeeding, menses resumed)", FABCategory.C, FABCategory.C
            return "Postpartum (breastfeeding)", FABCategory.C, FABCategory.D

        if weeks is not None and weeks < 4:
            return "Postpartum (<4 weeks, not breastfeeding)", FABCategory.D, FABCategory.D
        if weeks is not None:
            return "Postpartum (≥4 weeks, not breastfeeding)", FABCategory.A, FABCategory.D
        return "Postpartum (not breastfeeding)", FABCategory.C, FABCategory.D


MAX_YEARS_SINCE_MENARCHE = 2


def _answered_yes(answer_id: str):
    return lambda answers: answers.get(answer_id) is True


def _recent_menarche(answers: Dict[str, Any]) -> bool:
    years = get_number(answers, "fab-years-since-menarche")
    return years is not None and years <= MAX_YEARS_SINCE_MENARCHE


# Groups 3-6 in order: (predicate, condition, SYM vote, CAL vote)
CONDITIONS = [
    (_answered_yes("fab-abortion-last-4-weeks"), "Recent abortion (<4 weeks)", FABCategory.C, FABCategory.D),
    (_recent_menarche, "≤2 years since menarche", FABCategory.C, FABCategory.C),
    (_answered_yes("fab-perimenopausal-symptoms"), "Perimenopausal symptoms", FABCategory.C, FABCategory.C),
    (_answered_yes("fab-irregular-vaginal-bleeding"), "Irregular vaginal bleeding", FABCategory.D, FABCategory.D),
    (_answered_yes("fab-abnormal-vaginal-discharge"), "Abnormal vaginal discharge", FABCategory.D, FABCategory.A),
    (_answered_yes("fab-medications-affect-cycle"), "Medications affecting cycle/fertility signs",
     FABCategory.C, FABCategory.C),
    (_answered_yes("fab-chronic-elevated-temperature"), "Chronic elevated temperature", FABCategory.C, FABCategory.A),
    (_answered_yes("fab-acute-febrile-illness"), "Acute febrile illness", FABCategory.D, FABCategory.A),
]

# Groups 6-8 advisories: (predicate, advisory)
ADVISORY_CONDITIONS = [
    (_answered_yes("fab-medications-affect-cycle"), FABAdvisory(
        id="medication-evaluation",
        type="medication-evaluation",
        message="Further evaluation of cycle stability required.",
    )),
    (_answered_yes("fab-sti-hiv-risk"), FABAdvisory(
        id="sti-advisory",
        type="sti",
        message="FAB methods do NOT protect against STIs/HIV. Recommend correct and consistent condom use.",
    )),
    (_answered_yes("fab-high-risk-pregnancy"), FABAdvisory(
        id="high-risk-pregnancy",
        type="high-risk-pregnancy",
        message="FAB methods may not be appropriate due to relatively higher typical-use failure rates.",
    )),
]


# ==================== MAIN FAB ENGINE ====================

class FABEligibilityEngine:
    """
    Orchestrates the condition groups and resolves each track.
    """

    @staticmethod
    def evaluate(answers: Dict[str, Any]) -> FABEligibilityResult:
        answers = answers or {}

        # ─── GROUP 1: Pregnancy short-circuit ───
        if answers.get("fab-currently-pregnant") == "yes":
            logger.info("🤰 FAB not applicable: currently pregnant")
            return FABEligibilityResult(
                not_applicable=True,
                not_applicable_message=NOT_APPLICABLE_MESSAGE,
                sym=None,
                cal=None,
                advisories=[],
            )

        sym_factors: List[FABContributingFactor] = []
        cal_factors: List[FABContributingFactor] = []

        def vote(condition: str, sym: FABCategory, cal: FABCategory) -> None:
            sym_factors.append(FABContributingFactor(condition, sym))
            cal_factors.append(FABContributingFactor(condition, cal))

        # ─── GROUP 2: Postpartum ───
        postpartum = PostpartumEvaluator.evaluate(answers)
        if postpartum is not None:
            vote(*postpartum)

        # ─── GROUPS 3-6: Abortion, life stage, menstrual/infection, drugs/medical ───
        for applies, condition, sym, cal in CONDITIONS:
            if applies(answers):
                vote(condition, sym, cal)

        # ─── GROUPS 6-8: Advisories (never vote) ───
        advisories = [
            replace(advisory) for applies, advisory in ADVISORY_CONDITIONS
            if applies(answers)
        ]

        sym_result = FABEligibilityEngine.build_method_result("SYM", sym_factors)
        cal_result = FABEligibilityEngine.build_method_result("CAL", cal_factors)

        logger.info(
            f"🎯 FAB result: SYM={sym_result.category.value} CAL={cal_result.category.value} "
            f"({len(advisories)} advisories)"
        )

        return FABEligibilityResult(
            not_applicable=False,
            sym=sym_result,
            cal=cal_result,
            advisories=advisories,
        )

    @staticmethod
    def build_method_result(method: str, factors: List[FABContributingFactor]) -> FABMethodResult:
        category = most_restrictive([f.category for f in factors])

        # Only the conditions that decided the final category are reported
        contributing = (
            [f for f in factors if f.category == category]
            if category is not FABCategory.A else []
        )

        return FABMethodResult(
            method=method,
            method_name=METHOD_NAMES[method],
            category=category,
            category_label=CATEGORY_LABELS[category],
            explanation=EXPLANATIONS[(method, category)],
            action_required=ACTION_REQUIRED.get(category),
            contributing_factors=contributing,
        )


# ==================== UTILITY FUNCTIONS ====================

def _format_method_result(result: Optional[FABMethodResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    formatted = {
        "method": result.method,
        "methodName": result.method_name,
        "category": result.category.value,
        "categoryLabel": result.category_label,
        "explanation": result.explanation,
        "contributingFactors": [
            {"condition": f.condition, "category": f.category.value}
            for f in result.contributing_factors
        ],
    }
    if result.action_required:
        formatted["actionRequired"] = result.action_required
    return formatted


def format_fab_response(result: FABEligibilityResult) -> Dict[str, Any]:
    """
    Convert FABEligibilityResult to a JSON-serializable dictionary.
    """
    response = {
        "notApplicable": result.not_applicable,
        "sym": _format_method_result(result.sym),
        "cal": _format_method_result(result.cal),
        "advisories": [
            {"id": a.id, "type": a.type, "message": a.message}
            for a in result.advisories
        ],
    }
    if result.not_applicable_message:
        response["notApplicableMessage"] = result.not_applicable_message
    return response
