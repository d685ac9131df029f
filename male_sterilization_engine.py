"""
Male Sterilization (Vasectomy) Eligibility Engine

Reproductive intent gates the whole evaluation: a client who does not want
permanent contraception is not eligible and is counselled on reversible
methods instead. Otherwise every section casts (category, reason) votes on
the A/C/D/S scale, optionally with counselling alerts, and the most
restrictive vote wins.

D always comes with a temporary-method recommendation and S with a referral.
"""

from typing import Dict, Any, List
from dataclasses import dataclass, field
import logging

from answer_normalizer import get_number
from sterilization_eligibility import (
    SterilizationCategory,
    SterilizationFinding,
    most_restrictive,
    flag_findings,
    selected_options,
    readable_list,
    display_number,
    build_explanation,
)

logger = logging.getLogger(__name__)

A = SterilizationCategory.A
C = SterilizationCategory.C
D = SterilizationCategory.D
S = SterilizationCategory.S


# ==================== DATA MODELS ====================

CATEGORY_LABELS = {
    A: "Accept - Procedure can proceed",
    C: "Caution - Special counselling required",
    D: "Delay - Treat condition first, provide temporary contraception",
    S: "Special Setting - Referral to higher-level facility required",
}

EXPLANATIONS = {
    A: (
        "No significant restrictions identified. Client is eligible for male sterilization "
        "(vasectomy) with standard procedure."
    ),
    C: (
        "One or more caution conditions present. Client may proceed with enhanced counselling "
        "and special considerations."
    ),
    D: (
        "Conditions present that require delaying the procedure. The underlying condition should "
        "be treated first, and temporary contraception should be provided."
    ),
    S: (
        "Conditions present that require referral to a higher-level facility with specialized "
        "capabilities and experienced surgical team."
    ),
}

STI_ADVISORY = (
    "Sterilization does NOT protect against STIs/HIV. "
    "Recommend consistent condom use if STI risk present."
)

MANDATORY_COUNSELLING_ALERTS = [
    "Sterilization is permanent",
    "Discuss alternative long-acting reversible methods",
]

NO_RESTRICTIONS_REASON = "No restrictions identified"

YOUNG_AGE_THRESHOLD = 30


@dataclass
class MaleSterilizationResult:
    category: SterilizationCategory
    category_label: str
    explanation: str
    clinical_recommendation: str
    reasons: List[str] = field(default_factory=list)
    sti_advisory: str = STI_ADVISORY
    counselling_alerts: List[str] = field(default_factory=list)
    temporary_contraception_recommended: bool = False
    referral_required: bool = False


def not_eligible_result() -> MaleSterilizationResult:
    """Outcome when the client does not want permanent contraception."""
    return MaleSterilizationResult(
        category=D,
        category_label="Not Eligible",
        explanation=(
            "Client does not desire permanent contraception. "
            "Male sterilization is not appropriate at this time."
        ),
        clinical_recommendation=(
            "Counsel client on alternative contraceptive methods including long-acting "
            "reversible contraceptives (LARCs)."
        ),
        reasons=["Does not desire permanent contraception"],
        sti_advisory=(
            "Remember: Sterilization does NOT protect against STIs/HIV. "
            "Condom use recommended if STI risk present."
        ),
        counselling_alerts=[
            "Discuss alternative long-acting reversible methods",
            "Explore reasons for seeking contraception",
        ],
        temporary_contraception_recommended=True,
        referral_required=False,
    )


# ==================== SECTIONS ====================

HIV_STAGES = {
    "stage-1": (A, "HIV Stage 1-2 (acceptable)"),
    "stage-2": (A, "HIV Stage 1-2 (acceptable)"),
    "stage-3": (S, "HIV Stage 3-4 (special setting required)"),
    "stage-4": (S, "HIV Stage 3-4 (special setting required)"),
}

SYSTEMIC_FLAGS = [
    ("ms-systemic-infection", D, "Systemic infection or gastroenteritis"),
    ("ms-coagulation-disorder", S, "Coagulation disorder (special setting required)"),
]

SCROTAL_FLAGS = [
    ("ms-previous-scrotal-injury", C, "Previous scrotal injury"),
    ("ms-large-varicocele", C, "Large varicocele"),
    ("ms-large-hydrocele", C, "Large hydrocele"),
    ("ms-filariasis", D, "Filariasis (elephantiasis)"),
    ("ms-intrascrotal-mass", D, "Intrascrotal mass"),
    ("ms-cryptorchidism", S, "Cryptorchidism (special setting required)"),
    ("ms-inguinal-hernia", S, "Inguinal hernia (special setting required)"),
]


def evaluate_personal(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    findings = []
    age = get_number(answers, "ms-age")
    if age is not None and age < YOUNG_AGE_THRESHOLD:
        findings.append(SterilizationFinding(
            C, f"Young age ({display_number(age)} years)",
            ("Young men should be counselled regarding permanence and possibility of regret.",),
        ))
    if answers.get("ms-depressive-disorder") is True:
        findings.append(SterilizationFinding(
            C, "Diagnosed depressive disorder",
            ("Additional counselling recommended for mental health considerations.",),
        ))
    return findings


def evaluate_hiv(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    if answers.get("ms-hiv-positive") is not True:
        return []
    stage = answers.get("ms-who-hiv-stage")
    if not isinstance(stage, str) or stage not in HIV_STAGES:
        return []
    return [SterilizationFinding(*HIV_STAGES[stage])]


def evaluate_endocrine(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    if answers.get("ms-has-diabetes") is not True:
        return []
    # Only an explicit "no" counts as uncontrolled
    if answers.get("ms-diabetes-controlled") is False:
        return [SterilizationFinding(
            C, "Diabetes mellitus (uncontrolled)",
            ("Recommend referral for glucose optimization before procedure.",),
        )]
    return [SterilizationFinding(C, "Diabetes mellitus (controlled)")]


def evaluate_anaemia(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    return flag_findings(answers, [("ms-sickle-cell-disease", A, "Sickle cell disease (acceptable)")])


def evaluate_genital(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    if answers.get("ms-local-infection") is not True:
        return []
    infections = selected_options(answers, "ms-infection-type")
    if not infections:
        return []
    return [SterilizationFinding(
        D, f"Local genital infection: {readable_list(infections)}",
        ("Delay procedure until infection treated.", "Provide temporary contraception."),
    )]


def evaluate_systemic(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    return flag_findings(answers, SYSTEMIC_FLAGS)


def evaluate_scrotal(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    return flag_findings(answers, SCROTAL_FLAGS)


SECTIONS = [
    evaluate_personal,
    evaluate_hiv,
    evaluate_endocrine,
    evaluate_anaemia,
    evaluate_genital,
    evaluate_systemic,
    evaluate_scrotal,
]


# ==================== MAIN ENGINE ====================

class MaleSterilizationEngine:

    @staticmethod
    def evaluate(answers: Dict[str, Any]) -> MaleSterilizationResult:
        answers = answers or {}

        # ─── GATE: Reproductive intent ───
        if answers.get("ms-desires-permanent-contraception") is not True:
            logger.info("🚫 Male sterilization not eligible: permanent contraception not desired")
            return not_eligible_result()

        # ─── SECTIONS: Collect votes and alerts in section order ───
        findings: List[SterilizationFinding] = []
        for section in SECTIONS:
            findings.extend(section(answers))

        category = most_restrictive([f.category for f in findings])
        reasons = [f.reason for f in findings]
        alerts = [alert for f in findings for alert in f.alerts]

        logger.info(f"🎯 Male sterilization result: {category.value} ({len(reasons)} conditions)")

        return MaleSterilizationResult(
            category=category,
            category_label=CATEGORY_LABELS[category],
            explanation=build_explanation(EXPLANATIONS[category], reasons),
            clinical_recommendation=MaleSterilizationEngine.clinical_recommendation(category, alerts),
            reasons=reasons or [NO_RESTRICTIONS_REASON],
            counselling_alerts=alerts + MANDATORY_COUNSELLING_ALERTS,
            temporary_contraception_recommended=category is D,
            referral_required=category is S,
        )

    @staticmethod
    def clinical_recommendation(category: SterilizationCategory, alerts: List[str]) -> str:
        if category is A:
            lines = [
                "✓ Procedure can proceed with standard vasectomy protocol.",
                "✓ Provide standard pre-operative counselling.",
            ]
        elif category is C:
            lines = [
                "⚠ Procedure can proceed with caution.",
                "⚠ Enhanced counselling required before proceeding.",
            ]
            if alerts:
                lines.append("\nSpecific considerations:")
                lines.extend(f"• {alert}" for alert in alerts)
        elif category is D:
            lines = [
                "⏸ Delay procedure until condition resolved.",
                "⏸ Treat underlying condition first.",
                "⏸ Provide temporary contraception method.",
            ]
            if alerts:
                lines.append("\nRequired actions:")
                lines.extend(f"• {alert}" for alert in alerts)
        else:
            lines = [
                "🏥 Refer to higher-level facility with:",
                "• Experienced surgeon",
                "• Advanced surgical capabilities",
                "• Full anesthesia support",
                "• Emergency backup available",
            ]
        return "\n".join(lines)


# ==================== UTILITY FUNCTIONS ====================

def format_male_sterilization_response(result: MaleSterilizationResult) -> Dict[str, Any]:
    return {
        "category": result.category.value,
        "categoryLabel": result.category_label,
        "explanation": result.explanation,
        "clinicalRecommendation": result.clinical_recommendation,
        "reasons": list(result.reasons),
        "stiAdvisory": result.sti_advisory,
        "counsellingAlerts": list(result.counselling_alerts),
        "temporaryContraceptionRecommended": result.temporary_contraception_recommended,
        "referralRequired": result.referral_required,
    }
