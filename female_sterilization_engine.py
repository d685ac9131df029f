"""
Female Sterilization (Tubal Occlusion) Eligibility Engine

Every section casts (category, reason) votes on the A/C/D/S scale from
sterilization_eligibility. The final category is the most restrictive vote;
with no votes it is A. Counselling and STI risk never vote.

SECTIONS:
1. Exclude immediate delay (pregnancy, unexplained bleeding, infection)
2. Postpartum
3. Post-abortion
4. Cardiovascular
5. Thromboembolism
6. HIV & immunology
7. Endocrine
8. Haematology
9. Respiratory
10. Gynecologic (including BMI)
"""

from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
import logging

from answer_normalizer import calculate_bmi, get_number
from sterilization_eligibility import (
    SterilizationCategory,
    SterilizationFinding,
    most_restrictive,
    flag_findings,
    choice_findings,
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
    A: "Accept - Proceed",
    C: "Caution - Proceed with precautions",
    D: "Delay - Temporary method recommended until condition resolved",
    S: "Special - Refer to experienced surgeon and higher-level facility",
}

CLINICAL_ACTIONS = {
    A: "Proceed with standard sterilization procedure and counselling.",
    C: "Proceed with enhanced precautions and specialized counselling.",
    D: (
        "Delay procedure. Treat underlying condition and provide temporary contraception."
    ),
    S: (
        "Refer to higher-level facility with experienced surgeon, general anesthesia "
        "capability, and full surgical backup."
    ),
}

EXPLANATIONS = {
    A: (
        "No significant restrictions identified. Client is eligible for female sterilization "
        "with standard procedure and counselling."
    ),
    C: (
        "One or more caution conditions present. Client may proceed with enhanced precautions "
        "and specialized counselling."
    ),
    D: (
        "Conditions present that require delaying the procedure. The underlying condition "
        "should be treated first. Provide temporary contraception until resolved."
    ),
    S: (
        "Conditions present that require referral to a higher-level facility with experienced "
        "surgeon, general anesthesia capability, and full surgical backup."
    ),
}

STI_ADVISORY = "Sterilization does NOT protect against STIs or HIV. Recommend consistent condom use."

COUNSELLING_ANSWERS = ("fs-understands-permanence", "fs-alternatives-discussed", "fs-informed-consent")


@dataclass
class FemaleSterilizationResult:
    category: SterilizationCategory
    category_label: str
    explanation: str
    clinical_action: str
    reasons: List[str] = field(default_factory=list)
    counselling_confirmed: bool = False
    sti_advisory: Optional[str] = None


# ==================== SECTIONS ====================

EXCLUDE_DELAY_FLAGS = [
    ("fs-currently-pregnant", D, "Currently pregnant"),
    ("fs-unexplained-vaginal-bleeding", D, "Unexplained vaginal bleeding suspicious for serious disease"),
    ("fs-systemic-infection", D, "Current systemic or severe infection"),
]

POSTPARTUM_FLAGS = [
    ("fs-severe-preeclampsia", D, "Severe pre-eclampsia/eclampsia"),
    ("fs-severe-postpartum-hemorrhage", D, "Severe postpartum hemorrhage"),
    ("fs-uterine-rupture", S, "Uterine rupture (requires specialist referral)"),
]

CARDIOVASCULAR_FLAGS = [
    ("fs-vascular-disease", S, "Vascular disease (requires specialist referral)"),
    ("fs-ischemic-heart-disease", D, "Current ischemic heart disease"),
    ("fs-history-of-stroke", C, "History of stroke"),
]

VALVULAR_DISEASE = {
    "complicated": (S, "Complicated valvular disease (requires specialist referral)"),
    "uncomplicated": (C, "Uncomplicated valvular disease"),
}

THROMBOEMBOLISM_FLAGS = [
    ("fs-acute-dvt-pe", D, "Acute DVT/PE"),
    ("fs-on-anticoagulant", S, "On anticoagulant therapy (requires specialist referral)"),
]

HIV_STATUS = {
    "stage-1-2": (A, "HIV Stage 1-2"),
    "stage-3-4": (S, "HIV Stage 3-4 (requires specialist referral)"),
}

DIABETES_SPECIALIST_COMPLICATIONS = ("vascular", "duration-over-20")

THYROID_DISORDER = {
    "hyperthyroid": (S, "Hyperthyroid disorder (requires specialist referral)"),
    "hypothyroid": (C, "Hypothyroid disorder"),
    "simple-goitre": (A, "Simple goitre"),
}

RESPIRATORY_FLAGS = [
    ("fs-acute-respiratory", D, "Acute bronchitis or pneumonia"),
    ("fs-chronic-lung-disease", S, "Chronic severe lung disease (requires specialist referral)"),
]

GYNECOLOGIC_FLAGS = [
    ("fs-gynecologic-cancer", D, "Gynecologic cancer awaiting treatment"),
    ("fs-endometriosis", S, "Endometriosis (requires specialist referral)"),
    ("fs-previous-abdominal-surgery", C, "Previous abdominal or pelvic surgery"),
]

SEVERE_ANAEMIA_HB = 7
MODERATE_ANAEMIA_HB = 10
OBESE_BMI = 30


def evaluate_exclude_delay(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    return flag_findings(answers, EXCLUDE_DELAY_FLAGS)


def evaluate_postpartum(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    """
    The 7-41 day window is a delay; earlier (at delivery or within the
    first week) and later than six weeks are acceptable timings.
    """
    if answers.get("fs-is-postpartum") is not True:
        return []

    findings = []
    days = get_number(answers, "fs-days-since-delivery")
    if days is not None:
        if days < 7:
            findings.append(SterilizationFinding(A, "Postpartum <7 days (acceptable timing)"))
        elif days <= 41:
            findings.append(SterilizationFinding(D, "Postpartum 7-41 days (delay until >42 days)"))
        elif days >= 42:
            findings.append(SterilizationFinding(A, "Postpartum ≥42 days (acceptable timing)"))

    return findings + flag_findings(answers, POSTPARTUM_FLAGS)


def evaluate_post_abortion(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    if answers.get("fs-is-post-abortion") is not True:
        return []

    complications = selected_options(answers, "fs-post-abortion-complications")
    if not complications:
        return [SterilizationFinding(A, "Post-abortion without complications")]

    findings = []
    if "uterine-perforation" in complications:
        findings.append(SterilizationFinding(
            S, "Post-abortion uterine perforation (requires specialist referral)"
        ))
    delaying = [c for c in complications if c != "uterine-perforation"]
    if delaying:
        findings.append(SterilizationFinding(D, f"Post-abortion complications: {readable_list(delaying)}"))
    return findings


def evaluate_cardiovascular(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    findings = []
    systolic = get_number(answers, "fs-bp-systolic")
    diastolic = get_number(answers, "fs-bp-diastolic")

    if systolic is not None and diastolic is not None:
        reading = f"BP: {display_number(systolic)}/{display_number(diastolic)} mmHg"
        if systolic >= 160 or diastolic >= 100:
            findings.append(SterilizationFinding(S, f"Severe hypertension ({reading})"))
        elif systolic >= 140 or diastolic >= 90:
            findings.append(SterilizationFinding(C, f"Moderate hypertension ({reading})"))

    findings += flag_findings(answers, CARDIOVASCULAR_FLAGS)
    findings += choice_findings(answers, "fs-valvular-disease", VALVULAR_DISEASE)
    return findings


def evaluate_thromboembolism(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    return flag_findings(answers, THROMBOEMBOLISM_FLAGS)


def evaluate_hiv_immunology(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    findings = choice_findings(answers, "fs-hiv-status", HIV_STATUS)

    if answers.get("fs-has-sle") is True:
        if selected_options(answers, "fs-sle-complications"):
            findings.append(SterilizationFinding(S, "SLE with complications (requires specialist referral)"))
        else:
            findings.append(SterilizationFinding(C, "SLE without complications"))
    return findings


def evaluate_endocrine(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    findings = []
    if answers.get("fs-has-diabetes") is True:
        if answers.get("fs-diabetes-complications") in DIABETES_SPECIALIST_COMPLICATIONS:
            findings.append(SterilizationFinding(
                S, "Diabetes with vascular complications or >20 years duration"
            ))
        else:
            findings.append(SterilizationFinding(C, "Diabetes without complications"))

    return findings + choice_findings(answers, "fs-thyroid-disorder", THYROID_DISORDER)


def evaluate_haematology(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    findings = []
    haemoglobin = get_number(answers, "fs-haemoglobin")
    if haemoglobin is not None:
        if haemoglobin < SEVERE_ANAEMIA_HB:
            findings.append(SterilizationFinding(D, f"Severe anaemia (Hb: {display_number(haemoglobin)} g/dL)"))
        elif haemoglobin < MODERATE_ANAEMIA_HB:
            findings.append(SterilizationFinding(C, f"Moderate anaemia (Hb: {display_number(haemoglobin)} g/dL)"))

    if answers.get("fs-coagulation-disorder") is True:
        findings.append(SterilizationFinding(S, "Coagulation disorder (requires specialist referral)"))
    return findings


def evaluate_respiratory(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    return flag_findings(answers, RESPIRATORY_FLAGS)


def evaluate_gynecologic(answers: Dict[str, Any]) -> List[SterilizationFinding]:
    findings = flag_findings(answers, GYNECOLOGIC_FLAGS)

    bmi = calculate_bmi(get_number(answers, "fs-weight"), get_number(answers, "fs-height"))
    if bmi is not None and bmi >= OBESE_BMI:
        findings.append(SterilizationFinding(C, f"BMI ≥30 ({bmi:.1f})"))

    if answers.get("fs-fixed-uterus") is True:
        findings.append(SterilizationFinding(
            S, "Fixed uterus due to surgery or infection (requires specialist referral)"
        ))
    return findings


SECTIONS = [
    evaluate_exclude_delay,
    evaluate_postpartum,
    evaluate_post_abortion,
    evaluate_cardiovascular,
    evaluate_thromboembolism,
    evaluate_hiv_immunology,
    evaluate_endocrine,
    evaluate_haematology,
    evaluate_respiratory,
    evaluate_gynecologic,
]


# ==================== MAIN ENGINE ====================

class FemaleSterilizationEngine:

    @staticmethod
    def evaluate(answers: Dict[str, Any]) -> FemaleSterilizationResult:
        answers = answers or {}

        # ─── SECTIONS 1-10: Collect votes in section order ───
        findings: List[SterilizationFinding] = []
        for section in SECTIONS:
            findings.extend(section(answers))

        category = most_restrictive([f.category for f in findings])
        reasons = [f.reason for f in findings]

        # ─── Counselling & STI risk (never vote) ───
        counselling_confirmed = all(answers.get(answer_id) is True for answer_id in COUNSELLING_ANSWERS)
        sti_advisory = STI_ADVISORY if answers.get("fs-sti-risk") is True else None

        logger.info(f"🎯 Female sterilization result: {category.value} ({len(reasons)} conditions)")

        return FemaleSterilizationResult(
            category=category,
            category_label=CATEGORY_LABELS[category],
            explanation=build_explanation(EXPLANATIONS[category], reasons),
            clinical_action=CLINICAL_ACTIONS[category],
            reasons=reasons,
            counselling_confirmed=counselling_confirmed,
            sti_advisory=sti_advisory,
        )


# ==================== UTILITY FUNCTIONS ====================

def format_female_sterilization_response(result: FemaleSterilizationResult) -> Dict[str, Any]:
    response = {
        "category": result.category.value,
        "categoryLabel": result.category_label,
        "explanation": result.explanation,
        "clinicalAction": result.clinical_action,
        "reasons": list(result.reasons),
        "counsellingConfirmed": result.counselling_confirmed,
    }
    if result.sti_advisory:
        response["stiAdvisory"] = result.sti_advisory
    return response
