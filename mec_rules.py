"""
WHO Medical Eligibility Criteria (MEC) Rule Table

Declarative encoding of the WHO MEC for Contraceptive Use (5th edition, 2015)
as it applies to the 15 methods scored by the MEC rules engine.

STRUCTURE:
Each Rule is plain data: an identifier, the clinical section it belongs to,
a priority (lower evaluates first within the merged table), a trigger
predicate over the normalized answer state, and one or more RuleEffects.
A RuleEffect assigns one MEC category (1-4) plus a reason to a set of
method keys.

Triggers follow the open-world convention of answer_normalizer: a missing
answer compares as "not this value", so a rule only fires on an explicit
answer. Boolean answers are matched by identity (`is True` / `is False`);
an unanswered question is neither.

SECTIONS:
1. Menstrual history          5. Gynecological history
2. Pregnancy history          6. Reproductive tract infections
3. Cardiovascular risk        7. Comorbidities
4. Prothrombotic conditions   9. Medication history

Method keys:
    a COC            f Copper IUD             k Vaginal ring
    b CIC            g LNG IUD                l Male condom
    c POP            h Female sterilization   m Female condom
    d DMPA           i Patch                  n Diaphragm
    e Implant        j Barrier (general)      o Male sterilization
"""

from typing import Dict, Any, Callable, Tuple
from dataclasses import dataclass

from answer_normalizer import (
    get_age,
    get_number,
    get_computed,
    get_blood_pressure,
    get_lipid_profile,
    has_medication,
)


# ==================== DATA MODELS ====================

@dataclass(frozen=True)
class RuleEffect:
    """One MEC category assigned to a set of methods, with its reason"""
    method_keys: Tuple[str, ...]
    mec: int  # 1-4
    reason: str


@dataclass(frozen=True)
class Rule:
    """A single WHO MEC condition and the scores it implies"""
    id: str
    section: str
    priority: int
    trigger: Callable[[Dict[str, Any]], bool]
    effects: Tuple[RuleEffect, ...]
    description: str = ""


# Method groupings used across sections
COMBINED_HORMONAL = ("a", "b", "i", "k")
PROGESTIN_METHODS = ("c", "d", "e", "g")
HORMONAL_METHODS = ("a", "b", "c", "d", "e", "g", "i", "k")
IUDS = ("f", "g")
STERILIZATION = ("h", "o")


def _yes(a: Dict[str, Any], key: str) -> bool:
    return a.get(key) is True


def _no(a: Dict[str, Any], key: str) -> bool:
    return a.get(key) is False


def _between(value, low, high) -> bool:
    return value is not None and low <= value <= high


# ==================== SECTION 1: MENSTRUAL HISTORY ====================

def _prolonged_or_heavy_bleeding(a: Dict[str, Any]) -> bool:
    bleeding_days = get_number(a, "bleeding-days")
    return (bleeding_days is not None and bleeding_days > 8) or _yes(a, "heavy-menstrual-bleeding")


def _age_below(limit):
    def trigger(a: Dict[str, Any]) -> bool:
        age = get_age(a)
        return age is not None and age < limit
    return trigger


def _age_above(limit):
    def trigger(a: Dict[str, Any]) -> bool:
        age = get_age(a)
        return age is not None and age > limit
    return trigger


SECTION1_MENSTRUAL_RULES = (
    Rule(
        "age-under-18-dmpa", "menstrual-history", 10, _age_below(18),
        (RuleEffect(("d",), 2, "Age <18: DMPA may affect bone density in adolescents"),),
        "DMPA restriction for users under 18",
    ),
    Rule(
        "age-under-20-iud", "menstrual-history", 11, _age_below(20),
        (RuleEffect(IUDS, 2, "Age <20: IUDs have greater risk in nulliparous adolescents"),),
        "IUD restriction for users under 20",
    ),
    Rule(
        "age-20-38-sterilization", "menstrual-history", 12,
        lambda a: _between(get_age(a), 20, 38),
        (RuleEffect(STERILIZATION, 3, "Age 20-38: Possible regret with permanent sterilization"),),
        "Sterilization caution for reproductive age",
    ),
    Rule(
        "age-over-39-combined", "menstrual-history", 13, _age_above(39),
        (RuleEffect(("a", "b", "k", "i"), 2,
                    "Age >39: Combined hormonal methods have increased cardiovascular risk"),),
        "Combined methods caution for age over 39",
    ),
    Rule(
        "age-over-45-dmpa", "menstrual-history", 14, _age_above(45),
        (RuleEffect(("d",), 2, "Age >45: DMPA may accelerate bone loss"),),
        "DMPA caution for age over 45",
    ),
    Rule(
        "prolonged-or-hmb", "menstrual-history", 20, _prolonged_or_heavy_bleeding,
        (RuleEffect(("c", "d", "e", "f"), 2,
                    "Prolonged bleeding or HMB: Progestin-only and IUDs may have different bleeding patterns"),),
        "Prolonged bleeding or heavy menstrual bleeding",
    ),
    Rule(
        "irregular-periods", "menstrual-history", 21, lambda a: _yes(a, "irregular-periods"),
        (RuleEffect(("c", "d", "e"), 2,
                    "Irregular periods: Progestin-only methods may cause irregular bleeding"),),
        "Irregular periods: progestin-only MEC 2",
    ),
    Rule(
        "unexplained-bleeding-2", "menstrual-history", 30,
        lambda a: _yes(a, "unexplained-vaginal-bleeding"),
        (RuleEffect(("a", "b", "c", "i", "k"), 2,
                    "Unexplained vaginal bleeding: Combined/progestin methods may mask pathology"),),
        "Unexplained bleeding - combined/progestin MEC 2",
    ),
    Rule(
        "unexplained-bleeding-3", "menstrual-history", 31,
        lambda a: _yes(a, "unexplained-vaginal-bleeding"),
        (RuleEffect(("d", "e"), 3, "Unexplained vaginal bleeding: DMPA/implant may mask pathology"),),
        "Unexplained bleeding - DMPA/implant MEC 3",
    ),
    Rule(
        "unexplained-bleeding-4", "menstrual-history", 32,
        lambda a: _yes(a, "unexplained-vaginal-bleeding"),
        (RuleEffect(IUDS, 4, "Unexplained vaginal bleeding: IUDs contraindicated until cause established"),),
        "Unexplained bleeding - IUDs MEC 4",
    ),
    Rule(
        "endometriosis-copper-iud", "menstrual-history", 40,
        lambda a: _yes(a, "painful-menses-endometriosis"),
        (RuleEffect(("f",), 2, "Endometriosis/painful menses: Copper IUD may worsen symptoms"),),
        "Endometriosis - copper IUD MEC 2",
    ),
    Rule(
        "latex-allergy", "menstrual-history", 50, lambda a: _yes(a, "latex-allergy"),
        (RuleEffect(("l", "m"), 3, "Latex allergy: Male and female condoms contain latex"),),
        "Latex allergy - condoms MEC 3",
    ),
)


# ==================== SECTION 2: PREGNANCY HISTORY ====================

def _breastfeeding(a: Dict[str, Any]) -> bool:
    return _yes(a, "birth-past-2y") and _yes(a, "breastfeeding")


def _not_breastfeeding(a: Dict[str, Any]) -> bool:
    return _yes(a, "birth-past-2y") and _no(a, "breastfeeding")


def _breastfeeding_under_2_days(a: Dict[str, Any]) -> bool:
    days = get_computed(a, "daysSinceBirth")
    return _breastfeeding(a) and days is not None and days < 2


def _breastfeeding_2_days_to_4_weeks(a: Dict[str, Any]) -> bool:
    return _breastfeeding(a) and _between(get_computed(a, "daysSinceBirth"), 2, 28)


def _breastfeeding_4_to_6_weeks(a: Dict[str, Any]) -> bool:
    return _breastfeeding(a) and _between(get_computed(a, "weeksSinceBirth"), 4, 6)


def _breastfeeding_6_weeks_to_6_months(a: Dict[str, Any]) -> bool:
    weeks = get_computed(a, "weeksSinceBirth")
    months = get_computed(a, "monthsSinceBirth")
    return _breastfeeding(a) and weeks is not None and weeks >= 6 and months is not None and months <= 6


def _breastfeeding_over_6_months(a: Dict[str, Any]) -> bool:
    months = get_computed(a, "monthsSinceBirth")
    return _breastfeeding(a) and months is not None and months > 6


def _postpartum_under_21_days(a: Dict[str, Any]) -> bool:
    days = get_computed(a, "daysSinceBirth")
    return _not_breastfeeding(a) and days is not None and days < 21


def _postpartum_21_to_42_days(a: Dict[str, Any]) -> bool:
    return _not_breastfeeding(a) and _between(get_computed(a, "daysSinceBirth"), 21, 42)


def _second_trimester_abortion(a: Dict[str, Any]) -> bool:
    if not _yes(a, "had-abortion") or _yes(a, "septic-abortion"):
        return False
    week = a.get("abortion-week")
    return not isinstance(week, bool) and isinstance(week, (int, float)) and 13 <= week <= 26


SECTION2_PREGNANCY_RULES = (
    Rule(
        "never-pregnant-iud", "pregnancy-history", 10, lambda a: _no(a, "ever-pregnant"),
        (RuleEffect(IUDS, 2, "Never pregnant: IUD insertion may be more difficult in nulliparous women"),),
        "Nulliparous - IUDs MEC 2",
    ),
    Rule(
        "breastfeeding-less-than-2-days", "pregnancy-history", 20, _breastfeeding_under_2_days,
        (RuleEffect(("g",), 2, "Breastfeeding <2 days postpartum: LNG IUD caution"),),
        "Breastfeeding <48 hours - LNG IUD MEC 2",
    ),
    Rule(
        "breastfeeding-2d-4w-combined", "pregnancy-history", 21, _breastfeeding_2_days_to_4_weeks,
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Breastfeeding 2 days-4 weeks: Combined hormonal methods reduce milk supply"),),
        "Breastfeeding 2 days-4 weeks - combined MEC 4",
    ),
    Rule(
        "breastfeeding-2d-4w-pop", "pregnancy-history", 22, _breastfeeding_2_days_to_4_weeks,
        (RuleEffect(("c", "d", "e"), 2, "Breastfeeding 2 days-4 weeks: Progestin-only methods acceptable"),),
        "Breastfeeding 2 days-4 weeks - progestin-only MEC 2",
    ),
    Rule(
        "breastfeeding-2d-4w-iud", "pregnancy-history", 23, _breastfeeding_2_days_to_4_weeks,
        (RuleEffect(IUDS, 3, "Breastfeeding 2 days-4 weeks: IUD insertion risk of perforation"),),
        "Breastfeeding 2 days-4 weeks - IUDs MEC 3",
    ),
    Rule(
        "breastfeeding-4w-6w-combined", "pregnancy-history", 24, _breastfeeding_4_to_6_weeks,
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Breastfeeding 4-6 weeks: Combined hormonal methods reduce milk supply"),),
        "Breastfeeding 4-6 weeks - combined MEC 4",
    ),
    Rule(
        "breastfeeding-4w-6w-progestin", "pregnancy-history", 25, _breastfeeding_4_to_6_weeks,
        (RuleEffect(("c", "d", "e"), 2, "Breastfeeding 4-6 weeks: Progestin-only methods acceptable"),),
        "Breastfeeding 4-6 weeks - progestin-only MEC 2",
    ),
    Rule(
        "breastfeeding-4w-6w-sterilization", "pregnancy-history", 26, _breastfeeding_4_to_6_weeks,
        (RuleEffect(("h",), 4, "Breastfeeding 4-6 weeks: Female sterilization risk"),),
        "Breastfeeding 4-6 weeks - female sterilization MEC 4",
    ),
    Rule(
        "breastfeeding-6w-6m", "pregnancy-history", 27, _breastfeeding_6_weeks_to_6_months,
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Breastfeeding 6 weeks-6 months: Combined hormonal methods may reduce milk supply"),),
        "Breastfeeding 6 weeks-6 months - combined MEC 3",
    ),
    Rule(
        "breastfeeding-over-6m", "pregnancy-history", 28, _breastfeeding_over_6_months,
        (RuleEffect(COMBINED_HORMONAL, 2,
                    "Breastfeeding >6 months: Combined hormonal methods generally acceptable"),),
        "Breastfeeding >6 months - combined MEC 2",
    ),
    Rule(
        "not-breastfeeding-less-21d-risk", "pregnancy-history", 30,
        lambda a: _postpartum_under_21_days(a) and _yes(a, "postpartum-risk-factors"),
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Postpartum <21 days with risk factors: Combined hormonal methods increase VTE risk"),),
        "Not breastfeeding <21 days with VTE risk factors - combined MEC 4",
    ),
    Rule(
        "not-breastfeeding-less-21d-no-risk", "pregnancy-history", 31,
        lambda a: _postpartum_under_21_days(a) and _no(a, "postpartum-risk-factors"),
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Postpartum <21 days: Combined hormonal methods increase VTE risk"),),
        "Not breastfeeding <21 days - combined MEC 3",
    ),
    Rule(
        "not-breastfeeding-21-42d-risk", "pregnancy-history", 32,
        lambda a: _postpartum_21_to_42_days(a) and _yes(a, "postpartum-risk-factors"),
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Postpartum 21-42 days with risk factors: Combined hormonal methods caution"),),
        "Not breastfeeding 21-42 days with VTE risk factors - combined MEC 3",
    ),
    Rule(
        "not-breastfeeding-21-42d-no-risk", "pregnancy-history", 33,
        lambda a: _postpartum_21_to_42_days(a) and _no(a, "postpartum-risk-factors"),
        (RuleEffect(COMBINED_HORMONAL, 2,
                    "Postpartum 21-42 days: Combined hormonal methods generally acceptable"),),
        "Not breastfeeding 21-42 days - combined MEC 2",
    ),
    Rule(
        "septic-abortion", "pregnancy-history", 40, lambda a: _yes(a, "septic-abortion"),
        (RuleEffect(IUDS, 4, "Septic abortion: IUD contraindicated until infection resolved"),),
        "Septic abortion - IUDs MEC 4",
    ),
    Rule(
        "abortion-13-26-weeks", "pregnancy-history", 41, _second_trimester_abortion,
        (RuleEffect(IUDS, 2, "Second trimester abortion: IUD insertion caution"),),
        "Second trimester abortion - IUDs MEC 2",
    ),
    Rule(
        "ectopic-pregnancy", "pregnancy-history", 50, lambda a: _yes(a, "had-ectopic"),
        (RuleEffect(("c",), 2, "Ectopic pregnancy history: POP may have reduced efficacy"),),
        "Past ectopic pregnancy - POP MEC 2",
    ),
)


# ==================== SECTION 3: CARDIOVASCULAR RISK FACTORS ====================

def _bmi_over_29(a: Dict[str, Any]) -> bool:
    bmi = get_computed(a, "bmi")
    return bmi is not None and bmi > 29


def _smoker_over_34(a: Dict[str, Any]) -> bool:
    age = get_age(a)
    return _yes(a, "smokes") and age is not None and age > 34


def _light_smoker_over_34(a: Dict[str, Any]) -> bool:
    cigarettes = get_number(a, "cigarettes-per-day")
    return _smoker_over_34(a) and cigarettes is not None and cigarettes < 15


def _heavy_smoker_over_34(a: Dict[str, Any]) -> bool:
    cigarettes = get_number(a, "cigarettes-per-day")
    return _smoker_over_34(a) and cigarettes is not None and cigarettes > 14


def _hypertension_bp_unknown(a: Dict[str, Any]) -> bool:
    return (
        _yes(a, "has-hypertension")
        and not _yes(a, "has-bp-today")
        and not _yes(a, "can-measure-bp")
    )


def _hypertension_stage_1(a: Dict[str, Any]) -> bool:
    bp = get_blood_pressure(a)
    if not _yes(a, "has-hypertension") or bp is None:
        return False
    systolic, diastolic = bp
    return 140 <= systolic <= 159 and 90 <= diastolic <= 99


def _hypertension_stage_2(a: Dict[str, Any]) -> bool:
    bp = get_blood_pressure(a)
    if not _yes(a, "has-hypertension") or bp is None:
        return False
    systolic, diastolic = bp
    return systolic > 159 or diastolic > 99


def _pregnancy_hypertension_controlled(a: Dict[str, Any]) -> bool:
    if not (_yes(a, "has-hypertension") and _yes(a, "hypertension-during-pregnancy")):
        return False
    bp = get_blood_pressure(a)
    return bp is not None and bp[0] < 140 and bp[1] < 90


def _diabetes_duration(a: Dict[str, Any], duration: str) -> bool:
    return _yes(a, "has-diabetes") and a.get("diabetes-years-ago") == duration


def _abnormal_lipid_profile(a: Dict[str, Any]) -> bool:
    if not (_yes(a, "has-dyslipidemia") and _yes(a, "knows-lipid-profile")):
        return False
    lipids = get_lipid_profile(a)
    return (
        lipids.get("ldl", 0) > 200
        or ("hdl" in lipids and lipids["hdl"] < 50)
        or lipids.get("cholesterol", 0) > 200
        or lipids.get("triglyceride", 0) > 150
    )


SECTION3_CVS_RULES = (
    Rule(
        "bmi-over-29-age-under-18", "cvs-risk-factors", 10,
        lambda a: _bmi_over_29(a) and _age_below(18)(a),
        (RuleEffect(("a", "b", "k", "d"), 2,
                    "BMI >29 and age <18: Hormonal methods may affect weight and bone"),),
        "Obesity in adolescents - combined/DMPA MEC 2",
    ),
    Rule(
        "bmi-over-29-age-over-17", "cvs-risk-factors", 11,
        lambda a: _bmi_over_29(a) and _age_above(17)(a),
        (RuleEffect(("a", "b", "k"), 2, "BMI >29: Combined hormonal methods may have reduced efficacy"),),
        "Obesity - combined MEC 2",
    ),
    Rule(
        "smoking-age-over-34-less-15", "cvs-risk-factors", 20, _light_smoker_over_34,
        (
            RuleEffect(("a", "b", "i"), 3,
                       "Smoking >34 years: Combined hormonal methods increase cardiovascular risk"),
            RuleEffect(("k",), 2, "Smoking >34 years: Vaginal ring caution"),
        ),
        "Smoking <15/day aged 35+ - combined MEC 3",
    ),
    Rule(
        "smoking-age-over-34-more-14", "cvs-risk-factors", 21, _heavy_smoker_over_34,
        (
            RuleEffect(("a", "b", "i"), 4,
                       "Heavy smoking >34 years: Combined hormonal methods contraindicated"),
            RuleEffect(("k",), 3, "Heavy smoking >34 years: Vaginal ring not recommended"),
        ),
        "Smoking 15+/day aged 35+ - combined MEC 4",
    ),
    Rule(
        "smoking-age-under-35", "cvs-risk-factors", 22,
        lambda a: _yes(a, "smokes") and _age_below(35)(a),
        (RuleEffect(COMBINED_HORMONAL, 2, "Smoking <35 years: Combined hormonal methods caution"),),
        "Smoking under 35 - combined MEC 2",
    ),
    Rule(
        "hypertension-cannot-measure", "cvs-risk-factors", 30, _hypertension_bp_unknown,
        (
            RuleEffect(("a", "b", "i"), 3,
                       "Hypertension, BP unknown: Combined hormonal methods increase stroke risk"),
            RuleEffect(PROGESTIN_METHODS, 2,
                       "Hypertension, BP unknown: Progestin methods generally acceptable"),
            RuleEffect(("k",), 3, "Hypertension, BP unknown: Vaginal ring caution"),
        ),
        "Hypertension without a BP reading",
    ),
    Rule(
        "hypertension-stage1", "cvs-risk-factors", 31, _hypertension_stage_1,
        (
            RuleEffect(("a", "b", "k"), 3,
                       "Stage 1 hypertension: Combined hormonal methods increase cardiovascular risk"),
            RuleEffect(("d",), 2, "Stage 1 hypertension: DMPA may affect blood pressure"),
        ),
        "Systolic 140-159 / diastolic 90-99",
    ),
    Rule(
        "hypertension-stage2-combined", "cvs-risk-factors", 32, _hypertension_stage_2,
        (RuleEffect(("a", "b", "k"), 4, "Stage 2 hypertension: Combined hormonal methods contraindicated"),),
        "Systolic >=160 or diastolic >=100 - combined MEC 4",
    ),
    Rule(
        "hypertension-stage2-progestin", "cvs-risk-factors", 33, _hypertension_stage_2,
        (
            RuleEffect(("c", "e", "g"), 2, "Stage 2 hypertension: Progestin methods generally acceptable"),
            RuleEffect(("d",), 3, "Stage 2 hypertension: DMPA may worsen hypertension"),
        ),
        "Systolic >=160 or diastolic >=100 - progestin",
    ),
    Rule(
        "hypertension-pregnancy-history", "cvs-risk-factors", 34, _pregnancy_hypertension_controlled,
        (RuleEffect(COMBINED_HORMONAL, 2,
                    "History of hypertension during pregnancy: Combined methods caution"),),
        "Hypertension in pregnancy, BP now normal - combined MEC 2",
    ),
    Rule(
        "diabetes-more-than-20y", "cvs-risk-factors", 40,
        lambda a: _diabetes_duration(a, "more-than-20"),
        (
            RuleEffect(COMBINED_HORMONAL, 3,
                       "Diabetes >20 years: Combined hormonal methods increase cardiovascular risk"),
            RuleEffect(("c", "e", "g"), 2, "Diabetes >20 years: Progestin methods generally acceptable"),
            RuleEffect(("d",), 3, "Diabetes >20 years: DMPA may affect glucose metabolism"),
        ),
        "Diabetes of more than 20 years duration",
    ),
    Rule(
        "diabetes-complications", "cvs-risk-factors", 41,
        lambda a: _diabetes_duration(a, "less-than-20") and _yes(a, "diabetes-complications"),
        (
            RuleEffect(("a", "b", "d", "i", "k"), 3,
                       "Diabetes with complications: Hormonal methods increase risk"),
            RuleEffect(("c", "e", "g"), 2,
                       "Diabetes with complications: Progestin-only generally acceptable"),
        ),
        "Diabetes with nephropathy/retinopathy/neuropathy",
    ),
    Rule(
        "diabetes-less-20y-no-complications", "cvs-risk-factors", 42,
        lambda a: _diabetes_duration(a, "less-than-20") and _no(a, "diabetes-complications"),
        (RuleEffect(HORMONAL_METHODS, 2,
                    "Diabetes <20 years: Hormonal methods generally acceptable with monitoring"),),
        "Uncomplicated diabetes - hormonal MEC 2",
    ),
    Rule(
        "vascular-disease-combined", "cvs-risk-factors", 50, lambda a: _yes(a, "vascular-disease"),
        (RuleEffect(COMBINED_HORMONAL, 4, "Vascular disease: Combined hormonal methods contraindicated"),),
        "Vascular disease - combined MEC 4",
    ),
    Rule(
        "vascular-disease-progestin", "cvs-risk-factors", 51, lambda a: _yes(a, "vascular-disease"),
        (
            RuleEffect(("c", "e", "g"), 2, "Vascular disease: Progestin methods generally acceptable"),
            RuleEffect(("d",), 3, "Vascular disease: DMPA caution"),
        ),
        "Vascular disease - progestin",
    ),
    Rule(
        "ischemic-heart-disease", "cvs-risk-factors", 60, lambda a: _yes(a, "ischemic-heart-disease"),
        (
            RuleEffect(COMBINED_HORMONAL, 4,
                       "Ischemic heart disease: Combined hormonal methods contraindicated"),
            RuleEffect(PROGESTIN_METHODS, 3, "Ischemic heart disease: Progestin methods caution"),
        ),
        "Current or past ischemic heart disease",
    ),
    Rule(
        "stroke-combined", "cvs-risk-factors", 70, lambda a: _yes(a, "had-stroke"),
        (RuleEffect(COMBINED_HORMONAL, 4, "Stroke history: Combined hormonal methods contraindicated"),),
        "Stroke history - combined MEC 4",
    ),
    Rule(
        "stroke-progestin", "cvs-risk-factors", 71, lambda a: _yes(a, "had-stroke"),
        (
            RuleEffect(("c", "d", "e"), 3, "Stroke history: Progestin methods caution"),
            RuleEffect(("g",), 2, "Stroke history: LNG IUD generally acceptable"),
        ),
        "Stroke history - progestin",
    ),
    Rule(
        "dyslipidemia-abnormal", "cvs-risk-factors", 80, _abnormal_lipid_profile,
        (RuleEffect(HORMONAL_METHODS, 2, "Abnormal lipid profile: Hormonal methods may affect lipids"),),
        "Known abnormal lipid profile - hormonal MEC 2",
    ),
    Rule(
        "dyslipidemia-unknown-profile", "cvs-risk-factors", 81,
        lambda a: _yes(a, "has-dyslipidemia") and _no(a, "knows-lipid-profile"),
        (RuleEffect(HORMONAL_METHODS, 2,
                    "Dyslipidemia, lipid profile unknown: Hormonal methods caution"),),
        "Dyslipidemia without a lipid profile - hormonal MEC 2",
    ),
)


# ==================== SECTION 4: PROTHROMBOTIC CONDITIONS ====================

def _bed_rest_days(a: Dict[str, Any]):
    return get_number(a, "bed-rest-days") if _yes(a, "major-surgery") else None


def _migraine(a: Dict[str, Any]) -> bool:
    return _yes(a, "has-headaches") and _yes(a, "migraine-like")


def _migraine_without_aura(a: Dict[str, Any]) -> bool:
    return _migraine(a) and _no(a, "migraine-aura")


def _sle(a: Dict[str, Any], diagnosis: str) -> bool:
    return _yes(a, "has-sle") and a.get("sle-diagnosis") == diagnosis


SECTION4_PROTHROMBOTIC_RULES = (
    Rule(
        "dvt-current-combined", "prothrombotic", 10,
        lambda a: _yes(a, "has-dvt") and _yes(a, "dvt-current"),
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Current DVT: Combined hormonal methods contraindicated (VTE risk)"),),
        "Acute DVT/PE - combined MEC 4",
    ),
    Rule(
        "dvt-current-progestin", "prothrombotic", 11,
        lambda a: _yes(a, "has-dvt") and _yes(a, "dvt-current"),
        (RuleEffect(PROGESTIN_METHODS, 3, "Current DVT: Progestin methods caution"),),
        "Acute DVT/PE - progestin MEC 3",
    ),
    Rule(
        "dvt-history-combined", "prothrombotic", 12,
        lambda a: _yes(a, "has-dvt") and _no(a, "dvt-current"),
        (RuleEffect(COMBINED_HORMONAL, 4, "DVT history: Combined hormonal methods contraindicated"),),
        "History of DVT/PE - combined MEC 4",
    ),
    Rule(
        "dvt-history-progestin", "prothrombotic", 13,
        lambda a: _yes(a, "has-dvt") and _no(a, "dvt-current"),
        (RuleEffect(PROGESTIN_METHODS, 2, "DVT history: Progestin methods generally acceptable"),),
        "History of DVT/PE - progestin MEC 2",
    ),
    Rule(
        "family-dvt", "prothrombotic", 14,
        lambda a: _no(a, "has-dvt") and _yes(a, "family-dvt"),
        (RuleEffect(COMBINED_HORMONAL, 2, "Family history of DVT: Combined hormonal methods caution"),),
        "First-degree relative with DVT/PE - combined MEC 2",
    ),
    Rule(
        "surgery-bed-rest-over-3d-combined", "prothrombotic", 20,
        lambda a: (_bed_rest_days(a) or 0) > 3,
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Major surgery with prolonged bed rest: Combined hormonal methods increase VTE risk"),),
        "Major surgery with prolonged immobilization - combined MEC 4",
    ),
    Rule(
        "surgery-bed-rest-over-3d-progestin", "prothrombotic", 21,
        lambda a: (_bed_rest_days(a) or 0) > 3,
        (RuleEffect(PROGESTIN_METHODS, 2,
                    "Major surgery with prolonged bed rest: Progestin methods generally acceptable"),),
        "Major surgery with prolonged immobilization - progestin MEC 2",
    ),
    Rule(
        "surgery-bed-rest-under-4d", "prothrombotic", 22,
        lambda a: _bed_rest_days(a) is not None and _bed_rest_days(a) < 4,
        (RuleEffect(COMBINED_HORMONAL, 2,
                    "Major surgery with brief bed rest: Combined hormonal methods caution"),),
        "Major surgery without prolonged immobilization - combined MEC 2",
    ),
    Rule(
        "valvular-complicated-combined", "prothrombotic", 30,
        lambda a: _yes(a, "valvular-heart-disease") and _yes(a, "valvular-complicated"),
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Complicated valvular heart disease: Combined hormonal methods contraindicated"),),
        "Complicated valvular heart disease - combined MEC 4",
    ),
    Rule(
        "valvular-complicated-iud", "prothrombotic", 31,
        lambda a: _yes(a, "valvular-heart-disease") and _yes(a, "valvular-complicated"),
        (RuleEffect(IUDS, 2,
                    "Complicated valvular heart disease: IUD insertion caution (endocarditis risk)"),),
        "Complicated valvular heart disease - IUDs MEC 2",
    ),
    Rule(
        "valvular-uncomplicated", "prothrombotic", 32,
        lambda a: _yes(a, "valvular-heart-disease") and _no(a, "valvular-complicated"),
        (RuleEffect(COMBINED_HORMONAL, 2, "Valvular heart disease: Combined hormonal methods caution"),),
        "Uncomplicated valvular heart disease - combined MEC 2",
    ),
    Rule(
        "sle-antiphospholipid-combined", "prothrombotic", 40,
        lambda a: _sle(a, "antiphospholipid"),
        (RuleEffect(("a", "b", "k"), 4,
                    "SLE with antiphospholipid antibodies: Combined hormonal methods contraindicated"),),
        "SLE with antiphospholipid antibodies - combined MEC 4",
    ),
    Rule(
        "sle-antiphospholipid-progestin", "prothrombotic", 41,
        lambda a: _sle(a, "antiphospholipid"),
        (RuleEffect(PROGESTIN_METHODS, 3,
                    "SLE with antiphospholipid antibodies: Progestin methods caution"),),
        "SLE with antiphospholipid antibodies - progestin MEC 3",
    ),
    Rule(
        "sle-thrombocytopenia", "prothrombotic", 42,
        lambda a: _sle(a, "clinical") and _yes(a, "severe-thrombocytopenia"),
        (
            RuleEffect(("a", "b", "c", "e", "g", "i", "k"), 2,
                       "SLE with thrombocytopenia: Hormonal methods caution"),
            RuleEffect(("d", "f"), 3,
                       "SLE with thrombocytopenia: DMPA and IUDs increase bleeding risk"),
        ),
        "SLE with severe thrombocytopenia",
    ),
    Rule(
        "sle-immunosuppressive", "prothrombotic", 43,
        lambda a: _sle(a, "clinical") and _no(a, "severe-thrombocytopenia") and _yes(a, "immunosuppressive"),
        (RuleEffect(("a", "b", "c", "d", "e", "f", "g", "i", "k"), 2,
                    "SLE on immunosuppressive: Hormonal methods caution"),),
        "SLE on immunosuppressive treatment",
    ),
    Rule(
        "migraine-aura-combined", "prothrombotic", 50,
        lambda a: _migraine(a) and _yes(a, "migraine-aura"),
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Migraine with aura: Combined hormonal methods contraindicated (stroke risk)"),),
        "Migraine with aura - combined MEC 4",
    ),
    Rule(
        "migraine-aura-progestin", "prothrombotic", 51,
        lambda a: _migraine(a) and _yes(a, "migraine-aura"),
        (RuleEffect(PROGESTIN_METHODS, 3, "Migraine with aura: Progestin methods caution"),),
        "Migraine with aura - progestin MEC 3",
    ),
    Rule(
        "migraine-no-aura-age-under-35-combined", "prothrombotic", 52,
        lambda a: _migraine_without_aura(a) and _age_below(35)(a),
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Migraine without aura, age <35: Combined hormonal methods caution"),),
        "Migraine without aura under 35 - combined MEC 3",
    ),
    Rule(
        "migraine-no-aura-age-under-35-progestin", "prothrombotic", 53,
        lambda a: _migraine_without_aura(a) and _age_below(35)(a),
        (RuleEffect(PROGESTIN_METHODS, 2,
                    "Migraine without aura, age <35: Progestin methods generally acceptable"),),
        "Migraine without aura under 35 - progestin MEC 2",
    ),
    Rule(
        "migraine-no-aura-age-over-34-combined", "prothrombotic", 54,
        lambda a: _migraine_without_aura(a) and _age_above(34)(a),
        (
            RuleEffect(("a", "b", "i"), 4,
                       "Migraine without aura, age >34: Combined hormonal methods contraindicated"),
            RuleEffect(("k",), 3, "Migraine without aura, age >34: Vaginal ring caution"),
        ),
        "Migraine without aura aged 35+ - combined MEC 4",
    ),
    Rule(
        "migraine-no-aura-age-over-34-progestin", "prothrombotic", 55,
        lambda a: _migraine_without_aura(a) and _age_above(34)(a),
        (RuleEffect(PROGESTIN_METHODS, 2,
                    "Migraine without aura, age >34: Progestin methods generally acceptable"),),
        "Migraine without aura aged 35+ - progestin MEC 2",
    ),
    Rule(
        "headaches-not-migraine", "prothrombotic", 56,
        lambda a: _yes(a, "has-headaches") and _no(a, "migraine-like"),
        (RuleEffect(COMBINED_HORMONAL, 2, "Regular headaches: Combined hormonal methods caution"),),
        "Non-migrainous headaches - combined MEC 2",
    ),
)


# ==================== SECTION 5: GYNECOLOGICAL HISTORY ====================

def _breast_cancer(a: Dict[str, Any], presence: str) -> bool:
    return (
        _yes(a, "breast-swelling")
        and a.get("breast-diagnosis") == "cancer"
        and a.get("breast-cancer-present") == presence
    )


SECTION5_GYN_RULES = (
    Rule(
        "gtd-hcg-decreasing", "gyn-history", 10,
        lambda a: _yes(a, "has-gtd") and a.get("hcg-trend") == "decreasing",
        (RuleEffect(IUDS, 3, "GTD with decreasing hCG: IUDs may cause perforation"),),
        "GTD decreasing hCG - IUDs MEC 3",
    ),
    Rule(
        "gtd-hcg-elevated", "gyn-history", 11,
        lambda a: _yes(a, "has-gtd") and a.get("hcg-trend") == "elevated",
        (RuleEffect(IUDS, 4, "GTD with persistently elevated hCG: IUDs contraindicated"),),
        "GTD elevated hCG - IUDs MEC 4",
    ),
    Rule(
        "pap-cin", "gyn-history", 20,
        lambda a: _yes(a, "had-pap-smear") and a.get("pap-result") == "cin",
        (RuleEffect(("a", "b", "i", "k", "d", "e", "g"), 2,
                    "CIN: Hormonal methods may affect cervical neoplasia progression"),),
        "Pap CIN - hormonal MEC 2",
    ),
    Rule(
        "pap-cervical-cancer-combined", "gyn-history", 21,
        lambda a: _yes(a, "had-pap-smear") and a.get("pap-result") == "cancer",
        (RuleEffect(("a", "b", "d", "e", "i", "k", "n"), 2, "Cervical cancer: Hormonal methods caution"),),
        "Cervical cancer - hormonal/diaphragm MEC 2",
    ),
    Rule(
        "pap-cervical-cancer-iud", "gyn-history", 22,
        lambda a: _yes(a, "had-pap-smear") and a.get("pap-result") == "cancer",
        (RuleEffect(IUDS, 4, "Cervical cancer: IUDs contraindicated"),),
        "Cervical cancer - IUDs MEC 4",
    ),
    Rule(
        "breast-undiagnosed", "gyn-history", 30,
        lambda a: _yes(a, "breast-swelling") and _no(a, "breast-diagnosed"),
        (RuleEffect(HORMONAL_METHODS, 2,
                    "Undiagnosed breast swelling: Hormonal methods caution until evaluated"),),
        "Undiagnosed breast mass - hormonal MEC 2",
    ),
    Rule(
        "breast-cancer-current-combined", "gyn-history", 31,
        lambda a: _breast_cancer(a, "current"),
        (RuleEffect(("a", "b", "c", "d", "e", "g", "h", "i", "j", "k", "l", "m", "n", "o"), 4,
                    "Current breast cancer: Hormonal and most methods contraindicated"),),
        "Current breast cancer - MEC 4 except copper IUD",
    ),
    Rule(
        "breast-cancer-past", "gyn-history", 32,
        lambda a: _breast_cancer(a, "past"),
        (RuleEffect(HORMONAL_METHODS, 3, "Breast cancer >5 years ago: Hormonal methods caution"),),
        "Past breast cancer, no evidence of disease for 5 years - hormonal MEC 3",
    ),
    Rule(
        "endometrial-cancer", "gyn-history", 40, lambda a: _yes(a, "endometrial-cancer"),
        (RuleEffect(IUDS, 4, "Endometrial cancer: IUDs contraindicated"),),
        "Endometrial cancer - IUDs MEC 4",
    ),
    Rule(
        "ovarian-cancer", "gyn-history", 50, lambda a: _yes(a, "ovarian-cancer"),
        (RuleEffect(IUDS, 3, "Ovarian cancer: IUDs caution"),),
        "Ovarian cancer - IUDs MEC 3",
    ),
    Rule(
        "fibroids-distort", "gyn-history", 60,
        lambda a: _yes(a, "uterine-fibroids") and _yes(a, "fibroids-distort-uterus"),
        (RuleEffect(IUDS, 4, "Fibroids distorting uterine cavity: IUDs contraindicated"),),
        "Fibroids distorting the uterine cavity - IUDs MEC 4",
    ),
    Rule(
        "pelvic-distorts", "gyn-history", 70,
        lambda a: _yes(a, "pelvic-abnormalities") and _yes(a, "pelvic-distorts-uterus"),
        (RuleEffect(IUDS, 4, "Pelvic abnormalities distorting cavity: IUDs contraindicated"),),
        "Anatomical abnormality distorting the cavity - IUDs MEC 4",
    ),
    Rule(
        "pelvic-no-distortion", "gyn-history", 71,
        lambda a: _yes(a, "pelvic-abnormalities") and _no(a, "pelvic-distorts-uterus"),
        (RuleEffect(IUDS, 2, "Pelvic abnormalities: IUD insertion may be more difficult"),),
        "Anatomical abnormality without distortion - IUDs MEC 2",
    ),
)


# ==================== SECTION 6: REPRODUCTIVE TRACT INFECTIONS ====================

SECTION6_RTI_RULES = (
    Rule(
        "pid-current", "rti", 10,
        lambda a: _yes(a, "has-pid") and _yes(a, "pid-current"),
        (RuleEffect(IUDS, 4, "Current PID: IUDs contraindicated until infection resolved"),),
        "Current PID - IUDs MEC 4",
    ),
    Rule(
        "pid-past-no-pregnancy", "rti", 11,
        lambda a: _yes(a, "has-pid") and _no(a, "pid-current") and _no(a, "pid-subsequent-pregnancy"),
        (RuleEffect(IUDS, 2, "Past PID without subsequent pregnancy: IUD insertion caution"),),
        "Past PID without subsequent pregnancy - IUDs MEC 2",
    ),
    Rule(
        "sti-purulent", "rti", 20,
        lambda a: _yes(a, "has-sti") and a.get("sti-type") == "purulent",
        (RuleEffect(IUDS, 4,
                    "Purulent cervicitis/gonorrhea/chlamydia: IUDs contraindicated until treated"),),
        "Purulent cervicitis or chlamydia/gonorrhoea - IUDs MEC 4",
    ),
    Rule(
        "sti-other", "rti", 21,
        lambda a: _yes(a, "has-sti") and a.get("sti-type") == "other",
        (RuleEffect(IUDS, 2, "Other STI (trichomonas, BV): IUD insertion caution"),),
        "Other STIs - IUDs MEC 2",
    ),
    Rule(
        "hiv-stage1-2-iud", "rti", 30,
        lambda a: _yes(a, "has-hiv") and a.get("hiv-who-stage") == "stage1-2",
        (RuleEffect(IUDS, 2, "HIV Stage 1-2: IUD insertion caution"),),
        "HIV WHO stage 1-2 - IUDs MEC 2",
    ),
    Rule(
        "hiv-stage1-2-diaphragm", "rti", 31,
        lambda a: _yes(a, "has-hiv") and a.get("hiv-who-stage") == "stage1-2",
        (RuleEffect(("n",), 3, "HIV Stage 1-2: Diaphragm may increase candidiasis risk"),),
        "HIV WHO stage 1-2 - diaphragm MEC 3",
    ),
    Rule(
        "hiv-stage3-4", "rti", 32,
        lambda a: _yes(a, "has-hiv") and a.get("hiv-who-stage") == "stage3-4",
        (RuleEffect(("f", "g", "n"), 3, "HIV Stage 3-4: IUD and diaphragm caution"),),
        "HIV WHO stage 3-4 - IUDs/diaphragm MEC 3",
    ),
    Rule(
        "pelvic-tb", "rti", 40, lambda a: _yes(a, "pelvic-tb"),
        (RuleEffect(IUDS, 4, "Pelvic TB: IUDs contraindicated"),),
        "Pelvic tuberculosis - IUDs MEC 4",
    ),
)


# ==================== SECTION 7: COMORBIDITIES ====================

def _gallbladder(a: Dict[str, Any]) -> bool:
    return _yes(a, "gallbladder-disease")


def _gallbladder_treated(a: Dict[str, Any], treatment: str) -> bool:
    return (
        _gallbladder(a)
        and _yes(a, "gallbladder-symptomatic")
        and _yes(a, "gallbladder-treated")
        and a.get("gallbladder-treatment-type") == treatment
    )


def _gallbladder_untreated(a: Dict[str, Any]) -> bool:
    return _gallbladder(a) and _yes(a, "gallbladder-symptomatic") and _no(a, "gallbladder-treated")


def _benign_liver_tumor(a: Dict[str, Any], tumor_type: str) -> bool:
    return (
        _yes(a, "liver-tumor")
        and a.get("liver-tumor-type") == "benign"
        and a.get("benign-liver-tumor-type") == tumor_type
    )


def _malignant_liver_tumor(a: Dict[str, Any]) -> bool:
    return _yes(a, "liver-tumor") and a.get("liver-tumor-type") == "malignant"


def _decompensated_cirrhosis(a: Dict[str, Any]) -> bool:
    return _yes(a, "has-cirrhosis") and _yes(a, "cirrhosis-decompensated")


SECTION7_COMORBIDITIES_RULES = (
    Rule(
        "gallbladder-medical-combined", "comorbidities", 10,
        lambda a: _gallbladder_treated(a, "medical"),
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Gallbladder disease (medically treated): Combined hormonal methods may worsen disease"),),
        "Symptomatic gallbladder disease, medically treated - combined MEC 3",
    ),
    Rule(
        "gallbladder-medical-progestin", "comorbidities", 11,
        lambda a: _gallbladder_treated(a, "medical"),
        (RuleEffect(PROGESTIN_METHODS, 2,
                    "Gallbladder disease (medically treated): Progestin methods generally acceptable"),),
        "Symptomatic gallbladder disease, medically treated - progestin MEC 2",
    ),
    Rule(
        "gallbladder-symptomatic-untreated-combined", "comorbidities", 12, _gallbladder_untreated,
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Symptomatic gallbladder disease (untreated): Combined hormonal methods may worsen disease"),),
        "Symptomatic gallbladder disease, untreated - combined MEC 3",
    ),
    Rule(
        "gallbladder-symptomatic-untreated-progestin", "comorbidities", 13, _gallbladder_untreated,
        (RuleEffect(PROGESTIN_METHODS, 2,
                    "Symptomatic gallbladder disease (untreated): Progestin methods generally acceptable"),),
        "Symptomatic gallbladder disease, untreated - progestin MEC 2",
    ),
    Rule(
        "gallbladder-surgical", "comorbidities", 14,
        lambda a: _gallbladder_treated(a, "surgical"),
        (RuleEffect(HORMONAL_METHODS, 2,
                    "Gallbladder disease (surgically treated): Hormonal methods generally acceptable"),),
        "Gallbladder disease treated by cholecystectomy - hormonal MEC 2",
    ),
    Rule(
        "gallbladder-asymptomatic", "comorbidities", 15,
        lambda a: _gallbladder(a) and _no(a, "gallbladder-symptomatic"),
        (RuleEffect(HORMONAL_METHODS, 2,
                    "Gallbladder disease (asymptomatic): Hormonal methods generally acceptable"),),
        "Asymptomatic gallbladder disease - hormonal MEC 2",
    ),
    Rule(
        "cholestasis", "comorbidities", 20, lambda a: _yes(a, "cholestasis"),
        (RuleEffect(COMBINED_HORMONAL, 2,
                    "Pregnancy-related cholestasis history: Combined hormonal methods caution"),),
        "History of pregnancy-related cholestasis - combined MEC 2",
    ),
    Rule(
        "hepatitis-acute", "comorbidities", 30,
        lambda a: _yes(a, "has-hepatitis") and a.get("hepatitis-type") == "acute",
        (RuleEffect(COMBINED_HORMONAL, 3,
                    "Acute hepatitis: Combined hormonal methods contraindicated (liver metabolism)"),),
        "Acute viral hepatitis - combined MEC 3",
    ),
    Rule(
        "cirrhosis-decompensated-combined", "comorbidities", 40, _decompensated_cirrhosis,
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Decompensated cirrhosis: Combined hormonal methods contraindicated"),),
        "Severe (decompensated) cirrhosis - combined MEC 4",
    ),
    Rule(
        "cirrhosis-decompensated-progestin", "comorbidities", 41, _decompensated_cirrhosis,
        (RuleEffect(PROGESTIN_METHODS, 3, "Decompensated cirrhosis: Progestin methods caution"),),
        "Severe (decompensated) cirrhosis - progestin MEC 3",
    ),
    Rule(
        "liver-tumor-adenoma-combined", "comorbidities", 50,
        lambda a: _benign_liver_tumor(a, "hepatocellular-adenoma"),
        (RuleEffect(("a", "i", "k"), 4,
                    "Hepatocellular adenoma: Estrogen-containing methods contraindicated"),),
        "Hepatocellular adenoma - estrogen-containing MEC 4",
    ),
    Rule(
        "liver-tumor-adenoma-progestin", "comorbidities", 51,
        lambda a: _benign_liver_tumor(a, "hepatocellular-adenoma"),
        (RuleEffect(("b", "c", "d", "e", "g"), 3, "Hepatocellular adenoma: Progestin methods caution"),),
        "Hepatocellular adenoma - progestin MEC 3",
    ),
    Rule(
        "liver-tumor-fnh", "comorbidities", 52,
        lambda a: _benign_liver_tumor(a, "focal-nodular-hyperplasia"),
        (RuleEffect(HORMONAL_METHODS, 2,
                    "Focal nodular hyperplasia: Hormonal methods generally acceptable"),),
        "Focal nodular hyperplasia - hormonal MEC 2",
    ),
    Rule(
        "liver-tumor-malignant-combined", "comorbidities", 53, _malignant_liver_tumor,
        (RuleEffect(COMBINED_HORMONAL, 4,
                    "Malignant liver tumor: Combined hormonal methods contraindicated"),),
        "Hepatoma - combined MEC 4",
    ),
    Rule(
        "liver-tumor-malignant-progestin", "comorbidities", 54, _malignant_liver_tumor,
        (RuleEffect(PROGESTIN_METHODS, 3, "Malignant liver tumor: Progestin methods caution"),),
        "Hepatoma - progestin MEC 3",
    ),
    Rule(
        "iron-deficiency-anemia", "comorbidities", 60, lambda a: _yes(a, "iron-deficiency-anemia"),
        (RuleEffect(("f",), 2, "Iron deficiency anemia: Copper IUD may increase menstrual bleeding"),),
        "Iron deficiency anaemia - copper IUD MEC 2",
    ),
    Rule(
        "sickle-cell", "comorbidities", 70, lambda a: _yes(a, "sickle-cell"),
        (RuleEffect(("a", "b", "i", "k", "f"), 2,
                    "Sickle cell disease: Combined hormonal methods and copper IUD caution"),),
        "Sickle cell disease - combined/copper IUD MEC 2",
    ),
)


# ==================== SECTION 9: MEDICATION HISTORY ====================

def _taking(medication: str):
    def trigger(a: Dict[str, Any]) -> bool:
        return _yes(a, "on-medications") and has_medication(a, medication)
    return trigger


SECTION9_MEDICATIONS_RULES = (
    Rule(
        "ritonavir-diaphragm", "medication-history", 10, _taking("ritonavir"),
        (RuleEffect(("n",), 3, "Ritonavir: Diaphragm efficacy may be reduced"),),
        "Ritonavir-boosted protease inhibitors - diaphragm MEC 3",
    ),
    Rule(
        "ritonavir-hormonal", "medication-history", 11, _taking("ritonavir"),
        (RuleEffect(("a", "b", "c", "d", "e", "f", "g", "i", "k"), 2,
                    "Ritonavir: Hormonal contraceptive efficacy may be affected"),),
        "Ritonavir-boosted protease inhibitors - hormonal/IUD MEC 2",
    ),
    Rule(
        "carbamazepine-combined", "medication-history", 20, _taking("carbamazepine"),
        (RuleEffect(("a", "c", "i", "k"), 3, "Carbamazepine: Reduces efficacy of COC, POP, patch, ring"),),
        "Enzyme-inducing anticonvulsant - COC/POP/patch/ring MEC 3",
    ),
    Rule(
        "carbamazepine-injectable-implant", "medication-history", 21, _taking("carbamazepine"),
        (RuleEffect(("b", "e"), 2, "Carbamazepine: May reduce efficacy of injectable and implant"),),
        "Enzyme-inducing anticonvulsant - CIC/implant MEC 2",
    ),
    # Source table lists "b" under both MEC 3 and MEC 2; kept at 2 pending clinical review
    Rule(
        "lamotrigine-combined", "medication-history", 30, _taking("lamotrigine"),
        (
            RuleEffect(("a", "i", "k"), 3, "Lamotrigine: COC/patch/ring reduce lamotrigine levels"),
            RuleEffect(("b",), 2, "Lamotrigine: Combined injectable may affect drug levels"),
        ),
        "Lamotrigine monotherapy - combined MEC 3",
    ),
    Rule(
        "rifampicin-combined", "medication-history", 40, _taking("rifampicin"),
        (RuleEffect(("a", "c", "i", "k"), 3, "Rifampicin: Reduces efficacy of COC, POP, patch, ring"),),
        "Rifampicin/rifabutin - COC/POP/patch/ring MEC 3",
    ),
    Rule(
        "rifampicin-injectable-implant", "medication-history", 41, _taking("rifampicin"),
        (RuleEffect(("b", "e"), 2, "Rifampicin: May reduce efficacy of injectable and implant"),),
        "Rifampicin/rifabutin - CIC/implant MEC 2",
    ),
)


# ==================== MERGED TABLE ====================

RULE_SECTIONS = {
    "menstrual-history": SECTION1_MENSTRUAL_RULES,
    "pregnancy-history": SECTION2_PREGNANCY_RULES,
    "cvs-risk-factors": SECTION3_CVS_RULES,
    "prothrombotic": SECTION4_PROTHROMBOTIC_RULES,
    "gyn-history": SECTION5_GYN_RULES,
    "rti": SECTION6_RTI_RULES,
    "comorbidities": SECTION7_COMORBIDITIES_RULES,
    "medication-history": SECTION9_MEDICATIONS_RULES,
}

# Stable sort keeps section order among rules sharing a priority
MEC_RULES: Tuple[Rule, ...] = tuple(sorted(
    (rule for section in RULE_SECTIONS.values() for rule in section),
    key=lambda rule: rule.priority,
))
