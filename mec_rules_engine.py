"""
WHO MEC Rules Engine - Contraceptive Eligibility Scoring

THEORETICAL FOUNDATION:
Deterministic rule-based Clinical Decision Support (Kawamoto et al., 2005)
over the WHO Medical Eligibility Criteria for Contraceptive Use. Every
method starts at MEC 1 ("no restriction") and can only be made more
restrictive by an explicit clinical finding.

PIPELINE:
1. Initialize all 15 methods to MEC 1 with no reasons
2. Normalize answers (age, BMI, postpartum timing, cycle irregularity)
3. Evaluate every rule in ascending priority order
4. Resolve conflicts by maximum score per method ("most restrictive wins")
5. Partition methods into suggested (1) / greaterBenefit (2) / avoid (3-4)

CONFLICT RESOLUTION:
A method's final score is max() over every fired effect that targets it.
max() is commutative, so rule order never changes a score; it only
determines the order in which distinct reasons are first recorded.

FAULT ISOLATION:
A trigger or effect that raises is logged and treated as "did not fire".
One malformed rule can never abort or corrupt the rest of an evaluation.
"""

from typing import Dict, Any, List, Optional, Iterable
from dataclasses import dataclass, field
from datetime import datetime
import logging

from answer_normalizer import normalize_answers
from mec_rules import Rule, RuleEffect, MEC_RULES

logger = logging.getLogger(__name__)


# ==================== METHOD UNIVERSE ====================

METHODS = ("a", "b", "c", "d", "e", "f", "g", "h", "i", "j", "k", "l", "m", "n", "o")

MEC_METHOD_NAMES = {
    "a": "Combined oral contraceptive (COC)",
    "b": "Combined injectable contraceptive (CIC)",
    "c": "Progestogen-only pill (POP)",
    "d": "DMPA injection",
    "e": "Implant",
    "f": "Copper IUD",
    "g": "LNG IUD",
    "h": "Female sterilization",
    "i": "Combined contraceptive patch",
    "j": "Barrier methods",
    "k": "Combined vaginal ring",
    "l": "Male condom",
    "m": "Female condom",
    "n": "Diaphragm",
    "o": "Male sterilization (vasectomy)",
}

MEC_CATEGORY_LABELS = {
    1: "No restriction",
    2: "Advantages generally outweigh risks",
    3: "Risks usually outweigh advantages",
    4: "Unacceptable health risk",
}


# ==================== DATA MODELS ====================

@dataclass
class MECResult:
    """Final score and contributing reasons for one method"""
    method_key: str
    score: int  # 1-4
    reasons: List[str] = field(default_factory=list)


@dataclass
class EvaluationResult:
    """Complete MEC evaluation: all 15 scores plus the three-way partition"""
    mec_results: List[MECResult]
    suggested: List[str]        # MEC 1
    greater_benefit: List[str]  # MEC 2
    avoid: List[str]            # MEC 3-4
    fired_rules: List[str] = field(default_factory=list)


# ==================== MAIN MEC ENGINE ====================

class MECRulesEngine:
    """
    Stateless evaluator over an immutable rule table.

    Each call builds its own score table, so concurrent evaluations never
    share mutable state.
    """

    @staticmethod
    def evaluate(
        answers: Dict[str, Any],
        rules: Iterable[Rule] = MEC_RULES,
        now: Optional[datetime] = None,
    ) -> EvaluationResult:
        """
        Score every method against the answer state.

        Never raises for missing or malformed answers.
        """
        logger.info("=" * 60)
        logger.info("🏥 STARTING WHO MEC EVALUATION")
        logger.info("=" * 60)

        # ─── STAGE 1: Initial scores ───
        scores = {method: 1 for method in METHODS}
        reasons: Dict[str, List[str]] = {method: [] for method in METHODS}

        # ─── STAGE 2: Normalize ───
        try:
            normalized = normalize_answers(answers, now=now)
        except Exception as e:
            # Raw answers still drive the rules; derived facts are left unknown
            logger.warning(f"⚠️ Answer normalization failed, continuing without computed facts: {e}")
            normalized = dict(answers) if isinstance(answers, dict) else {}
            normalized["computed"] = {}
        logger.debug(f"Computed facts: {normalized['computed']}")

        # ─── STAGE 3: Evaluate rules in priority order ───
        fired_rules = []
        for rule in sorted(rules, key=lambda r: r.priority):
            try:
                if not rule.trigger(normalized):
                    continue
                # Effects land on a copy so a failing effect leaves no partial update
                staged_scores = dict(scores)
                staged_reasons = {method: list(r) for method, r in reasons.items()}
                for effect in rule.effects:
                    MECRulesEngine.apply_effect(effect, staged_scores, staged_reasons)
            except Exception as e:
                logger.warning(f"⚠️ Rule {rule.id} evaluation error: {e}")
                continue
            scores, reasons = staged_scores, staged_reasons
            fired_rules.append(rule.id)
            logger.debug(f"  • Rule fired: {rule.id} ({rule.section})")

        # ─── STAGE 4: Categorize ───
        result = MECRulesEngine.categorize(scores, reasons)
        result.fired_rules = fired_rules

        logger.info(f"📋 Rules fired: {len(fired_rules)}")
        logger.info(
            f"🎯 Suggested: {len(result.suggested)} | "
            f"Greater benefit: {len(result.greater_benefit)} | "
            f"Avoid: {len(result.avoid)}"
        )
        logger.info("=" * 60)

        return result

    @staticmethod
    def apply_effect(effect: RuleEffect, scores: Dict[str, int], reasons: Dict[str, List[str]]) -> None:
        """
        Raise each targeted method to the effect's score (never lower it).

        Reasons are kept only for MEC 2-4 effects, deduplicated by exact
        text in order of first insertion. Unknown method keys are skipped.
        """
        for method_key in effect.method_keys:
            if method_key not in scores:
                continue

            scores[method_key] = max(scores[method_key], effect.mec)

            if effect.mec >= 2 and effect.reason not in reasons[method_key]:
                reasons[method_key].append(effect.reason)

    @staticmethod
    def categorize(scores: Dict[str, int], reasons: Dict[str, List[str]]) -> EvaluationResult:
        mec_results = []
        suggested, greater_benefit, avoid = [], [], []

        for method_key in METHODS:
            score = scores[method_key]
            mec_results.append(MECResult(
                method_key=method_key,
                score=score,
                reasons=list(reasons[method_key]) if score >= 2 else [],
            ))

            if score == 1:
                suggested.append(method_key)
            elif score == 2:
                greater_benefit.append(method_key)
            else:
                avoid.append(method_key)

        return EvaluationResult(
            mec_results=mec_results,
            suggested=suggested,
            greater_benefit=greater_benefit,
            avoid=avoid,
        )


# ==================== UTILITY FUNCTIONS ====================

def eligible_methods(result: EvaluationResult) -> List[str]:
    """Methods with MEC 1 or 2, in method order (input to personalization)."""
    return [r.method_key for r in result.mec_results if r.score <= 2]


def format_mec_response(result: EvaluationResult) -> Dict[str, Any]:
    """
    Convert EvaluationResult to the JSON shape consumed by clients.
    """
    return {
        "mecResults": [
            {
                "methodKey": r.method_key,
                "score": r.score,
                "reasons": list(r.reasons),
            }
            for r in result.mec_results
        ],
        "suggested": list(result.suggested),
        "greaterBenefit": list(result.greater_benefit),
        "avoid": list(result.avoid),
    }


# ==================== EXAMPLE USAGE ====================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    example_answers = {
        "age": 40,
        "smokes": True,
        "cigarettes-per-day": 10,
        "weight": 68,
        "height": 165,
    }

    result = MECRulesEngine.evaluate(example_answers)
    response = format_mec_response(result)

    import json
    print("\n" + "=" * 60)
    print("WHO MEC EVALUATION RESULT")
    print("=" * 60)
    print(json.dumps(response, indent=2))
