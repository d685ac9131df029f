"""
Shared category scale and vote helpers for the sterilization engines.

    A  Accept  - no medical reason to deny the procedure
    C  Caution - routine setting, with extra preparation and precautions
    D  Delay   - treat the condition first, temporary method meanwhile
    S  Special - refer to a setting with an experienced surgeon and full backup

Each engine collects SterilizationFinding votes section by section; the
final category is the most restrictive vote (S > D > C > A).
"""

from typing import Dict, Any, List, Tuple, Union
from dataclasses import dataclass
from enum import Enum


class SterilizationCategory(Enum):
    """Ordinal sterilization eligibility scale (more restrictive = higher priority)"""
    A = "A"
    C = "C"
    D = "D"
    S = "S"

    @property
    def priority(self) -> int:
        return CATEGORY_PRIORITY[self]


CATEGORY_PRIORITY = {
    SterilizationCategory.A: 1,
    SterilizationCategory.C: 2,
    SterilizationCategory.D: 3,
    SterilizationCategory.S: 4,
}


@dataclass
class SterilizationFinding:
    """One vote: the category a condition calls for, why, and any counselling alerts"""
    category: SterilizationCategory
    reason: str
    alerts: Tuple[str, ...] = ()


def most_restrictive(categories: List[SterilizationCategory]) -> SterilizationCategory:
    """S > D > C > A; an empty vote list means no restriction."""
    if not categories:
        return SterilizationCategory.A
    return max(categories, key=lambda c: c.priority)


def flag_findings(answers: Dict[str, Any], flags) -> List[SterilizationFinding]:
    """Findings for every (answer id, category, reason) flag answered True, in table order."""
    return [
        SterilizationFinding(category, reason)
        for answer_id, category, reason in flags
        if answers.get(answer_id) is True
    ]


def choice_findings(answers: Dict[str, Any], answer_id: str, options) -> List[SterilizationFinding]:
    """Finding for a single-choice answer looked up in {option: (category, reason)}."""
    selected = answers.get(answer_id)
    if not isinstance(selected, str) or selected not in options:
        return []
    category, reason = options[selected]
    return [SterilizationFinding(category, reason)]


def selected_options(answers: Dict[str, Any], answer_id: str) -> List[str]:
    """Multi-select answer as a list of option ids; anything else is no selection."""
    selected = answers.get(answer_id)
    if not isinstance(selected, (list, tuple)):
        return []
    return [option for option in selected if isinstance(option, str)]


def readable_list(options: List[str]) -> str:
    """e.g. ["pelvic-infection", "sepsis"] -> "pelvic infection, sepsis" """
    return ", ".join(option.replace("-", " ") for option in options)


def display_number(value: Union[int, float]) -> Union[int, float]:
    # 150.0 -> 150
    return int(value) if float(value).is_integer() else value


def build_explanation(base: str, reasons: List[str]) -> str:
    if not reasons:
        return base
    return base + "\n\nConditions identified:\n• " + "\n• ".join(reasons)
