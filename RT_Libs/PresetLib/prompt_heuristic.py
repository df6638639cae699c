"""
Text prompt to filter preset heuristic.

Maps a free-text prompt to FilterSettings by case-insensitive substring
matching against a fixed, ordered keyword table. Every matching rule is
applied on top of the defaults in table order, so a later rule overwrites
fields an earlier rule also set. Prior settings never leak in.

Rule table:
    vintage | retro | old           -> sepia 60, contrast 90, brightness 90, saturation 80
    warm | summer | sunset          -> sepia 30, saturation 130, brightness 110
    cool | cold | winter            -> hue_rotate 180, saturation 90, brightness 110
    noir | black | white | mono     -> grayscale 100, contrast 130, brightness 110
    cyberpunk | neon | future       -> saturation 150, contrast 130, hue_rotate -20
    dramatic | dark                 -> contrast 150, brightness 80, saturation 110

Example:
    >>> resolve_prompt("Warm sunset").to_dict()["saturation"]
    130.0
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from RT_Libs.ImageEditingLib.image_models import FilterSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptRule:
    """A keyword group and the settings it applies."""
    name: str
    keywords: Tuple[str, ...]
    changes: Tuple[Tuple[str, float], ...]

    def matches(self, prompt: str) -> bool:
        """True if any keyword occurs in the already lower-cased prompt."""
        return any(keyword in prompt for keyword in self.keywords)


PROMPT_RULES: Tuple[PromptRule, ...] = (
    PromptRule(
        "vintage",
        ("vintage", "retro", "old"),
        (("sepia", 60), ("contrast", 90), ("brightness", 90), ("saturation", 80)),
    ),
    PromptRule(
        "warm",
        ("warm", "summer", "sunset"),
        (("sepia", 30), ("saturation", 130), ("brightness", 110)),
    ),
    PromptRule(
        "cool",
        ("cool", "cold", "winter"),
        (("hue_rotate", 180), ("saturation", 90), ("brightness", 110)),
    ),
    PromptRule(
        "noir",
        ("noir", "black", "white", "mono"),
        (("grayscale", 100), ("contrast", 130), ("brightness", 110)),
    ),
    PromptRule(
        "cyberpunk",
        ("cyberpunk", "neon", "future"),
        (("saturation", 150), ("contrast", 130), ("hue_rotate", -20)),
    ),
    PromptRule(
        "dramatic",
        ("dramatic", "dark"),
        (("contrast", 150), ("brightness", 80), ("saturation", 110)),
    ),
)


def matching_rules(prompt: str) -> List[PromptRule]:
    """Return the rules whose keywords occur in prompt, in table order."""
    lowered = prompt.lower()
    return [rule for rule in PROMPT_RULES if rule.matches(lowered)]


def resolve_prompt(prompt: str) -> FilterSettings:
    """
    Resolve a text prompt to a fresh FilterSettings.

    Args:
        prompt: Free text such as "moody winter morning"

    Returns:
        New FilterSettings starting from defaults with every matching rule
        applied in table order (defaults if nothing matches)
    """
    changes: Dict[str, float] = {}
    rules = matching_rules(prompt)
    for rule in rules:
        changes.update(rule.changes)

    logger.debug(f"Prompt {prompt!r} matched rules: {[rule.name for rule in rules]}")
    return FilterSettings(**{name: float(value) for name, value in changes.items()})
