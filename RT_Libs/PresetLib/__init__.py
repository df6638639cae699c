"""
PresetLib - Filter presets for Open Retouch

Maps free-text prompts to filter settings presets.
"""

from RT_Libs.PresetLib.prompt_heuristic import (
    PROMPT_RULES,
    PromptRule,
    matching_rules,
    resolve_prompt,
)

__all__ = [
    "PROMPT_RULES",
    "PromptRule",
    "matching_rules",
    "resolve_prompt",
]
