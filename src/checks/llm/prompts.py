"""Prompts for the model-backed sentence reviewer."""

from extract.models import Element

LOW_FALSE_POSITIVE = "lowFalsePositive"
HIGH_RECALL = "highRecall"
REVIEW_MODES = (LOW_FALSE_POSITIVE, HIGH_RECALL)

_RESPONSE_FORMAT = (
    'Respond ONLY with JSON: {"issues":[{"message":"","severity":"warning"}],"rewrite":""} '
    "where severity is one of error|warning|info. Use an empty issues list when the sentence is fine."
)

_BASE_INSTRUCTIONS = (
    "You review single sentences extracted from a LaTeX thesis. "
    "Report only clear grammatical errors such as duplicated words or broken "
    "structure caused by prepositions, particles or conjunctions. "
    "Ignore style, word choice, spelling, punctuation, facts, LaTeX commands and formulas. "
    "Each message must quote the faulty fragment and the corrected fragment. "
)

_MODE_INSTRUCTIONS = {
    LOW_FALSE_POSITIVE: "Report an issue only when you are certain; otherwise return no issues. ",
    HIGH_RECALL: "Report every issue you believe is a real grammatical error, but never style rewrites. ",
}


def system_prompt(mode: str) -> str:
    """System prompt for a review mode (unknown modes fall back to lowFalsePositive)."""
    mode_text = _MODE_INSTRUCTIONS.get(mode, _MODE_INSTRUCTIONS[LOW_FALSE_POSITIVE])
    return _BASE_INSTRUCTIONS + mode_text + _RESPONSE_FORMAT


def user_prompt(element: Element) -> str:
    return f"Element type: {element.kind.value}\nLaTeX fragment:\n{element.content}"
