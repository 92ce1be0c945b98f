"""Deterministic rule bodies."""

from .acronym_rules import AcronymRule
from .caption_rules import CaptionRule
from .punctuation_rules import PunctuationRule
from .section_rules import SectionDensityRule

__all__ = [
    "AcronymRule",
    "CaptionRule",
    "PunctuationRule",
    "SectionDensityRule",
]
