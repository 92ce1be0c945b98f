"""Structural extraction of LaTeX workspaces into ordered elements."""

from .latex_parser import parse_tex_file, parse_tex_text, parse_workspace
from .models import CAPTION_KINDS, SECTION_KINDS, Element, ElementKind, Position, Range
from .ordering import document_order_key, replace_file_elements, sort_elements

__all__ = [
    "CAPTION_KINDS",
    "SECTION_KINDS",
    "Element",
    "ElementKind",
    "Position",
    "Range",
    "document_order_key",
    "parse_tex_file",
    "parse_tex_text",
    "parse_workspace",
    "replace_file_elements",
    "sort_elements",
]
