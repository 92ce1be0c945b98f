"""Data models for extracted document structure."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ElementKind(str, Enum):
    """Kinds of structural elements produced by the parser."""

    CHAPTER = "chapter"
    TITLE = "title"
    SECTION = "section"
    SUBSECTION = "subsection"
    SUBSUBSECTION = "subsubsection"
    SENTENCE = "sentence"
    EQUATION = "equation"
    FIGURE = "figure"
    TABLE = "table"
    ENVIRONMENT = "environment"


# Headings that open a section whose content is counted by the density rule
SECTION_KINDS: frozenset[ElementKind] = frozenset(
    {
        ElementKind.CHAPTER,
        ElementKind.SECTION,
        ElementKind.SUBSECTION,
        ElementKind.SUBSUBSECTION,
    }
)

# Floats that are expected to carry a \caption
CAPTION_KINDS: frozenset[ElementKind] = frozenset({ElementKind.FIGURE, ElementKind.TABLE})


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line/character position."""

    line: int
    character: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Position":
        return cls(line=int(data["line"]), character=int(data["character"]))


@dataclass(frozen=True)
class Range:
    """Span between two positions, end exclusive."""

    start: Position
    end: Position

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "Range":
        """Build a range that covers columns [start, end) of a single line."""
        return cls(Position(line, start), Position(line, end))

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Range":
        return cls(start=Position.from_dict(data["start"]), end=Position.from_dict(data["end"]))


@dataclass(frozen=True)
class Element:
    """A single extracted unit of document structure.

    Elements are immutable for the lifetime of one analysis pass. Equality and
    hashing ignore ``metadata`` so an element can be used as a lookup key.
    """

    kind: ElementKind
    content: str
    file_path: str  # Workspace-relative POSIX path
    range: Range
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_section(self) -> bool:
        return self.kind in SECTION_KINDS

    @property
    def is_sentence(self) -> bool:
        return self.kind is ElementKind.SENTENCE
