"""Data models for persisted snapshots and diagnostics."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from common.constants import CACHE_VERSION
from extract.models import Element, ElementKind, Range

from .errors import StaleSnapshotError
from .identity import ElementKey, content_hash


class Severity(str, Enum):
    """Severity levels for diagnostics."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @classmethod
    def from_label(cls, label: str | None) -> "Severity":
        """Map a free-form label (e.g. from a model response) to a severity."""
        normalized = (label or "").strip().lower()
        if normalized == "error":
            return cls.ERROR
        if normalized == "warning":
            return cls.WARNING
        if normalized == "hint":
            return cls.HINT
        return cls.INFO


class Slot(str, Enum):
    """Double-buffer slot of a persisted snapshot family."""

    CURRENT = "current"
    PREVIOUS = "prev"


def _now() -> str:
    return datetime.now().isoformat()


def _check_version(data: dict[str, Any]) -> None:
    if not isinstance(data, dict):
        raise StaleSnapshotError(f"Snapshot payload is {type(data).__name__}, not an object")
    version = data.get("format_version")
    if version != CACHE_VERSION:
        raise StaleSnapshotError(f"Snapshot format version {version!r} != {CACHE_VERSION}")


@dataclass
class DiagnosticRecord:
    """A finding anchored to the element that produced it."""

    file_path: str
    range: Range
    message: str
    severity: Severity
    source: str
    code: str
    element_key: ElementKey

    def with_range(self, new_range: Range) -> "DiagnosticRecord":
        return replace(self, range=new_range)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "range": self.range.to_dict(),
            "message": self.message,
            "severity": self.severity.value,
            "source": self.source,
            "code": self.code,
            "element_key": self.element_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagnosticRecord":
        return cls(
            file_path=data["file_path"],
            range=Range.from_dict(data["range"]),
            message=data["message"],
            severity=Severity(data["severity"]),
            source=data["source"],
            code=data["code"],
            element_key=data["element_key"],
        )


@dataclass
class ElementRecord:
    """Persisted copy of one element."""

    hash: str
    file_path: str
    kind: ElementKind
    range: Range
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_element(cls, element: Element) -> "ElementRecord":
        return cls(
            hash=content_hash(element.content),
            file_path=element.file_path,
            kind=element.kind,
            range=element.range,
            content=element.content,
            metadata=dict(element.metadata),
        )

    def to_element(self) -> Element:
        return Element(
            kind=self.kind,
            content=self.content,
            file_path=self.file_path,
            range=self.range,
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "file_path": self.file_path,
            "kind": self.kind.value,
            "range": self.range.to_dict(),
            "content": self.content,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ElementRecord":
        return cls(
            hash=data["hash"],
            file_path=data["file_path"],
            kind=ElementKind(data["kind"]),
            range=Range.from_dict(data["range"]),
            content=data["content"],
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class ElementSnapshot:
    """The whole workspace as last successfully parsed."""

    elements: dict[ElementKey, ElementRecord]
    generated_at: str = field(default_factory=_now)
    format_version: int = CACHE_VERSION

    @classmethod
    def from_identified(cls, identified: dict[ElementKey, Element]) -> "ElementSnapshot":
        return cls(
            elements={key: ElementRecord.from_element(element) for key, element in identified.items()}
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "format_version": self.format_version,
            "generated_at": self.generated_at,
            "elements": {key: record.to_dict() for key, record in self.elements.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ElementSnapshot":
        """
        Decode a persisted element snapshot.

        Raises:
            StaleSnapshotError: On version mismatch or malformed content
        """
        _check_version(data)
        try:
            elements = {
                key: ElementRecord.from_dict(record) for key, record in data["elements"].items()
            }
            return cls(
                elements=elements,
                generated_at=data["generated_at"],
                format_version=data["format_version"],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StaleSnapshotError(f"Malformed element snapshot: {e}") from e


@dataclass
class DiagnosticSnapshot:
    """One check family's diagnostics plus the element keys they are valid against."""

    diagnostics: list[DiagnosticRecord]
    baseline_keys: set[ElementKey]
    config_signature: str | None = None
    sentence_order: list[ElementKey] = field(default_factory=list)
    generated_at: str = field(default_factory=_now)
    format_version: int = CACHE_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "format_version": self.format_version,
            "generated_at": self.generated_at,
            "diagnostics": [record.to_dict() for record in self.diagnostics],
            "baseline_keys": sorted(self.baseline_keys),
            "config_signature": self.config_signature,
            "sentence_order": list(self.sentence_order),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagnosticSnapshot":
        """
        Decode a persisted diagnostic snapshot.

        Raises:
            StaleSnapshotError: On version mismatch or malformed content
        """
        _check_version(data)
        try:
            return cls(
                diagnostics=[DiagnosticRecord.from_dict(item) for item in data["diagnostics"]],
                baseline_keys=set(data["baseline_keys"]),
                config_signature=data.get("config_signature"),
                sentence_order=list(data.get("sentence_order") or []),
                generated_at=data["generated_at"],
                format_version=data["format_version"],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StaleSnapshotError(f"Malformed diagnostic snapshot: {e}") from e
