"""Snapshot storage with double-buffered current/previous slots.

This module defines the interface every snapshot store implements plus a
JSON file store (one file per family and slot under the workspace cache
folder) and an in-memory store used by tests.

Loading always fails soft: an unreadable, corrupt or outdated snapshot is
reported as absent so the caller falls back to a full recompute.
"""

import copy
import json
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from common.constants import ELEMENTS_FAMILY, LLM_FAMILY, LOGIC_FAMILY
from common.env import env
from common.logger import get_logger

from .errors import SnapshotPersistError, StaleSnapshotError
from .models import DiagnosticSnapshot, ElementSnapshot, Slot

logger = get_logger(__name__)

ALL_FAMILIES = (ELEMENTS_FAMILY, LOGIC_FAMILY, LLM_FAMILY)


class SnapshotStore(ABC):
    """Abstract snapshot store.

    Implementations provide raw payload primitives; the typed load/save/promote
    API on top of them is shared. Callers only ever receive decoded copies.
    """

    @abstractmethod
    def read_payload(self, family: str, slot: Slot) -> Any | None:
        """Read a raw payload.

        Returns:
            Decoded JSON value, or None if the slot is empty

        Raises:
            OSError: If the underlying storage cannot be read
            ValueError: If the stored content is not valid JSON
        """
        pass

    @abstractmethod
    def write_payload(self, family: str, slot: Slot, payload: dict[str, Any]) -> None:
        """Atomically replace a slot's payload.

        Raises:
            SnapshotPersistError: If the write fails
        """
        pass

    @abstractmethod
    def copy_payload(self, family: str, source: Slot, target: Slot) -> bool:
        """Copy one slot over another.

        Returns:
            False if the source slot is empty (nothing copied)

        Raises:
            SnapshotPersistError: If the copy fails
        """
        pass

    @abstractmethod
    def remove_payload(self, family: str, slot: Slot) -> None:
        """Delete a slot if present."""
        pass

    def _load_raw(self, family: str, slot: Slot) -> Any | None:
        try:
            return self.read_payload(family, slot)
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable {family}.{slot.value} snapshot: {e}")
            return None

    def load_elements(self, slot: Slot = Slot.CURRENT) -> ElementSnapshot | None:
        """Load the element snapshot, or None if absent/stale."""
        payload = self._load_raw(ELEMENTS_FAMILY, slot)
        if payload is None:
            return None
        try:
            return ElementSnapshot.from_dict(payload)
        except StaleSnapshotError as e:
            logger.debug(f"Ignoring {ELEMENTS_FAMILY}.{slot.value} snapshot: {e}")
            return None

    def load_diagnostics(
        self,
        family: str,
        slot: Slot = Slot.CURRENT,
        config_signature: str | None = None,
    ) -> DiagnosticSnapshot | None:
        """
        Load a diagnostic snapshot.

        Args:
            family: Check family ("logic" or "llm")
            slot: Which buffer to read
            config_signature: When given, a snapshot written under a different
                signature is treated as absent

        Returns:
            Snapshot, or None if absent, stale or written under other settings
        """
        payload = self._load_raw(family, slot)
        if payload is None:
            return None
        try:
            snapshot = DiagnosticSnapshot.from_dict(payload)
        except StaleSnapshotError as e:
            logger.debug(f"Ignoring {family}.{slot.value} snapshot: {e}")
            return None

        if config_signature is not None and snapshot.config_signature != config_signature:
            logger.info(
                f"{family} settings changed ({snapshot.config_signature} → {config_signature}), "
                "cached results discarded"
            )
            return None
        return snapshot

    def save_elements(self, snapshot: ElementSnapshot) -> None:
        """Write the element snapshot to the current slot.

        Raises:
            SnapshotPersistError: If the write fails
        """
        self.write_payload(ELEMENTS_FAMILY, Slot.CURRENT, snapshot.to_dict())

    def save_diagnostics(self, family: str, snapshot: DiagnosticSnapshot) -> None:
        """Write a diagnostic snapshot to the family's current slot.

        Raises:
            SnapshotPersistError: If the write fails
        """
        self.write_payload(family, Slot.CURRENT, snapshot.to_dict())

    def promote(self, family: str) -> None:
        """Copy current to previous; a missing current is ignored.

        Raises:
            SnapshotPersistError: If the copy fails
        """
        if self.copy_payload(family, Slot.CURRENT, Slot.PREVIOUS):
            logger.debug(f"Promoted {family} snapshot")

    def clear(self) -> None:
        """Remove every slot of every family."""
        for family in ALL_FAMILIES:
            for slot in Slot:
                self.remove_payload(family, slot)


class FileSnapshotStore(SnapshotStore):
    """JSON snapshot files under ``<workspace>/<cache dir>/``."""

    def __init__(self, workspace: Path, cache_dir: str | None = None):
        """Initialize the file store.

        Args:
            workspace: Workspace root
            cache_dir: Cache folder relative to the workspace (default from env)
        """
        self.folder = workspace / (cache_dir or env.cache_dir())

    def path_for(self, family: str, slot: Slot) -> Path:
        return self.folder / f"{family}.{slot.value}.json"

    def read_payload(self, family: str, slot: Slot) -> Any | None:
        path = self.path_for(family, slot)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write_text(self, path: Path, text: str) -> None:
        # Temp file in the same folder so the final replace is a same-filesystem rename
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.folder,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                tmp.write(text)
                tmp_path = Path(tmp.name)
        except OSError as e:
            raise SnapshotPersistError(f"Could not write {path}: {e}") from e

        try:
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise SnapshotPersistError(f"Could not replace {path}: {e}") from e

    def write_payload(self, family: str, slot: Slot, payload: dict[str, Any]) -> None:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        self._write_text(self.path_for(family, slot), text)

    def copy_payload(self, family: str, source: Slot, target: Slot) -> bool:
        source_path = self.path_for(family, source)
        try:
            text = source_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return False
        except OSError as e:
            raise SnapshotPersistError(f"Could not read {source_path}: {e}") from e
        self._write_text(self.path_for(family, target), text)
        return True

    def remove_payload(self, family: str, slot: Slot) -> None:
        self.path_for(family, slot).unlink(missing_ok=True)

    def debug_log_path(self) -> Path:
        """Path of the optional reviewer debug log."""
        return self.folder / f"{LLM_FAMILY}.debug.jsonl"


class MemorySnapshotStore(SnapshotStore):
    """In-memory store; payloads are deep-copied on the way in and out."""

    def __init__(self):
        self.payloads: dict[tuple[str, Slot], dict[str, Any]] = {}

    def read_payload(self, family: str, slot: Slot) -> Any | None:
        payload = self.payloads.get((family, slot))
        return copy.deepcopy(payload) if payload is not None else None

    def write_payload(self, family: str, slot: Slot, payload: dict[str, Any]) -> None:
        self.payloads[(family, slot)] = copy.deepcopy(payload)

    def copy_payload(self, family: str, source: Slot, target: Slot) -> bool:
        payload = self.payloads.get((family, source))
        if payload is None:
            return False
        self.payloads[(family, target)] = copy.deepcopy(payload)
        return True

    def remove_payload(self, family: str, slot: Slot) -> None:
        self.payloads.pop((family, slot), None)
