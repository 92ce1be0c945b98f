"""Change classification between the current pass and a baseline."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from extract.models import Element

from .identity import ElementKey, content_hash, kind_of_key
from .models import ElementRecord


@dataclass
class ChangeSet:
    """Result of diffing current element keys against a baseline.

    An edited element is modeled as a replacement: its new key is in
    ``added`` and its old key in ``removed``.
    """

    unchanged: set[ElementKey] = field(default_factory=set)
    added: set[ElementKey] = field(default_factory=set)
    removed: set[ElementKey] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed

    def removed_kinds(self) -> set[str]:
        """Kinds of removed elements, read from the keys themselves."""
        return {kind for kind in (kind_of_key(key) for key in self.removed) if kind is not None}

    def summary(self) -> str:
        return f"{len(self.added)} added, {len(self.removed)} deleted"


def classify(
    current: Mapping[ElementKey, Element],
    baseline: Mapping[ElementKey, ElementRecord],
) -> ChangeSet:
    """
    Diff the current pass against a persisted element snapshot.

    A key counts as unchanged only if the baseline holds it with the same
    content hash. A key present in both with a different stored hash can
    only come from a hash collision or a hand-edited snapshot; it is
    treated as a replacement (added and removed).

    Args:
        current: Identified elements of this pass
        baseline: Element records from the last snapshot

    Returns:
        ChangeSet with unchanged/added/removed keys
    """
    changes = ChangeSet()

    for key, element in current.items():
        record = baseline.get(key)
        if record is None:
            changes.added.add(key)
        elif record.hash == content_hash(element.content):
            changes.unchanged.add(key)
        else:
            changes.added.add(key)
            changes.removed.add(key)

    changes.removed.update(key for key in baseline if key not in current)
    return changes


def classify_keys(
    current: Mapping[ElementKey, Element],
    baseline_keys: Iterable[ElementKey],
) -> ChangeSet:
    """
    Diff the current pass against a family's baseline key set.

    Keys embed the content hash, so key equality already implies identical
    content.
    """
    baseline = set(baseline_keys)
    changes = ChangeSet()

    for key in current:
        if key in baseline:
            changes.unchanged.add(key)
        else:
            changes.added.add(key)

    changes.removed = baseline - set(current)
    return changes
