"""Combining cached and freshly computed diagnostics."""

from collections.abc import Collection, Iterable, Mapping
from typing import Protocol

from extract.models import Range

from .identity import ElementKey
from .models import DiagnosticRecord


class Located(Protocol):
    """Anything with a current range (Element or ElementRecord)."""

    range: Range


def relocate(
    record: DiagnosticRecord,
    current_elements: Mapping[ElementKey, Located],
) -> DiagnosticRecord:
    """
    Move a cached record onto its element's current location.

    An edit elsewhere in the file can shift an untouched element; its key
    still identifies it, so the stored range is replaced by the current one.
    """
    element = current_elements.get(record.element_key)
    if element is None or element.range == record.range:
        return record
    return record.with_range(element.range)


def filter_cached(
    cached: Iterable[DiagnosticRecord],
    recheck_keys: Collection[ElementKey],
    current_keys: Collection[ElementKey],
) -> list[DiagnosticRecord]:
    """Cached records whose element still exists and was not targeted this run."""
    return [
        record
        for record in cached
        if record.element_key in current_keys and record.element_key not in recheck_keys
    ]


def merge(
    fresh: Iterable[DiagnosticRecord],
    cached: Iterable[DiagnosticRecord],
    recheck_keys: Collection[ElementKey],
    current_keys: Collection[ElementKey],
    current_elements: Mapping[ElementKey, Located],
) -> list[DiagnosticRecord]:
    """
    Kept cached records (relocated) followed by fresh records.

    A cached record for a rechecked element is dropped: the fresh run either
    reproduces it or the issue was fixed. The two lists can never hold a
    record for the same key, so no deduplication is needed.

    Args:
        fresh: Records computed this run
        cached: Records from the family's baseline snapshot
        recheck_keys: Keys targeted this run
        current_keys: All keys of the current pass
        current_elements: Key -> current element, for drift repair

    Returns:
        Combined diagnostic list
    """
    kept = [
        relocate(record, current_elements)
        for record in filter_cached(cached, recheck_keys, current_keys)
    ]
    return [*kept, *fresh]


def merge_by_code(
    fresh: Iterable[DiagnosticRecord],
    cached: Iterable[DiagnosticRecord],
    targets_by_code: Mapping[str, Collection[ElementKey]],
    current_keys: Collection[ElementKey],
    current_elements: Mapping[ElementKey, Located],
) -> list[DiagnosticRecord]:
    """
    Merge rule by rule.

    A sentence inside the acronym suffix is rechecked by the acronym rule but
    not by the punctuation rule, so each cached record is judged only against
    the targets of the rule that produced it. Records with an unknown code
    are judged against the union of all targets. Output keeps the rule order
    of ``targets_by_code``.
    """
    fresh_by_code: dict[str, list[DiagnosticRecord]] = {code: [] for code in targets_by_code}
    cached_by_code: dict[str, list[DiagnosticRecord]] = {code: [] for code in targets_by_code}
    unknown: list[DiagnosticRecord] = []

    for record in fresh:
        fresh_by_code.setdefault(record.code, []).append(record)
    for record in cached:
        if record.code in cached_by_code:
            cached_by_code[record.code].append(record)
        else:
            unknown.append(record)

    all_targets: set[ElementKey] = set()
    for keys in targets_by_code.values():
        all_targets.update(keys)

    merged: list[DiagnosticRecord] = []
    for code, fresh_records in fresh_by_code.items():
        merged.extend(
            merge(
                fresh_records,
                cached_by_code.get(code, []),
                targets_by_code.get(code, ()),
                current_keys,
                current_elements,
            )
        )
    merged.extend(merge([], unknown, all_targets, current_keys, current_elements))
    return merged
