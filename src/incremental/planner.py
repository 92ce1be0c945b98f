"""Recheck planning: which element keys each check must recompute.

Every check family has its own dependency shape and therefore its own
invalidation policy:

- Local checks (punctuation per sentence, caption per float) depend only on
  the element itself: recheck what was added.
- File-aggregate checks (section density) depend on how many sentences
  follow a heading: recheck sections in files whose sentence or heading set
  grew, and every section once anything was removed anywhere.
- Order-dependent checks (acronym first use) depend on everything earlier in
  document order: recheck the sentence suffix starting at the first sentence
  that is not unchanged, or from the very start after a sentence removal
  that is not an in-place edit.
- Content-addressed checks (model review) depend on nothing but the
  sentence text: recheck sentences absent from the family baseline, or all
  of them when the reviewer configuration changed.

A ``changes`` of None means there is no usable baseline (cold start): every
check then targets all elements of its kinds.
"""

from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass, field

from common.constants import (
    ACRONYM_CODE,
    CAPTION_CODE,
    LLM_REVIEW_CODE,
    PUNCTUATION_CODE,
    SECTION_DENSITY_CODE,
)
from extract.models import CAPTION_KINDS, Element, ElementKind

from .change_detection import ChangeSet
from .identity import ElementKey, key_lookup, kind_of_key


@dataclass
class RecheckPlan:
    """Per-rule target key sets handed to check bodies."""

    targets: dict[str, set[ElementKey]]
    sentence_keys: list[ElementKey]
    element_key_for: Callable[[Element], ElementKey]
    abbreviation_start: int | None = None
    cold_start: bool = False
    notes: list[str] = field(default_factory=list)

    def targets_for(self, code: str) -> set[ElementKey]:
        return self.targets.get(code, set())

    def is_target(self, code: str, element: Element) -> bool:
        return self.element_key_for(element) in self.targets_for(code)

    @property
    def recheck_keys(self) -> set[ElementKey]:
        """Union of all rule targets."""
        keys: set[ElementKey] = set()
        for target_keys in self.targets.values():
            keys |= target_keys
        return keys

    @property
    def is_empty(self) -> bool:
        return not any(self.targets.values())


def ordered_sentence_keys(identified: Mapping[ElementKey, Element]) -> list[ElementKey]:
    """Sentence keys in document order."""
    return [key for key, element in identified.items() if element.is_sentence]


def plan_local(
    identified: Mapping[ElementKey, Element],
    changes: ChangeSet | None,
    kinds: Collection[ElementKind],
) -> set[ElementKey]:
    """Added elements of the given kinds (all of them on cold start)."""
    return {
        key
        for key, element in identified.items()
        if element.kind in kinds and (changes is None or key in changes.added)
    }


def plan_file_aggregate(
    identified: Mapping[ElementKey, Element],
    changes: ChangeSet | None,
) -> set[ElementKey]:
    """
    Section-kind elements whose sentence count may have changed.

    Any removal is a structural change of unknown shape, so every section
    is rechecked. Otherwise sections are rechecked in files that gained a
    sentence or a heading; a new heading also splits the section above it.
    """
    section_keys = {key for key, element in identified.items() if element.is_section}
    if changes is None or changes.removed:
        return section_keys

    touched_files = {
        element.file_path
        for key, element in identified.items()
        if key in changes.added and (element.is_sentence or element.is_section)
    }
    return {key for key in section_keys if identified[key].file_path in touched_files}


def is_in_place_edit(
    sentence_keys: list[ElementKey],
    changes: ChangeSet,
    previous_sentence_keys: list[ElementKey] | None,
) -> bool:
    """
    True when every removed sentence was replaced by an added sentence at
    the same position of the ordered sequence.

    Without the previous order a sentence removal can never be shown to be
    in place.
    """
    removed = [key for key in changes.removed if kind_of_key(key) == ElementKind.SENTENCE.value]
    if not removed:
        return True
    if not previous_sentence_keys:
        return False

    previous_index = {key: index for index, key in enumerate(previous_sentence_keys)}
    for key in removed:
        index = previous_index.get(key)
        if index is None or index >= len(sentence_keys) or sentence_keys[index] not in changes.added:
            return False
    return True


def find_start_index(
    sentence_keys: list[ElementKey],
    changes: ChangeSet | None,
    previous_sentence_keys: list[ElementKey] | None = None,
) -> int | None:
    """
    First position of the ordered sentence sequence that must be recomputed.

    A removed sentence may have held the first use of an acronym, moving that
    obligation anywhere later, so any removal that is not an in-place edit
    restarts from 0.

    Args:
        sentence_keys: Current sentence keys in document order
        changes: Diff against the family baseline, or None on cold start
        previous_sentence_keys: Baseline sentence keys in document order

    Returns:
        0 on cold start or after a sentence removal that is not an in-place
        edit, otherwise the index of the first sentence that is not
        unchanged, or None if every sentence is unchanged
    """
    if changes is None or not is_in_place_edit(sentence_keys, changes, previous_sentence_keys):
        return 0
    for index, key in enumerate(sentence_keys):
        if key not in changes.unchanged:
            return index
    return None


def plan_order_dependent(sentence_keys: list[ElementKey], start_index: int | None) -> set[ElementKey]:
    """The sentence suffix starting at start_index."""
    if start_index is None:
        return set()
    return set(sentence_keys[start_index:])


def plan_content_addressed(
    sentence_keys: Iterable[ElementKey],
    baseline_keys: Collection[ElementKey] | None,
    signature_matches: bool = True,
) -> set[ElementKey]:
    """Current sentence keys not covered by the family baseline."""
    current = set(sentence_keys)
    if baseline_keys is None or not signature_matches:
        return current
    return current - set(baseline_keys)


def plan_logic(
    identified: Mapping[ElementKey, Element],
    changes: ChangeSet | None,
    previous_sentence_keys: list[ElementKey] | None = None,
) -> RecheckPlan:
    """
    Compose the plan for the deterministic rule family.

    Args:
        identified: Ordered key -> element mapping of this pass
        changes: Diff against the logic family baseline, or None on cold start
        previous_sentence_keys: Sentence order stored with that baseline
    """
    sentence_keys = ordered_sentence_keys(identified)
    start_index = find_start_index(sentence_keys, changes, previous_sentence_keys)
    lookup = key_lookup(identified)

    return RecheckPlan(
        targets={
            PUNCTUATION_CODE: plan_local(identified, changes, {ElementKind.SENTENCE}),
            CAPTION_CODE: plan_local(identified, changes, CAPTION_KINDS),
            SECTION_DENSITY_CODE: plan_file_aggregate(identified, changes),
            ACRONYM_CODE: plan_order_dependent(sentence_keys, start_index),
        },
        sentence_keys=sentence_keys,
        element_key_for=lookup.__getitem__,
        abbreviation_start=start_index,
        cold_start=changes is None,
    )


def plan_review(
    identified: Mapping[ElementKey, Element],
    baseline_keys: Collection[ElementKey] | None,
    max_items: int = 0,
) -> RecheckPlan:
    """
    Compose the plan for the model-backed review family.

    Args:
        identified: Ordered key -> element mapping of this pass
        baseline_keys: Keys covered by the last review snapshot, or None when
            absent or written under different reviewer settings
        max_items: Cap on reviewed sentences per run, in document order (0 = no cap)
    """
    sentence_keys = ordered_sentence_keys(identified)
    pending = plan_content_addressed(sentence_keys, baseline_keys)
    ordered = [key for key in sentence_keys if key in pending]

    plan = RecheckPlan(
        targets={},
        sentence_keys=sentence_keys,
        element_key_for=key_lookup(identified).__getitem__,
        cold_start=baseline_keys is None,
    )
    if max_items and len(ordered) > max_items:
        plan.notes.append(f"{len(ordered) - max_items} sentence(s) deferred to a later run")
        ordered = ordered[:max_items]
    plan.targets[LLM_REVIEW_CODE] = set(ordered)
    return plan
