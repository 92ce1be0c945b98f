"""Element identity: content hashes and stable element keys.

A key has the shape ``{file_path}:{kind}:{content_hash}:{occurrence}``.
Because the hash is part of the key, editing an element's text always yields
a new key; downstream code only ever asks "is this exact key still valid".

The hash is a 32-bit djb2-style rolling hash. Collisions between different
texts in the same file and kind are not detected.
"""

from collections.abc import Iterable

from extract.models import Element

# Alias documenting intent; keys are plain strings so they persist as JSON keys
ElementKey = str

_HASH_SEED = 5381
_HASH_MASK = 0xFFFFFFFF


def content_hash(text: str) -> str:
    """
    Hash element content.

    Args:
        text: Element content

    Returns:
        Unsigned 32-bit hash rendered as a decimal string
    """
    value = _HASH_SEED
    for char in text:
        value = ((value << 5) + value + ord(char)) & _HASH_MASK
    return str(value)


def build_element_key(file_path: str, kind: str, hash_value: str, occurrence: int) -> ElementKey:
    """Compose an element key from its parts."""
    return f"{file_path}:{kind}:{hash_value}:{occurrence}"


def split_element_key(key: ElementKey) -> tuple[str, str, str, int]:
    """
    Split an element key into (file_path, kind, hash, occurrence).

    Splits from the right so file paths containing ':' survive.

    Raises:
        ValueError: If the key does not have four parts
    """
    parts = key.rsplit(":", 3)
    if len(parts) != 4:
        raise ValueError(f"Malformed element key: {key!r}")
    file_path, kind, hash_value, occurrence = parts
    return file_path, kind, hash_value, int(occurrence)


def kind_of_key(key: ElementKey) -> str | None:
    """Kind encoded in a key, or None for a malformed key."""
    try:
        return split_element_key(key)[1]
    except ValueError:
        return None


def identify(elements: Iterable[Element]) -> dict[ElementKey, Element]:
    """
    Assign a stable key to every element of one pass.

    The occurrence index counts earlier elements with the same
    (file_path, kind, hash) in this pass, which makes keys unique within the
    sequence. The returned dict preserves document order.

    Args:
        elements: Element sequence in document order

    Returns:
        Ordered mapping of key -> element
    """
    counts: dict[tuple[str, str, str], int] = {}
    identified: dict[ElementKey, Element] = {}

    for element in elements:
        hash_value = content_hash(element.content)
        bucket = (element.file_path, element.kind.value, hash_value)
        occurrence = counts.get(bucket, 0)
        counts[bucket] = occurrence + 1
        identified[build_element_key(*bucket, occurrence)] = element

    return identified


def key_lookup(identified: dict[ElementKey, Element]) -> dict[Element, ElementKey]:
    """Reverse mapping used as the ``element_key_for`` accessor."""
    return {element: key for key, element in identified.items()}
