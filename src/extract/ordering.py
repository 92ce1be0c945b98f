"""Document ordering and single-file merge utilities."""

from collections.abc import Iterable

from .models import Element


def document_order_key(element: Element) -> tuple[str, int, int, int, int, str]:
    """
    Total order over elements.

    File path, then start line, start column, end line, end column, then kind.
    """
    start, end = element.range.start, element.range.end
    return (
        element.file_path,
        start.line,
        start.character,
        end.line,
        end.character,
        element.kind.value,
    )


def sort_elements(elements: Iterable[Element]) -> list[Element]:
    """Return elements sorted into document order."""
    return sorted(elements, key=document_order_key)


def replace_file_elements(
    elements: list[Element],
    file_path: str,
    file_elements: list[Element],
) -> list[Element]:
    """
    Swap one file's elements inside an otherwise reused sequence.

    Used by the single-file fast path: only the saved file is re-parsed and
    its elements replace the stale ones. An empty ``file_elements`` removes
    the file (deleted on disk).

    Args:
        elements: Previous full-workspace sequence
        file_path: Workspace-relative path of the re-parsed file
        file_elements: Fresh elements for that file

    Returns:
        New sequence in document order
    """
    kept = [element for element in elements if element.file_path != file_path]
    return sort_elements([*kept, *file_elements])
