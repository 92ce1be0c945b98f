"""
Structural extraction of LaTeX sources.

Scans .tex files line by line and produces an ordered sequence of elements:
headings, sentences, and figure/table/equation blocks. Files are visited in
lexicographic order and elements are emitted in source order per file.
"""

import re
from pathlib import Path

from common.constants import IGNORED_DIRS, TEX_SUFFIX
from common.logger import get_logger

from .models import Element, ElementKind, Position, Range

logger = get_logger(__name__)

HEADING_REGEX = re.compile(r"^\\(title|chapter|section|subsection|subsubsection)\*?\{(.+)\}")
ENVIRONMENT_REGEX = re.compile(r"^\\begin\{([a-zA-Z*]+)\}")
SENTENCE_REGEX = re.compile(r"[^.!?。？！]+[.!?。？！]?")

ENVIRONMENT_KINDS: dict[str, ElementKind] = {
    "equation": ElementKind.EQUATION,
    "equation*": ElementKind.EQUATION,
    "align": ElementKind.EQUATION,
    "align*": ElementKind.EQUATION,
    "alignat": ElementKind.EQUATION,
    "alignat*": ElementKind.EQUATION,
    "gather": ElementKind.EQUATION,
    "gather*": ElementKind.EQUATION,
    "figure": ElementKind.FIGURE,
    "figure*": ElementKind.FIGURE,
    "table": ElementKind.TABLE,
    "table*": ElementKind.TABLE,
}


def strip_comments(line: str) -> str:
    """Drop everything after an unescaped ``%``."""
    escaped = False
    result = []
    for char in line:
        if escaped:
            result.append(char)
            escaped = False
            continue
        if char == "\\":
            result.append(char)
            escaped = True
            continue
        if char == "%":
            break
        result.append(char)
    return "".join(result)


def split_sentences(text: str) -> list[str]:
    """
    Split a line of prose into sentences.

    Whitespace runs are collapsed first. A trailing fragment without
    terminal punctuation is still returned as a sentence.
    """
    cleaned = re.sub(r"\s+", " ", text).strip()
    if not cleaned:
        return []

    matches = SENTENCE_REGEX.findall(cleaned)
    if not matches:
        return [cleaned]

    return [segment.strip() for segment in matches if segment.strip()]


def read_environment_block(lines: list[str], start_line: int, name: str) -> tuple[str, int]:
    """
    Collect an environment body up to and including its closing tag.

    Returns:
        Tuple of (block content, index of the last line consumed)
    """
    closing_tag = f"\\end{{{name}}}"
    block_lines = []
    current = start_line

    while current < len(lines):
        block_lines.append(lines[current])
        if closing_tag in lines[current]:
            break
        current += 1

    return "\n".join(block_lines).strip(), min(current, len(lines) - 1)


def parse_tex_text(text: str, file_path: str) -> list[Element]:
    """
    Parse LaTeX source text into elements.

    Args:
        text: Full file content
        file_path: Workspace-relative path recorded on every element

    Returns:
        Elements in source order
    """
    elements: list[Element] = []
    lines = re.split(r"\r?\n", text)

    line_number = 0
    while line_number < len(lines):
        original_line = lines[line_number]
        line = strip_comments(original_line)
        trimmed = line.strip()

        if not trimmed:
            line_number += 1
            continue

        heading = HEADING_REGEX.match(trimmed)
        if heading:
            command, title = heading.groups()
            elements.append(
                Element(
                    kind=ElementKind(command),
                    content=title.strip(),
                    file_path=file_path,
                    range=Range.on_line(line_number, 0, len(original_line)),
                    metadata={"command": command},
                )
            )
            line_number += 1
            continue

        environment = ENVIRONMENT_REGEX.match(trimmed)
        if environment:
            name = environment.group(1)
            kind = ENVIRONMENT_KINDS.get(name) or ENVIRONMENT_KINDS.get(name.replace("*", ""))
            if kind is not None:
                content, end_line = read_environment_block(lines, line_number, name)
                elements.append(
                    Element(
                        kind=kind,
                        content=content,
                        file_path=file_path,
                        range=Range(
                            Position(line_number, 0),
                            Position(end_line, len(lines[end_line])),
                        ),
                        metadata={"environment": name, "hasCaption": "\\caption" in content},
                    )
                )
                line_number = end_line + 1
                continue

        # Any other command line (\label, \input, \begin{itemize}, ...) carries no prose
        if trimmed.startswith("\\"):
            line_number += 1
            continue

        cursor = 0
        for sentence in split_sentences(line):
            index = line.find(sentence, cursor)
            if index == -1:
                continue
            elements.append(
                Element(
                    kind=ElementKind.SENTENCE,
                    content=sentence.strip(),
                    file_path=file_path,
                    range=Range.on_line(line_number, index, index + len(sentence)),
                )
            )
            cursor = index + len(sentence)

        line_number += 1

    return elements


def relative_path(path: Path, root: Path) -> str:
    """Workspace-relative POSIX path used as the element file identity."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def parse_tex_file(path: Path, root: Path) -> list[Element]:
    """
    Parse a single .tex file.

    Returns an empty list when the file no longer exists (deleted since the
    last run) so callers can use the result to replace its old elements.
    """
    if not path.exists():
        return []
    text = path.read_text(encoding="utf-8")
    return parse_tex_text(text, relative_path(path, root))


def find_tex_files(root: Path, ignored_dirs: set[str] | None = None) -> list[Path]:
    """
    Find .tex files below root, sorted lexicographically by relative path.

    Args:
        root: Workspace root
        ignored_dirs: Directory names to skip (defaults to IGNORED_DIRS)
    """
    ignored = IGNORED_DIRS if ignored_dirs is None else ignored_dirs
    files = [
        path
        for path in root.rglob(f"*{TEX_SUFFIX}")
        if path.is_file() and not any(part in ignored for part in path.relative_to(root).parts)
    ]
    return sorted(files, key=lambda p: relative_path(p, root))


def parse_workspace(root: Path, ignored_dirs: set[str] | None = None) -> list[Element]:
    """
    Parse every .tex file in the workspace into one ordered element sequence.

    Files that cannot be read are logged and skipped.
    """
    elements: list[Element] = []
    tex_files = find_tex_files(root, ignored_dirs)
    logger.debug(f"Found {len(tex_files)} .tex file(s) under {root}")

    for tex_file in tex_files:
        try:
            parsed = parse_tex_file(tex_file, root)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[red]✗[/red] Failed to parse {tex_file}: {e}")
            continue
        logger.debug(f"  {relative_path(tex_file, root)}: {len(parsed)} element(s)")
        elements.extend(parsed)

    return elements
