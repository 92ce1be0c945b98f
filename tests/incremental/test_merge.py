"""Tests for merging cached and fresh diagnostics."""

from common.constants import ACRONYM_CODE, PUNCTUATION_CODE
from extract.latex_parser import parse_tex_text
from extract.models import Range
from incremental.identity import identify
from incremental.merge import merge, merge_by_code, relocate
from incremental.models import DiagnosticRecord, Severity


def record_for(key, element, code=PUNCTUATION_CODE, message="finding", range_=None):
    return DiagnosticRecord(
        file_path=element.file_path,
        range=range_ or element.range,
        message=message,
        severity=Severity.WARNING,
        source="Thesis Logic",
        code=code,
        element_key=key,
    )


def test_relocate_moves_record_to_current_range():
    """Test that drift repair substitutes the element's current range."""
    identified = identify(parse_tex_text("\n\nStable", "main.tex"))
    ((key, element),) = identified.items()
    stale = record_for(key, element, range_=Range.on_line(0, 0, 6))

    moved = relocate(stale, identified)

    assert moved.range.start.line == 2
    assert moved.message == stale.message


def test_relocate_unknown_key_is_untouched():
    identified = identify(parse_tex_text("One.", "main.tex"))
    ((key, element),) = identified.items()
    orphan = record_for("gone.tex:sentence:1:0", element)

    assert relocate(orphan, identified) is orphan


def test_merge_keeps_only_live_unrechecked_records():
    """Test the reuse rule: live and not rechecked."""
    identified = identify(parse_tex_text("A\nB\nC", "main.tex"))
    (a, ea), (b, eb), (c, ec) = identified.items()
    cached = [
        record_for(a, ea, message="cached a"),
        record_for(b, eb, message="cached b"),
        record_for("main.tex:sentence:0:0", ec, message="deleted element"),
    ]
    fresh = [record_for(b, eb, message="fresh b")]

    merged = merge(fresh, cached, {b}, identified, identified)

    assert [r.message for r in merged] == ["cached a", "fresh b"]


def test_merge_with_nothing_rechecked_replays_cache_verbatim():
    identified = identify(parse_tex_text("A\nB", "main.tex"))
    cached = [record_for(k, e) for k, e in identified.items()]

    merged = merge([], cached, set(), identified, identified)

    assert merged == cached


def test_merge_by_code_keeps_findings_of_rules_that_did_not_recheck():
    """Test that an acronym recheck does not drop a cached punctuation finding."""
    identified = identify(parse_tex_text("Uses ML\nSecond", "main.tex"))
    (first, e1), (second, e2) = identified.items()
    cached = [
        record_for(second, e2, code=PUNCTUATION_CODE, message="missing punctuation"),
        record_for(first, e1, code=ACRONYM_CODE, message="old acronym verdict"),
    ]
    fresh = [record_for(first, e1, code=ACRONYM_CODE, message="new acronym verdict")]
    targets = {PUNCTUATION_CODE: set(), ACRONYM_CODE: {first, second}}

    merged = merge_by_code(fresh, cached, targets, identified, identified)

    assert [r.message for r in merged] == ["missing punctuation", "new acronym verdict"]


def test_merge_by_code_unknown_code_uses_union_of_targets():
    identified = identify(parse_tex_text("A\nB", "main.tex"))
    (a, ea), (b, eb) = identified.items()
    cached = [record_for(a, ea, code="RETIRED_RULE"), record_for(b, eb, code="RETIRED_RULE")]

    merged = merge_by_code([], cached, {PUNCTUATION_CODE: {a}}, identified, identified)

    assert [r.element_key for r in merged] == [b]
