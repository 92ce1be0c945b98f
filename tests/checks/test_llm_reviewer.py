"""Tests for the sequential reviewer."""

import json

from checks.llm.base import (
    ProviderError,
    ProviderFatalError,
    ProviderReview,
    ReviewIssue,
    ReviewProvider,
)
from checks.llm.reviewer import CancellationToken, LLMReviewer
from common.constants import LLM_REVIEW_CODE
from extract.latex_parser import parse_tex_text
from incremental.identity import identify
from incremental.models import Severity


class ScriptedProvider(ReviewProvider):
    """Provider returning scripted outcomes keyed by sentence text."""

    id = "scripted"

    def __init__(self, script=None, mode="lowFalsePositive", configured=True):
        self.script = script or {}
        self.mode = mode
        self.configured = configured
        self.calls = []

    @property
    def model(self):
        return "scripted-1"

    def is_configured(self):
        return self.configured

    def review(self, element):
        self.calls.append(element.content)
        outcome = self.script.get(element.content)
        if isinstance(outcome, Exception):
            raise outcome
        issues = [ReviewIssue(message, "warning") for message in (outcome or [])]
        return ProviderReview(issues=issues, prompt=element.content, response="{}")


def targets_for(lines):
    return list(identify(parse_tex_text("\n".join(lines), "main.tex")).items())


def test_records_are_labelled_and_anchored():
    """Test that findings carry the reviewer source, code and key."""
    targets = targets_for(["Results is good."])
    reviewer = LLMReviewer(ScriptedProvider({"Results is good.": ["Agreement"]}), enabled=True)

    outcome = reviewer.review(targets)

    (record,) = outcome.records
    assert record.message == "[LLM] Agreement"
    assert record.source == "LLM:scripted"
    assert record.code == LLM_REVIEW_CODE
    assert record.severity == Severity.WARNING
    assert record.element_key == targets[0][0]
    assert outcome.completed


def test_reviews_in_order_with_callback_after_each():
    targets = targets_for(["One.", "Two.", "Three."])
    provider = ScriptedProvider()
    seen = []
    reviewer = LLMReviewer(provider, enabled=True)

    outcome = reviewer.review(targets, on_reviewed=lambda key, element, records: seen.append((key, len(provider.calls))))

    assert provider.calls == ["One.", "Two.", "Three."]
    assert seen == [(targets[0][0], 1), (targets[1][0], 2), (targets[2][0], 3)]
    assert outcome.reviewed == {key for key, _ in targets}


def test_failed_request_skips_element():
    targets = targets_for(["One.", "Two.", "Three."])
    provider = ScriptedProvider({"Two.": ProviderError("timeout")})

    outcome = LLMReviewer(provider, enabled=True).review(targets)

    assert provider.calls == ["One.", "Two.", "Three."]
    assert outcome.skipped == 1
    assert targets[1][0] not in outcome.reviewed
    assert outcome.completed


def test_fatal_error_halts_queue():
    targets = targets_for(["One.", "Two.", "Three."])
    provider = ScriptedProvider({"Two.": ProviderFatalError("401 invalid key")})

    outcome = LLMReviewer(provider, enabled=True).review(targets)

    assert provider.calls == ["One.", "Two."]
    assert outcome.reviewed == {targets[0][0]}
    assert outcome.fatal_error == "401 invalid key"
    assert not outcome.completed


def test_cancellation_is_checked_between_elements():
    targets = targets_for(["One.", "Two.", "Three."])
    token = CancellationToken()
    provider = ScriptedProvider()
    reviewer = LLMReviewer(provider, enabled=True)

    outcome = reviewer.review(targets, on_reviewed=lambda *args: token.cancel(), token=token)

    assert provider.calls == ["One."]
    assert outcome.cancelled
    assert not outcome.completed


def test_availability():
    assert LLMReviewer(ScriptedProvider(), enabled=True).is_available()
    assert not LLMReviewer(ScriptedProvider(), enabled=False).is_available()
    assert not LLMReviewer(ScriptedProvider(configured=False), enabled=True).is_available()


def test_enabled_defaults_from_env(monkeypatch):
    monkeypatch.setenv("LLM_ENABLED", "true")

    assert LLMReviewer(ScriptedProvider()).enabled


def test_signature():
    reviewer = LLMReviewer(ScriptedProvider(mode="highRecall"), enabled=True)

    assert reviewer.signature == "scripted:scripted-1:highRecall"


def test_debug_log_appends_jsonl(tmp_path):
    log = tmp_path / "cache" / "llm.debug.jsonl"
    targets = targets_for(["One.", "Two."])
    reviewer = LLMReviewer(ScriptedProvider({"Two.": ["Odd"]}), enabled=True, debug_log=log)

    reviewer.review(targets)

    entries = [json.loads(line) for line in log.read_text().splitlines()]
    assert [e["element_key"] for e in entries] == [key for key, _ in targets]
    assert entries[1]["issues"] == [{"message": "Odd", "severity": "warning"}]
    assert entries[0]["mode"] == "lowFalsePositive"


def test_debug_log_holds_only_latest_pass(tmp_path):
    log = tmp_path / "llm.debug.jsonl"
    log.write_text("stale line\n")
    reviewer = LLMReviewer(ScriptedProvider(), enabled=True, debug_log=log)

    reviewer.review(targets_for(["One.", "Two."]))
    reviewer.review(targets_for(["Three."]))

    entries = [json.loads(line) for line in log.read_text().splitlines()]
    assert [e["prompt"] for e in entries] == ["Three."]


def test_signature_follows_provider_mode():
    low = LLMReviewer(ScriptedProvider(mode="lowFalsePositive"), enabled=True)
    high = LLMReviewer(ScriptedProvider(mode="highRecall"), enabled=True)

    assert low.signature != high.signature
    assert high.signature.endswith(":highRecall")
