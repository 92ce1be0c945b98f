"""Tests for the workspace watcher plumbing."""

import threading
from pathlib import Path

from analysis.engine import AnalysisRequest, AnalysisResult
from analysis.scheduler import AnalysisScheduler
from analysis.watch import ChangeBatcher, TexFilter


class TestTexFilter:
    def test_accepts_tex_files(self):
        assert TexFilter()(None, "/thesis/chapters/intro.tex")

    def test_rejects_other_files(self):
        assert not TexFilter()(None, "/thesis/refs.bib")

    def test_rejects_ignored_directories(self):
        watch_filter = TexFilter({".git", ".thesis-lint"})

        assert not watch_filter(None, "/thesis/.thesis-lint/x.tex")
        assert not watch_filter(None, "/thesis/.git/y.tex")


class TestChangeBatcher:
    def make(self):
        requests = []
        done = threading.Event()

        def run(request, token):
            requests.append(request)
            done.set()
            return AnalysisResult()

        scheduler = AnalysisScheduler(run)
        return ChangeBatcher(scheduler, delay=0.01), scheduler, requests, done

    def test_single_file_uses_fast_path(self):
        batcher, scheduler, requests, done = self.make()

        batcher.add(Path("/thesis/a.tex"))
        batcher.add(Path("/thesis/a.tex"))

        assert done.wait(timeout=5)
        assert scheduler.wait_idle(timeout=5)
        assert requests == [AnalysisRequest(changed_file=Path("/thesis/a.tex"), explicit=False)]

    def test_several_files_trigger_full_parse(self):
        batcher, scheduler, requests, done = self.make()

        batcher.add(Path("/thesis/a.tex"))
        batcher.add(Path("/thesis/b.tex"))

        assert done.wait(timeout=5)
        assert scheduler.wait_idle(timeout=5)
        assert requests == [AnalysisRequest(changed_file=None, explicit=False)]

    def test_empty_flush_submits_nothing(self):
        batcher, scheduler, requests, _ = self.make()

        batcher.flush()

        assert requests == []
