# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for domsnap.adaptive: Halton parameter search under a token budget."""

from __future__ import annotations

import itertools
import re

import pytest

import domsnap.adaptive as adaptive_mod
from domsnap import Snapshot, SnapshotMeta
from domsnap.adaptive import AdaptiveConfig, _stretch, adaptive_transform, halton, halton_points
from domsnap.errors import BudgetExceededError, InvalidParameterError
from domsnap.pipeline import load_document
from tests._snapshot_helpers import ledger_page, parse_body


def _scale(root) -> float:
    doc = load_document(root)
    return float(len(doc.outer_html(doc.root)))


# ── Halton sequence ──────────────────────────────────────────────────


class TestHalton:
    @pytest.mark.parametrize(
        ("index", "base", "expected"),
        [
            (1, 7, 1 / 7),
            (2, 7, 2 / 7),
            (1, 3, 1 / 3),
            (2, 3, 2 / 3),
            (3, 3, 1 / 9),
            (4, 3, 4 / 9),
            (0, 3, 0.0),
        ],
    )
    def test_radical_inverse(self, index, base, expected):
        assert halton(index, base) == pytest.approx(expected)

    def test_points_start_at_index_one(self):
        points = list(itertools.islice(halton_points((7, 3, 3)), 2))
        assert points[0] == pytest.approx((1 / 7, 1 / 3, 1 / 3))
        assert points[1] == pytest.approx((2 / 7, 2 / 3, 2 / 3))

    def test_stretch_saturates(self):
        assert _stretch(4.0, 1.5) == pytest.approx(8.0)
        assert _stretch(1e300, 1.125) == float("inf")


# ── Search loop ──────────────────────────────────────────────────────


class _ScriptedTransform:
    """Stand-in for pipeline.transform returning preset token counts."""

    def __init__(self, tokens: list[int]):
        self._tokens = iter(tokens)
        self.calls: list[tuple[float, float, float]] = []

    def __call__(self, doc, k, l, m, options=None, **kwargs):  # noqa: E741
        self.calls.append((k, l, m))
        tokens = next(self._tokens)
        return Snapshot(f"attempt {len(self.calls)}", SnapshotMeta(1000, tokens * 4, 0.5, tokens))


class TestSearchLoop:
    def test_retries_until_budget_met(self, monkeypatch, pizza_body):
        scripted = _ScriptedTransform([100, 80, 40, 10])
        monkeypatch.setattr(adaptive_mod, "transform", scripted)

        snap = adaptive_transform(pizza_body, max_tokens=50, max_iterations=5)

        assert snap.serialized_html == "attempt 3"
        assert snap.parameters.iterations_used == 2
        assert [a.estimated_tokens for a in snap.attempts] == [100, 80, 40]
        assert (snap.parameters.k, snap.parameters.l, snap.parameters.m) == scripted.calls[-1]

    def test_scale_stretches_between_attempts(self, monkeypatch, pizza_body):
        scripted = _ScriptedTransform([100, 100, 0])
        monkeypatch.setattr(adaptive_mod, "transform", scripted)
        adaptive_transform(pizza_body, max_tokens=0, max_iterations=5)

        s = _scale(pizza_body)
        expected = []
        for h in itertools.islice(halton_points((7, 3, 3)), 3):
            expected.append(tuple(min(s / 1e6 * x, 1.0) for x in h))
            s = s**1.125
        for got, want in zip(scripted.calls, expected, strict=True):
            assert got == pytest.approx(want)

    def test_parameters_capped_at_one(self, monkeypatch, pizza_body):
        scripted = _ScriptedTransform([5])
        monkeypatch.setattr(adaptive_mod, "transform", scripted)
        adaptive_transform(pizza_body, max_tokens=10, config=AdaptiveConfig(reference_divisor=1.0))
        assert scripted.calls == [(1.0, 1.0, 1.0)]

    def test_gives_up_after_max_iterations(self, monkeypatch, pizza_body):
        scripted = _ScriptedTransform([9, 9, 9, 9])
        monkeypatch.setattr(adaptive_mod, "transform", scripted)
        with pytest.raises(BudgetExceededError) as exc_info:
            adaptive_transform(pizza_body, max_tokens=1, max_iterations=2)
        assert len(scripted.calls) == 3
        assert exc_info.value.max_tokens == 1
        assert len(exc_info.value.attempts) == 3

    def test_zero_iterations_means_single_attempt(self, monkeypatch, pizza_body):
        scripted = _ScriptedTransform([9, 0])
        monkeypatch.setattr(adaptive_mod, "transform", scripted)
        with pytest.raises(BudgetExceededError):
            adaptive_transform(pizza_body, max_tokens=1, max_iterations=0)
        assert len(scripted.calls) == 1


# ── End to end ───────────────────────────────────────────────────────


class TestAdaptiveTransform:
    def test_generous_budget_first_attempt(self, agents_body):
        snap = adaptive_transform(agents_body, max_tokens=100_000)
        s = _scale(agents_body)
        assert snap.parameters.iterations_used == 0
        assert len(snap.attempts) == 1
        assert snap.parameters.k == pytest.approx(s / 1e6 / 7)
        assert snap.parameters.l == pytest.approx(s / 1e6 / 3)
        assert snap.parameters.m == pytest.approx(s / 1e6 / 3)
        assert snap.meta.estimated_tokens <= 100_000

    def test_links_and_uids_survive(self, agents_body):
        snap = adaptive_transform(agents_body, max_tokens=4096, options={"assign_unique_ids": True})
        assert re.search(r'<a [^>]*href="/about"[^>]*data-uid="\d+"', snap.serialized_html)

    def test_large_page_needs_retry(self):
        root = parse_body(ledger_page())
        snap = adaptive_transform(root, max_tokens=4096, options={"assign_unique_ids": True})
        assert snap.attempts[0].estimated_tokens > 4096
        assert snap.parameters.iterations_used >= 1
        assert snap.meta.estimated_tokens < 4096
        assert len(snap.serialized_html) > 50
        assert re.search(r'<a href="/about" data-uid="\d+">About</a>', snap.serialized_html)

    def test_impossible_budget(self, pizza_body):
        with pytest.raises(BudgetExceededError, match="token threshold") as exc_info:
            adaptive_transform(pizza_body, max_tokens=0, max_iterations=2)
        attempts = exc_info.value.attempts
        assert len(attempts) == 3
        assert all(a.estimated_tokens > 0 for a in attempts)

    def test_deterministic(self, agents_body):
        first = adaptive_transform(agents_body, max_tokens=1200)
        second = adaptive_transform(agents_body, max_tokens=1200)
        assert first == second
        assert first.attempts == second.attempts

    def test_failed_search_deterministic(self, agents_body):
        runs = []
        for _ in range(2):
            with pytest.raises(BudgetExceededError) as exc_info:
                adaptive_transform(agents_body, max_tokens=0, max_iterations=4)
            runs.append(exc_info.value.attempts)
        assert runs[0] == runs[1]
        tokens = [a.estimated_tokens for a in runs[0]]
        assert tokens[-1] <= tokens[0]

    def test_input_not_mutated(self, pizza_body):
        import lxml.html

        before = lxml.html.tostring(pizza_body)
        adaptive_transform(pizza_body, max_tokens=100_000, options={"assign_unique_ids": True})
        assert lxml.html.tostring(pizza_body) == before

    @pytest.mark.parametrize(("max_tokens", "max_iterations"), [(-1, 5), (100, -1)])
    def test_negative_arguments(self, pizza_body, max_tokens, max_iterations):
        with pytest.raises(InvalidParameterError):
            adaptive_transform(pizza_body, max_tokens, max_iterations)
