# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based fuzz tests using Hypothesis.

Verifies invariants hold for arbitrary parameters and documents across
the transform pipeline, the text ranker and parameter validation.
"""

from __future__ import annotations

try:
    from hypothesis import HealthCheck, example, given, settings
    from hypothesis import strategies as st
except ImportError:
    import pytest

    pytest.skip("hypothesis not installed", allow_module_level=True)

import math
import re
from pathlib import Path

import lxml.html
import pytest

from domsnap import LINEARIZE
from domsnap.errors import InvalidParameterError
from domsnap.pipeline import transform
from domsnap.reduction.merge import merge_interval
from domsnap.textrank import TextRanker, split_sentences
from tests._snapshot_helpers import parse_body

# ---------------------------------------------------------------------------
# Module-level strategies
# ---------------------------------------------------------------------------

UNIT = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)

MERGE_K = st.one_of(UNIT, st.just(LINEARIZE))

OUT_OF_RANGE = st.one_of(
    st.floats(max_value=-1e-9, allow_nan=False, allow_infinity=True),
    st.floats(min_value=1.0 + 1e-9, allow_nan=False, allow_infinity=False),
    st.just(math.nan),
)

WORD = st.from_regex(r"[a-z]{2,8}", fullmatch=True)

TAGS = ["div", "section", "article", "main", "span", "em", "nav", "x-box"]

TREE = st.recursive(
    WORD.map(lambda w: f" {w} "),
    lambda children: st.tuples(st.sampled_from(TAGS), st.lists(children, min_size=1, max_size=4)).map(
        lambda t: f"<{t[0]}>{''.join(t[1])}</{t[0]}>"
    ),
    max_leaves=20,
)

BODY = st.lists(TREE, min_size=1, max_size=4).map("".join)

SENTENCE = st.lists(WORD, min_size=1, max_size=6).map(lambda ws: " ".join(ws).capitalize() + ".")

_TAG_RE = re.compile(r"<[^>]+>")
_WORD_RE = re.compile(r"[a-z]+")

FIXTURES_DIR = Path(__file__).parent / "fixtures"

_PIZZA = lxml.html.parse(str(FIXTURES_DIR / "pizza.html")).getroot().body
_AGENTS = lxml.html.parse(str(FIXTURES_DIR / "agents.html")).getroot().body


def _words(markup: str) -> list[str]:
    return _WORD_RE.findall(_TAG_RE.sub(" ", markup))


# ---------------------------------------------------------------------------
# Shared settings
# ---------------------------------------------------------------------------

_fuzz_settings = settings(
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)


# ---------------------------------------------------------------------------
# TestFuzzTransform
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzTransform:
    """Property-based tests for the transform pipeline."""

    @_fuzz_settings
    @given(k=MERGE_K, l=UNIT, m=UNIT, assign=st.booleans())
    @example(0.0, 0.0, 0.0, False)
    @example(LINEARIZE, 1.0, 1.0, True)
    def test_fixtures_never_crash(self, k: float, l: float, m: float, assign: bool) -> None:  # noqa: E741
        for root in (_PIZZA, _AGENTS):
            snap = transform(root, k, l, m, {"assign_unique_ids": assign})
            assert snap.meta.snapshot_size > 0
            assert snap.meta.size_ratio == snap.meta.snapshot_size / snap.meta.original_size
            assert snap.meta.estimated_tokens == math.floor(snap.meta.snapshot_size / 4 + 0.5)
            assert "<script" not in snap.serialized_html

    @_fuzz_settings
    @given(body=BODY, k=MERGE_K)
    @example("<div> ab <section> cd </section> ef </div>", LINEARIZE)
    def test_text_survives_merging(self, body: str, k: float) -> None:
        options = {"skip_markdown_translation": True, "keep_unknown_elements": True}
        snap = transform(parse_body(body), k, 0.0, 0.0, options)
        assert sorted(_words(snap.serialized_html)) == sorted(_words(body))

    @_fuzz_settings
    @given(body=BODY, k=MERGE_K, l=UNIT, m=UNIT)
    def test_deterministic(self, body: str, k: float, l: float, m: float) -> None:  # noqa: E741
        root = parse_body(body)
        assert transform(root, k, l, m) == transform(root, k, l, m)


# ---------------------------------------------------------------------------
# TestFuzzValidation
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzValidation:
    @_fuzz_settings
    @given(bad=OUT_OF_RANGE)
    @example(-0.5)
    @example(1.5)
    def test_out_of_range_rejected(self, bad: float) -> None:
        for args in ((bad, 0.0, 0.0), (0.0, bad, 0.0), (0.0, 0.0, bad)):
            with pytest.raises(InvalidParameterError):
                transform(_PIZZA, *args)


# ---------------------------------------------------------------------------
# TestFuzzTextRank
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzTextRank:
    ranker = TextRanker()

    @_fuzz_settings
    @given(sentences=st.lists(SENTENCE, min_size=1, max_size=12), retention=UNIT)
    def test_selects_subsequence(self, sentences: list[str], retention: float) -> None:
        text = " ".join(sentences)
        original = split_sentences(text)
        kept = split_sentences(self.ranker.compress(text, retention))
        expected = min(max(math.floor(len(original) * retention + 0.5), 1), len(original))
        assert len(kept) == expected
        it = iter(original)
        assert all(any(s == o for o in it) for s in kept)

    @_fuzz_settings
    @given(height=st.integers(0, 200), k=MERGE_K)
    def test_merge_interval_positive(self, height: int, k: float) -> None:
        interval = merge_interval(height, k)
        assert interval >= 1
        assert interval <= max(height, 1)
