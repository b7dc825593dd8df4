# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extractive text compression (TextRank).

A text is split into sentences; sentences are ranked by a PageRank walk
over a word-overlap similarity graph, and the best-ranked fraction is
kept in its original order. Pure Python, deterministic: ties break on
sentence position.
"""

from __future__ import annotations

import math
import re

from domsnap.options import TextRankOptions

_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?。！？])\s+")
_WORD_RE = re.compile(r"\w+")
_WHITESPACE_RE = re.compile(r"\s+")

_DEFAULT_OPTIONS = TextRankOptions()


def split_sentences(text: str) -> list[str]:
    """Sentences of ``text``, terminal punctuation kept, blanks dropped."""
    return [s.strip() for s in _SENTENCE_BOUNDARY_RE.split(text) if s.strip()]


def _words(sentence: str) -> set[str]:
    return {w.lower() for w in _WORD_RE.findall(sentence)}


def _similarity(a: set[str], b: set[str]) -> float:
    """Word overlap normalized by sentence lengths (Mihalcea & Tarau)."""
    overlap = len(a & b)
    if not overlap:
        return 0.0
    norm = math.log(len(a) + 1) + math.log(len(b) + 1)
    return overlap / norm


def rank_sentences(sentences: list[str], options: TextRankOptions = _DEFAULT_OPTIONS) -> list[float]:
    """PageRank score per sentence over the similarity graph."""
    n = len(sentences)
    if n <= 1:
        return [1.0] * n

    words = [_words(s) for s in sentences]
    weights = [[0.0 if i == j else _similarity(words[i], words[j]) for j in range(n)] for i in range(n)]
    out_sums = [sum(row) for row in weights]

    d = options.damping
    scores = [1.0] * n
    for _ in range(options.max_iterations):
        updated = [
            (1.0 - d)
            + d * sum(weights[j][i] / out_sums[j] * scores[j] for j in range(n) if out_sums[j] and weights[j][i])
            for i in range(n)
        ]
        delta = max(abs(u - s) for u, s in zip(updated, scores, strict=True))
        scores = updated
        if delta < options.tolerance:
            break
    return scores


class TextRanker:
    """Keep the top-ranked ``retention`` share of a text's sentences."""

    def compress(
        self,
        text: str,
        retention: float,
        options: TextRankOptions | None = None,
        prefer_rendered_text: bool = False,
    ) -> str:
        """Shorten ``text`` to its highest-ranked sentences.

        At least one sentence always survives. With ``prefer_rendered_text``
        whitespace runs collapse to one space first, as a browser renders
        them; leading and trailing whitespace is kept (collapsed) so inline
        neighbours stay separated.
        """
        opts = options or _DEFAULT_OPTIONS
        if prefer_rendered_text:
            text = _WHITESPACE_RE.sub(" ", text)
        if not _WORD_RE.search(text):
            return text

        sentences = split_sentences(text)
        # only the leading max_sentences are ranked; the tail is kept as is
        cap = len(sentences) if opts.max_sentences is None else opts.max_sentences
        ranked, tail = sentences[:cap], sentences[cap:]
        keep = max(math.floor(len(ranked) * max(0.0, min(1.0, retention)) + 0.5), 1)
        if keep >= len(ranked):
            return text

        scores = rank_sentences(ranked, opts)
        best = sorted(range(len(ranked)), key=lambda i: (-scores[i], i))[:keep]
        body = " ".join([*(ranked[i] for i in sorted(best)), *tail])

        stripped = text.strip()
        leading = text[: len(text) - len(text.lstrip())]
        trailing = text[len(stripped) + len(leading) :]
        return f"{leading}{body}{trailing}"
