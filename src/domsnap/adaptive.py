# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Adaptive parameter search against a token budget.

Draws (k, l, m) from a Halton sequence (bases 7, 3, 3), scaled by the
document size relative to a reference divisor, and runs the full pipeline
until the snapshot's estimated tokens fit the budget. After each miss the
scale reference is stretched (S := S ** 1.125), pushing later draws toward
more aggressive parameters. Deterministic: identical inputs produce the
identical attempt sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from domsnap import AdaptiveSnapshot, AttemptRecord, SearchParameters
from domsnap.errors import BudgetExceededError, InvalidParameterError
from domsnap.ground_truth import GroundTruth
from domsnap.markdown import MarkdownConverter
from domsnap.options import SnapshotOptions, resolve_options
from domsnap.pipeline import load_document, transform
from domsnap.reduction import MarkdownConverterLike, TextRankerLike
from domsnap.textrank import TextRanker

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 32768
DEFAULT_MAX_ITERATIONS = 5


@dataclass(frozen=True)
class AdaptiveConfig:
    """Search constants."""

    reference_divisor: float = 1_000_000.0
    stretch_exponent: float = 1.125
    halton_bases: tuple[int, int, int] = (7, 3, 3)


def halton(index: int, base: int) -> float:
    """Radical inverse of ``index`` in ``base`` (van der Corput)."""
    result = 0.0
    f = 1.0 / base
    i = index
    while i > 0:
        result += f * (i % base)
        i //= base
        f /= base
    return result


def halton_points(bases: tuple[int, ...]) -> Iterator[tuple[float, ...]]:
    """Infinite Halton sequence, starting at index 1."""
    index = 0
    while True:
        index += 1
        yield tuple(halton(index, b) for b in bases)


def _stretch(scale: float, exponent: float) -> float:
    try:
        return scale**exponent
    except OverflowError:
        return float("inf")


def adaptive_transform(
    root: Any,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    options: SnapshotOptions | dict | None = None,
    *,
    config: AdaptiveConfig | None = None,
    ground_truth: GroundTruth | None = None,
    markdown_converter: MarkdownConverterLike | None = None,
    text_ranker: TextRankerLike | None = None,
) -> AdaptiveSnapshot:
    """Find parameters whose snapshot fits ``max_tokens``.

    Makes at most ``max_iterations + 1`` attempts.

    Returns:
        AdaptiveSnapshot of the first fitting attempt; ``parameters``
        holds its k, l, m and ``iterations_used`` (the number of failed
        attempts before it), ``attempts`` every attempt made.

    Raises:
        BudgetExceededError: no attempt fitted the budget
        InvalidParameterError: negative budget or iteration cap
        DocumentResolutionError: no element root in ``root``
    """
    if max_tokens < 0:
        raise InvalidParameterError(
            f"Invalid max_tokens={max_tokens}, expects a non-negative count",
            name="max_tokens",
            value=max_tokens,
        )
    if max_iterations < 0:
        raise InvalidParameterError(
            f"Invalid max_iterations={max_iterations}, expects a non-negative count",
            name="max_iterations",
            value=max_iterations,
        )

    cfg = config or AdaptiveConfig()
    opts = resolve_options(options)
    doc = load_document(root)
    converter = markdown_converter or MarkdownConverter()
    ranker = text_ranker or TextRanker()

    scale = float(len(doc.outer_html(doc.root)))
    points = halton_points(cfg.halton_bases)
    attempts: list[AttemptRecord] = []
    iteration = 0

    while True:
        k, l, m = (min(scale / cfg.reference_divisor * h, 1.0) for h in next(points))  # noqa: E741
        snapshot = transform(
            doc,
            k,
            l,
            m,
            opts,
            ground_truth=ground_truth,
            markdown_converter=converter,
            text_ranker=ranker,
        )
        scale = _stretch(scale, cfg.stretch_exponent)
        tokens = snapshot.meta.estimated_tokens
        attempts.append(AttemptRecord(k=k, l=l, m=m, estimated_tokens=tokens))
        logger.debug(
            "Adaptive attempt %d: k=%.4f l=%.4f m=%.4f → %d tokens (budget %d)",
            iteration,
            k,
            l,
            m,
            tokens,
            max_tokens,
        )

        if tokens <= max_tokens:
            break
        if iteration == max_iterations:
            logger.warning(
                "Adaptive search gave up after %d attempts (best %d tokens, budget %d)",
                len(attempts),
                min(a.estimated_tokens for a in attempts),
                max_tokens,
            )
            raise BudgetExceededError(
                "Unable to create snapshot below given token threshold",
                max_tokens=max_tokens,
                attempts=attempts,
            )
        iteration += 1

    return AdaptiveSnapshot(
        serialized_html=snapshot.serialized_html,
        meta=snapshot.meta,
        stage_ms=snapshot.stage_ms,
        parameters=SearchParameters(k=k, l=l, m=m, iterations_used=iteration),
        attempts=attempts,
    )
