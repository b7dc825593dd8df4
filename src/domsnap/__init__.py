# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DomSnap: size-bounded DOM snapshots for token-limited LLM prompts.

Reduces a document tree under three parameters:
- k: container merge aggressiveness (LINEARIZE collapses every container)
- l: text compression aggressiveness
- m: attribute retention threshold

Entry points:
- domsnap.pipeline.transform(root, k, l, m, options)
- domsnap.adaptive.adaptive_transform(root, max_tokens, max_iterations, options)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

LINEARIZE = math.inf  # k value that merges every container into one


@dataclass(frozen=True)
class SnapshotMeta:
    """Size metrics of a snapshot."""

    original_size: int  # chars of the pristine root outer markup
    snapshot_size: int  # chars of the reduced inner markup, before formatting
    size_ratio: float
    estimated_tokens: int


@dataclass(frozen=True)
class Snapshot:
    """Result of a single transform."""

    serialized_html: str
    meta: SnapshotMeta
    stage_ms: dict[str, float] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class AttemptRecord:
    """One adaptive attempt: the parameters tried and what they produced."""

    k: float
    l: float  # noqa: E741
    m: float
    estimated_tokens: int


@dataclass(frozen=True)
class SearchParameters:
    """Parameters chosen by the adaptive search."""

    k: float
    l: float  # noqa: E741
    m: float
    iterations_used: int


@dataclass(frozen=True)
class AdaptiveSnapshot(Snapshot):
    """Snapshot that met a token budget, with the parameters that produced it."""

    parameters: SearchParameters = field(default_factory=lambda: SearchParameters(0.0, 0.0, 0.0, 0))
    attempts: list[AttemptRecord] = field(default_factory=list, compare=False)
