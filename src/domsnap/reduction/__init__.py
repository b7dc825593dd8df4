# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tree reduction passes.

Core data structures shared by the passes in this package:
  preprocessor  comments/scripts removal, depth annotation
  attributes    unique ids, attribute filtering (m)
  text          text node compression (l)
  content       element dispatch: markdown, pass-through, unknown removal
  merge         container merging (k)
  scope         preserve-marker scope
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from domsnap.dom import Document
from domsnap.errors import InvalidParameterError
from domsnap.ground_truth import GroundTruth
from domsnap.options import SnapshotOptions, TextRankOptions


class MarkdownConverterLike(Protocol):
    def convert(self, markup: str, preserve_attribute: str | None = None) -> str: ...


class TextRankerLike(Protocol):
    def compress(
        self,
        text: str,
        retention: float,
        options: TextRankOptions | None = None,
        prefer_rendered_text: bool = False,
    ) -> str: ...


@dataclass(slots=True)
class ReductionContext:
    """Bundled per-run state handed to every pass."""

    doc: Document
    ground_truth: GroundTruth
    options: SnapshotOptions
    markdown_converter: MarkdownConverterLike
    text_ranker: TextRankerLike

    @property
    def preserve_attribute(self) -> str:
        return self.options.preserve_attribute


def _check_unit_interval(name: str, value: float, *, allow_linearize: bool = False) -> None:
    if allow_linearize and value == math.inf:
        return
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidParameterError(f"Invalid parameter {name}={value!r}, expects a number", name=name, value=value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise InvalidParameterError(
            f"Invalid parameter {name}={value}, expects value in [0, 1]",
            name=name,
            value=value,
        )


def validate_parameters(k: float, l: float, m: float) -> None:  # noqa: E741
    """Raise InvalidParameterError unless k ∈ [0,1] ∪ {inf} and l, m ∈ [0,1]."""
    _check_unit_interval("k", k, allow_linearize=True)
    _check_unit_interval("l", l)
    _check_unit_interval("m", m)
