# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Snapshot options and environment overrides.

Environment variables (read by ``SnapshotOptions.from_env``):
  DOMSNAP_PRESERVE_ATTRIBUTE  marker attribute name ("" disables preserve)
  DOMSNAP_ASSIGN_UIDS         1/true/yes to write data-uid attributes
  DOMSNAP_KEEP_UNKNOWN        1/true/yes to keep unclassified elements
  DOMSNAP_SKIP_MARKDOWN       1/true/yes to leave content elements as markup
  DOMSNAP_DEBUG               1/true/yes to pretty-print the snapshot
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PRESERVE_ATTRIBUTE = "data-preserve"
UNIQUE_ID_ATTRIBUTE = "data-uid"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class TextRankOptions(BaseModel):
    """Knobs of the extractive text ranker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    damping: float = Field(default=0.85, gt=0.0, lt=1.0)
    max_iterations: int = Field(default=30, ge=1)
    max_sentences: Annotated[int, Field(ge=1)] | None = None  # None = rank every sentence
    tolerance: float = Field(default=1e-4, gt=0.0)


def _coerce_text_rank(value: TextRankOptions | Mapping[str, Any] | None) -> TextRankOptions:
    """Accept a full model, a partial override dict, or None (defaults)."""
    if value is None:
        return TextRankOptions()
    if isinstance(value, TextRankOptions):
        return value
    return TextRankOptions(**dict(value))


@dataclass(frozen=True)
class SnapshotOptions:
    """Per-call behaviour switches of a transform."""

    assign_unique_ids: bool = False
    debug: bool = False
    keep_unknown_elements: bool = False
    preserve_attribute: str = DEFAULT_PRESERVE_ATTRIBUTE
    skip_markdown_translation: bool = False
    text_rank: TextRankOptions = field(default_factory=TextRankOptions)

    def __post_init__(self) -> None:
        if not isinstance(self.text_rank, TextRankOptions):
            object.__setattr__(self, "text_rank", _coerce_text_rank(self.text_rank))

    def with_changes(self, **changes: Any) -> SnapshotOptions:
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> SnapshotOptions:
        """Build options from DOMSNAP_* variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if "DOMSNAP_PRESERVE_ATTRIBUTE" in env:
            values["preserve_attribute"] = env["DOMSNAP_PRESERVE_ATTRIBUTE"].strip()
        for var, name in (
            ("DOMSNAP_ASSIGN_UIDS", "assign_unique_ids"),
            ("DOMSNAP_KEEP_UNKNOWN", "keep_unknown_elements"),
            ("DOMSNAP_SKIP_MARKDOWN", "skip_markdown_translation"),
            ("DOMSNAP_DEBUG", "debug"),
        ):
            raw = env.get(var, "").strip().lower()
            if raw:
                values[name] = raw in _TRUTHY

        values.update(overrides)
        return cls(**values)


def resolve_options(options: SnapshotOptions | Mapping[str, Any] | None) -> SnapshotOptions:
    """Normalize the ``options`` argument of the public operations."""
    if options is None:
        return SnapshotOptions()
    if isinstance(options, SnapshotOptions):
        return options
    return SnapshotOptions(**dict(options))
