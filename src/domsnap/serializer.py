# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Snapshot assembly and serialization.

- assemble_snapshot: reduced tree → Snapshot (markup + size metadata)
- format_html: indented rendering used in debug mode
- to_json / to_dict: structured output for programmatic consumption
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import asdict
from typing import Any

from domsnap import AdaptiveSnapshot, Snapshot, SnapshotMeta
from domsnap.dom import VOID_TAGS, Document
from domsnap.markdown import LINE_BREAK_MARK
from domsnap.tokens import estimate_tokens

_TAG_GAP_RE = re.compile(r">\s+<")
_TAG_SPLIT_RE = re.compile(r"(<[^>]+>)")
_CLOSING_TAG_RE = re.compile(r"</\w")
_OPENING_TAG_RE = re.compile(r"<([A-Za-z][\w:-]*)[^>]*>\Z")
_BLANK_LINE_RE = re.compile(r"\n[ \t]*(?=\n|\Z)")
_LEADING_TAG_RE = re.compile(r"^<[^>]+>\s*")
_TRAILING_TAG_RE = re.compile(r"\s*</[^<]+>\Z")


def format_html(html: str, indent_size: int = 2) -> str:
    """One tag or text run per line, indented by element nesting."""
    tokens = [t for t in _TAG_SPLIT_RE.split(_TAG_GAP_RE.sub("><", html).strip()) if t.strip()]
    lines: list[str] = []
    level = 0
    for token in tokens:
        if _CLOSING_TAG_RE.match(token):
            level = max(level - 1, 0)
            lines.append(" " * (level * indent_size) + token)
            continue
        lines.append(" " * (level * indent_size) + token.strip())
        opening = _OPENING_TAG_RE.match(token)
        if opening and not token.endswith("/>") and opening.group(1).lower() not in VOID_TAGS:
            level += 1
    return "\n".join(lines)


def finalize_markup(markup: str, *, debug: bool = False, linearized: bool = False) -> str:
    """Turn raw inner markup into the snapshot text.

    Restores line-break marks, drops blank-only lines and, for a fully
    linearized tree, peels off the one wrapper left around everything.
    """
    if debug:
        markup = format_html(markup)
    markup = markup.replace(LINE_BREAK_MARK, "\n")
    markup = _BLANK_LINE_RE.sub("", markup)
    if linearized:
        markup = markup.strip()
        markup = _LEADING_TAG_RE.sub("", markup, count=1)
        markup = _TRAILING_TAG_RE.sub("", markup, count=1)
    return markup


def assemble_snapshot(doc: Document, *, k: float, original_size: int, debug: bool = False) -> Snapshot:
    """Serialize the reduced tree and attach size metadata.

    ``snapshot_size`` counts the raw inner markup (line-break marks
    included), before any formatting or wrapper removal.
    """
    raw = doc.inner_html(doc.root)
    linearized = k == math.inf and bool(doc.element_children(doc.root))
    snapshot_size = len(raw)
    meta = SnapshotMeta(
        original_size=original_size,
        snapshot_size=snapshot_size,
        size_ratio=snapshot_size / original_size if original_size else 0.0,
        estimated_tokens=estimate_tokens(snapshot_size),
    )
    return Snapshot(
        serialized_html=finalize_markup(raw, debug=debug, linearized=linearized),
        meta=meta,
    )


def to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Snapshot as plain data; adaptive results include parameters and attempts."""
    data: dict[str, Any] = {
        "serialized_html": snapshot.serialized_html,
        "meta": asdict(snapshot.meta),
    }
    if isinstance(snapshot, AdaptiveSnapshot):
        data["parameters"] = asdict(snapshot.parameters)
        data["attempts"] = [asdict(a) for a in snapshot.attempts]
    if snapshot.stage_ms:
        data["stage_ms"] = dict(snapshot.stage_ms)
    return data


def to_json(snapshot: Snapshot, indent: int = 2) -> str:
    """Serialize a Snapshot to a JSON string.

    Args:
        snapshot: Snapshot to serialize
        indent: JSON indentation level

    Returns:
        JSON string
    """
    return json.dumps(to_dict(snapshot), indent=indent, ensure_ascii=False)
