# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Element dispatch pass.

Each element outside preserve scope is handled by category:
  container    left for the merge pass
  content      replaced by its markdown rendering
  interactive  passed through untouched
  unknown      removed with its subtree (unless keep_unknown_elements)
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from domsnap.dom import NodeKind
from domsnap.ground_truth import Category
from domsnap.reduction import ReductionContext
from domsnap.reduction.scope import preserve_scope

logger = logging.getLogger(__name__)


@dataclass
class DispatchStats:
    converted: int = 0
    removed: int = 0
    passed: Counter = field(default_factory=Counter)


def convert_content(ctx: ReductionContext, nid: int) -> bool:
    """Swap a content element for the nodes of its markdown rendering.

    Stray list items and table rows are converted on their own; inside a
    list or table they go with it. Returns True when replaced.
    """
    doc = ctx.doc
    node = doc[nid]
    if ctx.options.skip_markdown_translation:
        return False

    markup = doc.outer_html(nid)
    markdown = ctx.markdown_converter.convert(markup, ctx.preserve_attribute or None)
    replacements = doc.parse_fragment(markdown)
    _annotate_fragment_depth(ctx, replacements, node.depth)
    doc.replace_with(nid, replacements)
    return True


def _annotate_fragment_depth(ctx: ReductionContext, ids: list[int], depth: int) -> None:
    """Give spliced-in elements the depth of the slot they occupy."""
    doc = ctx.doc
    for top in ids:
        if doc[top].kind is not NodeKind.ELEMENT:
            continue
        doc[top].depth = depth
        for nid in doc.descendants(top, NodeKind.ELEMENT):
            doc[nid].depth = doc[doc[nid].parent].depth + 1


def reduce_elements(ctx: ReductionContext) -> DispatchStats:
    doc, gt = ctx.doc, ctx.ground_truth
    scope = preserve_scope(doc, ctx.preserve_attribute)
    stats = DispatchStats()

    for nid in doc.descendants(doc.root, NodeKind.ELEMENT):
        # Already replaced or removed together with an ancestor
        if not doc.is_attached(nid):
            continue
        if nid in scope:
            continue

        category = gt.category(doc[nid].tag)
        if category is Category.CONTENT:
            if convert_content(ctx, nid):
                stats.converted += 1
            else:
                stats.passed[category.value] += 1
        elif category is Category.UNKNOWN and not ctx.options.keep_unknown_elements:
            doc.detach(nid)
            stats.removed += 1
        else:
            stats.passed[category.value] += 1

    logger.debug(
        "Element dispatch: %d converted, %d removed, passed %s",
        stats.converted,
        stats.removed,
        dict(stats.passed),
    )
    return stats
