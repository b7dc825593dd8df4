# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Text compression pass: rewrite each text node to its ranked summary."""

from __future__ import annotations

import logging

from domsnap.dom import NodeKind
from domsnap.reduction import ReductionContext
from domsnap.reduction.scope import preserve_scope

logger = logging.getLogger(__name__)


def compress_text(ctx: ReductionContext, l: float) -> int:  # noqa: E741
    """Compress text nodes outside preserve scope at retention ``1 - l``.

    Returns the number of characters removed.
    """
    doc = ctx.doc
    scope = preserve_scope(doc, ctx.preserve_attribute)
    retention = 1.0 - l
    saved = 0
    for tid in doc.descendants(doc.root, NodeKind.TEXT):
        node = doc[tid]
        if node.parent in scope:
            continue
        compressed = ctx.text_ranker.compress(
            node.text,
            retention,
            ctx.options.text_rank,
            prefer_rendered_text=True,
        )
        saved += len(node.text) - len(compressed)
        node.text = compressed
    logger.debug("Text compression l=%.3f saved %d chars", l, saved)
    return saved
