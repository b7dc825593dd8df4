# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Preparation pass.

Runs on the private copy before any reduction:
  1. Drop comment nodes
  2. Drop non-content elements (script, style, link) with their subtrees
  3. Annotate every element with its depth (root = 0)

Returns the tree height, which scales the container merge interval.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from domsnap.dom import Document, NodeKind

logger = logging.getLogger(__name__)

FILTERED_TAGS = frozenset({"script", "style", "link"})


@dataclass
class PrepareStats:
    comments_removed: int = 0
    elements_removed: int = 0
    tree_height: int = 0


def remove_comments(doc: Document) -> int:
    removed = 0
    for nid in doc.descendants(doc.root, NodeKind.COMMENT):
        doc.detach(nid)
        removed += 1
    return removed


def remove_filtered_elements(doc: Document, tags: frozenset[str] = FILTERED_TAGS) -> int:
    removed = 0
    for nid in doc.descendants(doc.root, NodeKind.ELEMENT):
        if doc[nid].tag.lower() not in tags:
            continue
        # Already gone with a removed ancestor
        if not doc.is_attached(nid):
            continue
        doc.detach(nid)
        removed += 1
    return removed


def annotate_depth(doc: Document) -> int:
    """Set ``depth`` on every attached element; return the maximum."""
    doc[doc.root].depth = 0
    height = 0
    # Document order visits a parent before its children
    for nid in doc.descendants(doc.root, NodeKind.ELEMENT):
        node = doc[nid]
        node.depth = doc[node.parent].depth + 1
        height = max(height, node.depth)
    return height


def prepare(doc: Document) -> PrepareStats:
    stats = PrepareStats()
    stats.comments_removed = remove_comments(doc)
    stats.elements_removed = remove_filtered_elements(doc)
    stats.tree_height = annotate_depth(doc)
    logger.debug(
        "Prepared tree: %d comments, %d elements removed, height %d",
        stats.comments_removed,
        stats.elements_removed,
        stats.tree_height,
    )
    return stats
