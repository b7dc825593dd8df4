# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Container merge pass.

Collapses nested structural wrappers (div in section in main ...) so the
snapshot keeps the content but loses redundant nesting.

Cadence: with ``interval = max(round(height * min(1, k)), 1)`` a container
at depth d is left in place when ``(d - 1) % interval == 0`` and merged
with its parent otherwise. k = 0 gives interval 1, where every depth is a
skip point and nothing merges; larger k spaces the skip points further
apart.

Direction: the container with the higher semantic priority survives.
  upward    parent priority >= child priority; the child's children move
            into the parent at the child's position, the child goes away
  downward  the child takes over the parent's slot; the parent's other
            children move into the child around it, the parent goes away

Depths are the ones computed before any merge; a downward-merged child
inherits its parent's depth.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from domsnap.dom import Document, NodeKind
from domsnap.ground_truth import Category, GroundTruth
from domsnap.reduction import ReductionContext
from domsnap.reduction.scope import preserve_scope

logger = logging.getLogger(__name__)


@dataclass
class MergeStats:
    interval: int = 1
    upward: int = 0
    downward: int = 0
    skipped: int = 0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def merge_interval(tree_height: int, k: float) -> int:
    return max(round_half_up(tree_height * min(1.0, k)), 1)


def is_skip_depth(depth: int, interval: int) -> bool:
    return (depth - 1) % interval == 0


def union_attributes(target: dict[str, str], source: dict[str, str]) -> dict[str, str]:
    """Target values win on conflicts; source-only names are appended."""
    merged = dict(target)
    for name, value in source.items():
        merged.setdefault(name, value)
    return merged


def _merge_upward(doc: Document, target: int, source: int) -> None:
    for child in list(doc[source].children):
        doc.insert_before(target, child, source)
    doc.detach(source)


def _merge_downward(doc: Document, target: int, source: int) -> None:
    siblings = list(doc[source].children)
    pivot = siblings.index(target)
    for offset, sibling in enumerate(siblings[:pivot]):
        doc.insert_at(target, offset, sibling)
    for sibling in siblings[pivot + 1 :]:
        doc.append_child(target, sibling)

    doc[target].depth = doc[source].depth
    grandparent = doc[source].parent
    # The root has no parent and stays in place
    if grandparent is not None:
        doc.insert_before(grandparent, target, source)
        doc.detach(source)


def merge_pair(doc: Document, ground_truth: GroundTruth, parent: int, child: int) -> bool:
    """Merge ``child`` with its container ``parent``. Returns True for upward."""
    upward = ground_truth.container_priority(doc[parent].tag) >= ground_truth.container_priority(doc[child].tag)
    target, source = (parent, child) if upward else (child, parent)
    doc[target].attrs = union_attributes(doc[target].attrs, doc[source].attrs)
    if upward:
        _merge_upward(doc, target, source)
    else:
        _merge_downward(doc, target, source)
    return upward


def merge_containers(ctx: ReductionContext, k: float, tree_height: int) -> MergeStats:
    doc, gt = ctx.doc, ctx.ground_truth
    scope = preserve_scope(doc, ctx.preserve_attribute)
    stats = MergeStats(interval=merge_interval(tree_height, k))

    # Collected up front: a merge only ever removes the node being visited
    # or an ancestor already visited, so later entries stay attached.
    for nid in doc.descendants(doc.root, NodeKind.ELEMENT):
        node = doc[nid]
        if nid in scope or not gt.is_category(Category.CONTAINER, node.tag):
            continue
        parent = node.parent
        if parent is None or parent in scope or not gt.is_category(Category.CONTAINER, doc[parent].tag):
            continue
        if is_skip_depth(node.depth, stats.interval):
            stats.skipped += 1
            continue
        if merge_pair(doc, gt, parent, nid):
            stats.upward += 1
        else:
            stats.downward += 1

    logger.debug(
        "Container merge k=%s interval=%d: %d upward, %d downward, %d skipped",
        k,
        stats.interval,
        stats.upward,
        stats.downward,
        stats.skipped,
    )
    return stats
