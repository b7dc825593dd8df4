# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Attribute passes: unique id assignment and score-based filtering."""

from __future__ import annotations

import logging

from domsnap.dom import NodeKind
from domsnap.ground_truth import Category
from domsnap.options import UNIQUE_ID_ATTRIBUTE
from domsnap.reduction import ReductionContext
from domsnap.reduction.scope import has_preserve_marker, preserve_scope

logger = logging.getLogger(__name__)


def assign_unique_ids(ctx: ReductionContext) -> int:
    """Number qualifying elements 0, 1, 2, ... in document order.

    Containers, interactive elements and elements carrying the preserve
    marker themselves qualify. Runs before any reduction, so ids follow
    the order of the input document. Returns the number assigned.
    """
    doc, gt = ctx.doc, ctx.ground_truth
    next_uid = 0
    for nid in doc.descendants(doc.root, NodeKind.ELEMENT):
        node = doc[nid]
        category = gt.category(node.tag)
        if (
            category is Category.CONTAINER
            or category is Category.INTERACTIVE
            or has_preserve_marker(doc, nid, ctx.preserve_attribute)
        ):
            node.attrs[UNIQUE_ID_ATTRIBUTE] = str(next_uid)
            next_uid += 1
    logger.debug("Assigned %d unique ids", next_uid)
    return next_uid


def filter_attributes(ctx: ReductionContext, m: float) -> int:
    """Drop attributes scoring below ``m``; returns how many were removed.

    The preserve marker itself is never dropped. Preserved elements and
    the root keep all their attributes.
    """
    doc, gt = ctx.doc, ctx.ground_truth
    marker = ctx.preserve_attribute
    scope = preserve_scope(doc, marker)
    removed = 0
    for nid in doc.descendants(doc.root, NodeKind.ELEMENT):
        if nid in scope:
            continue
        node = doc[nid]
        doomed = [name for name in node.attrs if name != marker and gt.attribute_score(name) < m]
        for name in doomed:
            del node.attrs[name]
        removed += len(doomed)
    logger.debug("Attribute filter m=%.3f removed %d attributes", m, removed)
    return removed
