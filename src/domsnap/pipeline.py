# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Snapshot pipeline orchestration.

Flow:
  input tree (lxml element / ElementTree / Document)
    → private arena copy (input never mutated)
    → unique ids (optional, document order of the input)
    → preparation (comments, script/style/link, depth annotation)
    → text compression (l)
    → element dispatch (markdown / pass-through / unknown removal)
    → container merge (k)
    → attribute filter (m)
    → assembly + size metadata
    → Snapshot
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

import structlog
from lxml import etree

from domsnap import Snapshot
from domsnap.dom import Document
from domsnap.errors import DocumentResolutionError
from domsnap.ground_truth import DEFAULT_GROUND_TRUTH, GroundTruth
from domsnap.markdown import MarkdownConverter
from domsnap.options import SnapshotOptions, resolve_options
from domsnap.pipeline_timer import PipelineTimer
from domsnap.reduction import (
    MarkdownConverterLike,
    ReductionContext,
    TextRankerLike,
    validate_parameters,
)
from domsnap.reduction.attributes import assign_unique_ids, filter_attributes
from domsnap.reduction.content import reduce_elements
from domsnap.reduction.merge import merge_containers
from domsnap.reduction.preprocessor import prepare
from domsnap.reduction.text import compress_text
from domsnap.serializer import assemble_snapshot
from domsnap.textrank import TextRanker

logger = logging.getLogger(__name__)


def load_document(source: Any) -> Document:
    """Resolve the traversable root of ``source`` into a fresh arena.

    Accepts an lxml element, an lxml ElementTree (its root element is
    used) or an existing Document (copied).
    """
    if isinstance(source, Document):
        if source.root < 0:
            raise DocumentResolutionError("Document has no root element")
        return source.clone()
    if isinstance(source, etree._ElementTree):
        root = source.getroot()
        if root is None:
            raise DocumentResolutionError("ElementTree has no root element")
        source = root
    if not isinstance(source, etree._Element) or not isinstance(source.tag, str):
        raise DocumentResolutionError(
            f"Cannot resolve a document root from {type(source).__name__}; "
            "pass an element or tree parsed with lxml.html"
        )
    return Document.from_lxml(source)


def transform(
    root: Any,
    k: float,
    l: float,  # noqa: E741
    m: float,
    options: SnapshotOptions | dict | None = None,
    *,
    ground_truth: GroundTruth | None = None,
    markdown_converter: MarkdownConverterLike | None = None,
    text_ranker: TextRankerLike | None = None,
) -> Snapshot:
    """Reduce ``root`` to a snapshot under parameters k, l, m.

    Args:
        root: lxml element, ElementTree or Document; never modified
        k: Container merge aggressiveness in [0, 1], or LINEARIZE
        l: Text compression aggressiveness in [0, 1]
        m: Attribute retention threshold in [0, 1]
        options: SnapshotOptions, a dict of its fields, or None
        ground_truth: Classification tables (default tables if None)
        markdown_converter: Content element converter
        text_ranker: Text node compressor

    Returns:
        Snapshot with the serialized markup, size metadata and per-stage timings

    Raises:
        InvalidParameterError: k, l or m out of range (before any work)
        DocumentResolutionError: no element root in ``root``
    """
    validate_parameters(k, l, m)
    opts = resolve_options(options)
    with structlog.contextvars.bound_contextvars(k=k, l=l, m=m):
        with PipelineTimer() as timer:
            timer.stage("resolve")
            doc = load_document(root)
            original_size = len(doc.outer_html(doc.root))
            ctx = ReductionContext(
                doc=doc,
                ground_truth=ground_truth or DEFAULT_GROUND_TRUTH,
                options=opts,
                markdown_converter=markdown_converter or MarkdownConverter(),
                text_ranker=text_ranker or TextRanker(),
            )

            if opts.assign_unique_ids:
                timer.stage("unique_ids")
                assign_unique_ids(ctx)

            timer.stage("prepare")
            tree_height = prepare(doc).tree_height

            timer.stage("text")
            compress_text(ctx, l)

            timer.stage("elements")
            reduce_elements(ctx)

            timer.stage("containers")
            merge_containers(ctx, k, tree_height)

            timer.stage("attributes")
            filter_attributes(ctx, m)

            timer.stage("assemble")
            snapshot = assemble_snapshot(doc, k=k, original_size=original_size, debug=opts.debug)

        stage_ms = timer.elapsed_per_stage()
        logger.info(
            "Snapshot: %d → %d chars (ratio %.3f, ~%d tokens) in %.1fms",
            snapshot.meta.original_size,
            snapshot.meta.snapshot_size,
            snapshot.meta.size_ratio,
            snapshot.meta.estimated_tokens,
            timer.total_ms,
        )
        logger.debug("Stage timings (ms): %s", stage_ms)
    return replace(snapshot, stage_ms=stage_ms)
