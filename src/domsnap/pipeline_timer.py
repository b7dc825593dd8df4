# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-stage wall-clock timing of a transform run.

Stages are contiguous: starting one ends the previous. Usable as a context
manager, which finalizes on exit whether or not the block raised.
"""

from __future__ import annotations

import time


def _ms(ns: int) -> float:
    return round(ns / 1e6, 1)


class PipelineTimer:
    """Record stage transitions for latency reporting."""

    __slots__ = ("_marks", "_start_ns", "_end_ns")

    def __init__(self) -> None:
        self._marks: list[tuple[str, int]] = []
        self._start_ns: int = time.perf_counter_ns()
        self._end_ns: int | None = None

    def __enter__(self) -> PipelineTimer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.finalize()

    def stage(self, name: str) -> None:
        """End the running stage (if any) and start ``name``."""
        self._marks.append((name, time.perf_counter_ns()))

    def finalize(self) -> None:
        """Close the running stage. Later calls keep the first end time."""
        if self._end_ns is None and self._marks:
            self._end_ns = time.perf_counter_ns()

    @property
    def current_stage(self) -> str | None:
        if self._end_ns is not None or not self._marks:
            return None
        return self._marks[-1][0]

    @property
    def total_ms(self) -> float:
        end = self._end_ns if self._end_ns is not None else time.perf_counter_ns()
        return _ms(end - self._start_ns)

    def elapsed_per_stage(self) -> dict[str, float]:
        """{stage: ms} in stage order; a still-running stage counts up to now."""
        if not self._marks:
            return {}
        end = self._end_ns if self._end_ns is not None else time.perf_counter_ns()
        bounds = [ns for _, ns in self._marks[1:]] + [end]
        return {name: _ms(stop - start) for (name, start), stop in zip(self._marks, bounds, strict=True)}
