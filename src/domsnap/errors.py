# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DomSnap exception hierarchy.

All DomSnap-specific errors inherit from DomSnapError, allowing callers
to catch the base class for any snapshot failure or specific subclasses
for targeted handling.
"""

from __future__ import annotations


class DomSnapError(Exception):
    """Base exception for all DomSnap errors."""


class InvalidParameterError(DomSnapError, ValueError):
    """A reduction parameter (k, l, m) is outside [0, 1]."""

    def __init__(self, message: str, *, name: str = "", value: float | None = None) -> None:
        super().__init__(message)
        self.name = name
        self.value = value


class DocumentResolutionError(DomSnapError, LookupError):
    """No traversable document root could be resolved from the input."""


class BudgetExceededError(DomSnapError, ValueError):
    """Adaptive search ran out of attempts before meeting the token budget."""

    def __init__(
        self,
        message: str,
        *,
        max_tokens: int = 0,
        attempts: list | None = None,
    ) -> None:
        super().__init__(message)
        self.max_tokens = max_tokens
        self.attempts = attempts or []
