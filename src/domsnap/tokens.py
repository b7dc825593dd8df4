# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Token measurement.

Budgets are checked against ``estimate_tokens`` (~4 chars/token), which is
cheap enough to run on every adaptive attempt and independent of any
tokenizer download. ``count_tokens`` gives the exact cl100k_base count for
reporting.
"""

from __future__ import annotations

import math
from functools import lru_cache

import tiktoken

CHARS_PER_TOKEN = 4


def estimate_tokens(size: int | str) -> int:
    """Approximate token count of a string (or of a character count).

    Rounds half up, so 2 chars → 1 token and 6 chars → 2 tokens.
    """
    chars = len(size) if isinstance(size, str) else size
    return math.floor(chars / CHARS_PER_TOKEN + 0.5)


@lru_cache(maxsize=1)
def _get_encoder() -> tiktoken.Encoding:
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Count tokens using cl100k_base (GPT-4 / Claude tokenizer approximation)."""
    return len(_get_encoder().encode(text))
