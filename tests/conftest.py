# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import domsnap  # noqa: F401
except ImportError:
    raise ImportError("domsnap is not installed. Run: pip install -e '.[dev]'") from None

import os
from pathlib import Path

import lxml.html
import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep DOMSNAP_* variables from the outer shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("DOMSNAP_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixture_path():
    def _path(name: str) -> Path:
        return FIXTURES_DIR / name

    return _path


@pytest.fixture
def pizza_body():
    """<body> of the small restaurant fixture page."""
    return lxml.html.parse(str(FIXTURES_DIR / "pizza.html")).getroot().body


@pytest.fixture
def agents_body():
    """<body> of the larger article fixture page."""
    return lxml.html.parse(str(FIXTURES_DIR / "agents.html")).getroot().body
