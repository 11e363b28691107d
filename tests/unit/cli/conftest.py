"""Fixtures for CLI tests."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def plain_cli_output(monkeypatch):
    """Keep Rich from styling help text so assertions see plain output."""
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.setenv("TERM", "dumb")
