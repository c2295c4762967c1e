"""
tests/conftest.py

Keeps every test independent of the developer's environment: TBUCK_*
variables are cleared, the working directory holds no .env file, and the
cached Settings instance is dropped.
"""

from __future__ import annotations

import os

import pytest

from tbuck import config


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.upper().startswith("TBUCK_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_settings", None)
    yield
