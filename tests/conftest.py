"""Test fixtures and configuration for ai-cli tests.

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures
    ├── test_context.py      # Token estimator, budgets, history selection
    ├── test_session.py      # Conversation session and JSONL transcripts
    ├── test_config.py       # aicli.toml loading
    ├── test_errors.py       # Exit code table
    └── unit/                # Collaborators, backend mocked
        ├── test_llm_provider.py
        ├── test_availability.py
        ├── test_cli.py
        ├── test_output.py
        ├── test_repl.py
        └── test_tracing.py

Running tests:
    pytest -v
"""

from __future__ import annotations

from typing import Callable, Iterable
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def no_user_config(monkeypatch, tmp_path):
    """Point the per-user config file somewhere empty."""
    monkeypatch.setattr("aicli.config.user_config_path", lambda: tmp_path / "none" / "aicli.toml")


@pytest.fixture
def make_input() -> Callable[[Iterable[str]], Callable[[str], str]]:
    """Build an input() replacement that raises EOFError when exhausted."""

    def factory(lines: Iterable[str]) -> Callable[[str], str]:
        it = iter(lines)

        def fake_input(prompt: str = "") -> str:
            try:
                return next(it)
            except StopIteration:
                raise EOFError from None

        return fake_input

    return factory


@pytest.fixture
def streaming_provider():
    """Provider double whose generate_stream yields fixed chunks and records prompts."""

    def factory(chunks=("ok",), error: Exception | None = None):
        provider = MagicMock()
        provider.prompts = []

        async def generate_stream(prompt, *, system=None, options=None):
            provider.prompts.append(prompt)
            if error is not None:
                raise error
            for chunk in chunks:
                yield chunk

        provider.generate_stream = generate_stream
        return provider

    return factory
