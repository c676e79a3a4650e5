"""LLM Configuration - Settings for the generation backend.

This module defines configuration for the backend API connection and the
per-call generation options.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class LLMConfig:
    """Configuration for an LLM provider.

    Attributes:
        base_url: API base URL (e.g., "http://localhost:8000/v1")
        model: Model name to use
        api_key: API key for authentication (optional for local models)
        temperature: Sampling temperature (0.0-2.0)
        max_tokens: Maximum tokens to generate (None lets the backend decide)
        timeout_ms: Request timeout in milliseconds
        context_window: Hard context limit of the model, in tokens
    """

    base_url: str
    model: str
    api_key: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    timeout_ms: int = 60000
    context_window: int = 4096


@dataclass
class GenerationOptions:
    """Per-call overrides.

    Attributes:
        temperature: Override the configured temperature
        max_tokens: Override the configured response limit
        greedy: Deterministic sampling (temperature 0)
    """

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    greedy: bool = False


__all__ = ["LLMConfig", "GenerationOptions"]
