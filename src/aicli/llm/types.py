"""LLM Types - Data structures for backend responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class LLMResponse:
    """Response from a non-streaming generation call.

    Attributes:
        content: Generated text content
        model: Model that generated the response
        usage: Token usage statistics reported by the backend
        finish_reason: Why generation stopped
        latency_ms: Wall-clock time of the request
    """

    content: str
    model: Optional[str] = None
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: Optional[str] = None
    latency_ms: int = 0
    raw: Optional[dict[str, Any]] = None

    @property
    def completion_tokens(self) -> Optional[int]:
        return self.usage.get("completion_tokens")


__all__ = ["LLMResponse"]
