"""LLM module - Direct HTTP calls to the generation backend.

- LLMProvider: Backend client (complete and streaming generation)
- LLMConfig / GenerationOptions: Connection settings and per-call overrides
- LLMResponse: Result of a complete generation
"""

from .config import GenerationOptions, LLMConfig
from .provider import LLMProvider, categorize_error
from .types import LLMResponse

__all__ = [
    "LLMProvider",
    "LLMConfig",
    "GenerationOptions",
    "LLMResponse",
    "categorize_error",
]
