"""Output rendering for single-turn runs (text or JSON)."""

from __future__ import annotations

import json
import sys
import time
from enum import Enum
from typing import AsyncIterator, Optional, TextIO

from ..context import estimate
from ..llm import LLMResponse


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


class OutputRenderer:
    """Writes model output and errors to the terminal.

    Attributes:
        format: Text or JSON
        quiet: Only print model output (no errors, no diagnostics)
        verbose: Append latency and token diagnostics
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.TEXT,
        quiet: bool = False,
        verbose: bool = False,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ):
        self.format = OutputFormat(format)
        self.quiet = quiet
        self.verbose = verbose
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def _print_diagnostics(self, latency_ms: int, tokens: Optional[int] = None) -> None:
        if not self.verbose or self.quiet:
            return
        self._write("\n---\n")
        self._write(f"Latency: {latency_ms}ms\n")
        if tokens is not None:
            self._write(f"Estimated tokens: {tokens}\n")

    async def print_streaming(self, chunks: AsyncIterator[str]) -> tuple[str, int]:
        """Print text deltas as they arrive.

        Returns:
            (full content, latency in ms)
        """
        start = time.perf_counter()
        parts: list[str] = []

        async for chunk in chunks:
            parts.append(chunk)
            self._write(chunk)
        self._write("\n")

        latency_ms = int((time.perf_counter() - start) * 1000)
        content = "".join(parts)
        self._print_diagnostics(latency_ms, estimate(content))
        return content, latency_ms

    def print_response(
        self,
        response: LLMResponse,
        prompt: str,
        system: Optional[str] = None,
        latency_ms: Optional[int] = None,
    ) -> None:
        latency_ms = response.latency_ms if latency_ms is None else latency_ms
        tokens = response.completion_tokens
        if tokens is None:
            tokens = estimate(response.content)

        if self.format == OutputFormat.TEXT:
            self._write(response.content + "\n")
            self._print_diagnostics(latency_ms, tokens)
            return

        document = {
            "model": response.model,
            "prompt": prompt,
            "response": response.content,
            "system": system,
            "latency_ms": latency_ms,
            "estimated_tokens": tokens,
        }
        self._write(json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n")

    def print_notice(self, message: str) -> None:
        """Informational message, shown only in verbose mode."""
        if self.verbose and not self.quiet:
            self.err.write(f"{message}\n")

    def print_error(self, message: str) -> None:
        if not self.quiet:
            self.err.write(f"Error: {message}\n")


__all__ = ["OutputFormat", "OutputRenderer"]
