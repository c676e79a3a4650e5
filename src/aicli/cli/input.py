"""Prompt input resolution: argument, then stdin, then interactive entry."""

from __future__ import annotations

import sys
from typing import Optional, TextIO


def resolve_input(
    prompt: Optional[str],
    use_stdin: bool = False,
    stream: Optional[TextIO] = None,
) -> str:
    """Resolve the prompt text for a single-turn run.

    Args:
        prompt: Prompt given on the command line
        use_stdin: Read the prompt from stdin (--stdin)
        stream: Input stream (defaults to sys.stdin)

    Returns:
        The prompt; piped input is trimmed, interactive input is kept as typed
    """
    if prompt is not None:
        return prompt

    stream = stream or sys.stdin

    if use_stdin or not stream.isatty():
        return stream.read().strip()

    # Interactive: read lines until EOF (Ctrl+D)
    print("> ", end="", flush=True)
    lines = [line.rstrip("\n") for line in stream]
    return "\n".join(lines)


__all__ = ["resolve_input"]
