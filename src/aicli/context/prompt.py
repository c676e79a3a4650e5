"""Prompt assembly from budgeted history."""

from __future__ import annotations

from typing import Iterable

from ..session import Turn


def render_prompt(included_history: Iterable[Turn], current_prompt: str) -> str:
    """Build the literal text sent to the backend.

    Each included turn becomes ``User: ...`` / ``Assistant: ...`` segments,
    followed by the new prompt and an open ``Assistant:`` cue.
    """
    parts = [
        f"User: {turn.user}\n\nAssistant: {turn.assistant}\n\n" for turn in included_history
    ]
    parts.append(f"User: {current_prompt}\n\nAssistant:")
    return "".join(parts)


def truncation_notice(dropped: int) -> str:
    return f"[Truncated {dropped} older message(s) due to context limit]"


__all__ = ["render_prompt", "truncation_notice"]
