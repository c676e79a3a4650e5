"""Token Estimator - Approximate token counts from character length.

The backend's real tokenizer is not exposed, so every budget decision is made
on a fixed characters-per-token ratio. The estimate is deterministic and
cheap enough to run on every turn.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from ..session import Turn

# Roughly 4 characters per token
CHARS_PER_TOKEN = 4


def estimate(text: Optional[str]) -> int:
    """Estimate token count for text.

    Args:
        text: Input text (None counts as empty)

    Returns:
        ceil(len(text) / CHARS_PER_TOKEN), 0 for empty text
    """
    if not text:
        return 0
    return -(-len(text) // CHARS_PER_TOKEN)


def estimate_turn(turn: Turn) -> int:
    """Estimated cost of one turn (user plus assistant)."""
    return estimate(turn.user) + estimate(turn.assistant)


def estimate_prompt(
    system: Optional[str],
    history: Iterable[Turn],
    current_prompt: str,
) -> int:
    """Estimate the total tokens of a full call.

    Sums the system instruction, every user and assistant field in history,
    and the current prompt.
    """
    total = estimate(system)
    for turn in history:
        total += estimate_turn(turn)
    total += estimate(current_prompt)
    return total


__all__ = ["CHARS_PER_TOKEN", "estimate", "estimate_turn", "estimate_prompt"]
