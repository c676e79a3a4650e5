"""Context Budgeter - Decide which history turns fit the context window.

This module handles history budgeting for every generation call:
- Estimate the system instruction and current prompt (informational)
- Keep the most recent turns that fit the history ceiling
- Report whether older turns were dropped

The system and prompt ceilings are fixed, independent allocations. They are
not subtracted from the history ceiling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from ..session import Turn
from .budget import TokenBudget
from .estimator import estimate, estimate_prompt, estimate_turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetedContext:
    """Result of one budgeting pass.

    Attributes:
        included_history: Most recent contiguous turns that fit, oldest first
        truncated: True if any older turn was left out
        dropped: Number of turns left out
        history_tokens: Estimated tokens of the included turns
        system_tokens: Estimated tokens of the system instruction
        prompt_tokens: Estimated tokens of the current prompt
    """

    included_history: tuple[Turn, ...]
    truncated: bool
    dropped: int = 0
    history_tokens: int = 0
    system_tokens: int = 0
    prompt_tokens: int = 0

    def __iter__(self) -> Iterator:
        # Unpacks as (included_history, truncated)
        return iter((self.included_history, self.truncated))


class ContextBudgeter:
    """Selects the history that accompanies each prompt.

    Example:
        budgeter = ContextBudgeter(history_budget=2048)
        included, truncated = budgeter.build_context(system, session.turns, prompt)
    """

    def __init__(self, system_budget: int = 500, history_budget: int = 2048):
        """Initialize budgeter.

        Args:
            system_budget: Tokens allowed for the system instruction (not enforced)
            history_budget: Tokens allowed for included history
        """
        self.system_budget = system_budget
        self.history_budget = history_budget

    @classmethod
    def from_budget(cls, budget: TokenBudget) -> ContextBudgeter:
        return cls(system_budget=budget.system, history_budget=budget.history)

    def build_context(
        self,
        system: Optional[str],
        history: Sequence[Turn],
        current_prompt: str,
    ) -> BudgetedContext:
        """Fit history to the history budget (keeps most recent).

        Walks from the newest turn to the oldest and stops at the first turn
        that does not fit. A turn is included whole or not at all.

        Args:
            system: System instruction, if any
            history: Full conversation history, oldest first
            current_prompt: Prompt for this call

        Returns:
            BudgetedContext with the included suffix of history
        """
        system_tokens = estimate(system)
        prompt_tokens = estimate(current_prompt)

        result: list[Turn] = []
        history_tokens = 0

        # Process from most recent to oldest
        for turn in reversed(history):
            turn_tokens = estimate_turn(turn)
            if history_tokens + turn_tokens <= self.history_budget:
                result.insert(0, turn)
                history_tokens += turn_tokens
            else:
                break

        dropped = len(history) - len(result)
        logger.debug(
            "[aicli.context] system=%d/%d prompt=%d history=%d/%d included=%d dropped=%d",
            system_tokens,
            self.system_budget,
            prompt_tokens,
            history_tokens,
            self.history_budget,
            len(result),
            dropped,
        )

        return BudgetedContext(
            included_history=tuple(result),
            truncated=len(result) < len(history),
            dropped=dropped,
            history_tokens=history_tokens,
            system_tokens=system_tokens,
            prompt_tokens=prompt_tokens,
        )

    def estimate_total(
        self,
        system: Optional[str],
        history: Sequence[Turn],
        current_prompt: str,
    ) -> int:
        """Estimate total tokens in the context."""
        return estimate_prompt(system, history, current_prompt)


__all__ = ["BudgetedContext", "ContextBudgeter"]
