"""Context budgeting module.

Decides, for every generation call, which parts of the conversation are sent
to a backend with a small fixed context window:

- **estimator.py**: Character-based token estimates
- **budget.py**: Token budget allocation and startup validation
- **window.py**: History selection under the history ceiling
- **prompt.py**: Prompt text assembly from the selected history
"""

from .budget import MAX_CONTEXT_TOKENS, TokenBudget
from .estimator import CHARS_PER_TOKEN, estimate, estimate_prompt, estimate_turn
from .prompt import render_prompt, truncation_notice
from .window import BudgetedContext, ContextBudgeter

__all__ = [
    # Estimator
    "CHARS_PER_TOKEN",
    "estimate",
    "estimate_turn",
    "estimate_prompt",
    # Budget
    "MAX_CONTEXT_TOKENS",
    "TokenBudget",
    # Window
    "BudgetedContext",
    "ContextBudgeter",
    # Prompt
    "render_prompt",
    "truncation_notice",
]
