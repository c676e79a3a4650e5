"""Token budget allocation for the backend's fixed context window."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Optional

from ..errors import InvalidInputError
from .estimator import estimate

# Hard context ceiling of the backend model
MAX_CONTEXT_TOKENS = 4096


@dataclass(frozen=True)
class TokenBudget:
    """Token budget allocation.

    Attributes:
        total: Hard context limit of the backend
        system: Tokens allowed for the system instruction (advisory)
        history: Tokens allowed for included conversation history (enforced)
        prompt: Tokens allowed for the current prompt (advisory)
        response: Headroom left for the model's reply
    """

    total: int = MAX_CONTEXT_TOKENS
    system: int = 500
    history: int = 2048
    prompt: int = 1000
    response: int = 548  # total - system - history - prompt

    @property
    def allocated(self) -> int:
        return self.system + self.history + self.prompt + self.response

    def override(self, **ceilings: Optional[int]) -> TokenBudget:
        """Return a copy with every non-None ceiling replaced."""
        changes = {k: v for k, v in ceilings.items() if v is not None}
        return replace(self, **changes) if changes else self

    def validate(self) -> TokenBudget:
        """Check the ceilings against each other and the hard limit.

        Called once at startup. The budgeter itself never does this.

        Raises:
            InvalidInputError: If a ceiling is not a non-negative integer or
                the allocation exceeds the hard limit
        """
        for name, value in asdict(self).items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(f"Budget '{name}' must be an integer, got {value!r}")
            if value < 0:
                raise InvalidInputError(f"Budget '{name}' must be non-negative, got {value}")
        if self.allocated > self.total:
            raise InvalidInputError(
                f"Token budgets exceed context limit: system {self.system} + history "
                f"{self.history} + prompt {self.prompt} + response {self.response} = "
                f"{self.allocated} > {self.total}"
            )
        return self

    def prompt_limit(self, system: Optional[str] = None) -> int:
        """Largest prompt estimate that still leaves room for the reply.

        Args:
            system: System instruction that will accompany the prompt

        Returns:
            total - estimate(system) - response
        """
        return self.total - estimate(system) - self.response


__all__ = ["MAX_CONTEXT_TOKENS", "TokenBudget"]
