"""ai-cli - Command-line client for small-context text generation models.

The backend only accepts a fixed number of tokens per call, so every call
goes through the context budgeter, which keeps the most recent conversation
turns that fit and reports when older ones were dropped.

Quick Start:
    ```python
    from aicli import ContextBudgeter, ConversationSession, render_prompt

    session = ConversationSession()
    session.add_turn("hi", "hello!")

    budgeter = ContextBudgeter(history_budget=2048)
    context = budgeter.build_context(None, session.turns, "what did I say?")
    prompt = render_prompt(context.included_history, "what did I say?")
    ```

Module structure:
    - context/: Token estimation, budgets, history selection
    - session: Conversation history and JSONL transcripts
    - llm/: Generation backend client (direct HTTP)
    - config: aicli.toml loading
    - errors: Error taxonomy and exit codes
    - cli/: Command line interface
"""

__version__ = "0.1.0"

from .context import (  # noqa: E402
    BudgetedContext,
    ContextBudgeter,
    TokenBudget,
    estimate,
    estimate_prompt,
    render_prompt,
)
from .errors import CLIError, ExitCode  # noqa: E402
from .session import ConversationSession, TranscriptStore, Turn  # noqa: E402

__all__ = [
    "__version__",
    "BudgetedContext",
    "ContextBudgeter",
    "TokenBudget",
    "estimate",
    "estimate_prompt",
    "render_prompt",
    "CLIError",
    "ExitCode",
    "ConversationSession",
    "TranscriptStore",
    "Turn",
]
