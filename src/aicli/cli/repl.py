"""Interactive REPL - Multi-turn conversation under a fixed context budget.

Every turn goes through the context budgeter: the full history stays in the
session (and in the saved transcript), but only the most recent turns that fit
the history ceiling are sent to the backend.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..context import (
    ContextBudgeter,
    TokenBudget,
    estimate,
    render_prompt,
    truncation_notice,
)
from ..errors import CLIError
from ..llm import GenerationOptions, LLMProvider
from ..session import ConversationSession, TranscriptStore
from .ui import Colors, print_divider, print_header, print_help, print_history

logger = logging.getLogger(__name__)


class ReplSession:
    """Interactive chat loop over one conversation session."""

    def __init__(
        self,
        provider: LLMProvider,
        budget: Optional[TokenBudget] = None,
        system: Optional[str] = None,
        verbose: bool = False,
        transcript: Optional[TranscriptStore] = None,
        options: Optional[GenerationOptions] = None,
        session: Optional[ConversationSession] = None,
        input_fn: Callable[[str], str] = input,
    ):
        self.provider = provider
        self.budget = budget or TokenBudget()
        self.budgeter = ContextBudgeter.from_budget(self.budget)
        self.system = system
        self.verbose = verbose
        self.transcript = transcript
        self.options = options
        self.session = session or ConversationSession(system=system)
        self.input_fn = input_fn

    def _save(self, announce: bool) -> None:
        if self.transcript is None:
            return
        try:
            self.transcript.save(self.session.turns)
        except OSError as e:
            print(f"{Colors.YELLOW}⚠️  Failed to save session: {e}{Colors.RESET}")
            return
        if announce:
            print(f"{Colors.DIM}💾 Session saved to {self.transcript.path}{Colors.RESET}")

    def _print_tokens(self) -> None:
        turns = self.session.turns
        context = self.budgeter.build_context(self.system, turns, "")
        total = self.budgeter.estimate_total(self.system, turns, "")
        print(f"\n{Colors.CYAN}Estimated token usage:{Colors.RESET}")
        print(f"  System:  {context.system_tokens} / {self.budget.system}")
        print(
            f"  History: {context.history_tokens} / {self.budget.history} "
            f"({len(context.included_history)} of {len(turns)} turn(s) fit)"
        )
        print(f"  Full transcript: {total} / {self.budget.total}\n")

    def _handle_command(self, user_input: str) -> bool:
        """Run a slash command. Returns False when the REPL should exit."""
        cmd = user_input.lower().split()[0]

        if cmd in ("/quit", "/exit", "/q"):
            return False
        if cmd == "/help":
            print_help()
        elif cmd == "/clear":
            self.session.clear()
            print(f"{Colors.GREEN}✅ Conversation cleared.{Colors.RESET}\n")
        elif cmd == "/history":
            print_history(self.session.turns)
        elif cmd == "/tokens":
            self._print_tokens()
        else:
            print(
                f"{Colors.RED}Unknown command: {cmd}. "
                f"Type /help for available commands.{Colors.RESET}\n"
            )
        return True

    async def turn(self, user_input: str) -> Optional[str]:
        """Send one message with budgeted history and record the reply.

        Returns:
            The assistant reply, or None if the turn failed
        """
        prompt_tokens = estimate(user_input)
        limit = self.budget.prompt_limit(self.system)
        if prompt_tokens > limit:
            print(
                f"{Colors.RED}⚠️  Error: Message too long (~{prompt_tokens} tokens, "
                f"limit {limit}). Please shorten it.{Colors.RESET}"
            )
            return None

        context = self.budgeter.build_context(self.system, self.session.turns, user_input)
        if context.truncated and self.verbose:
            print(f"{Colors.DIM}ℹ️  {truncation_notice(context.dropped)}{Colors.RESET}")

        full_prompt = render_prompt(context.included_history, user_input)

        print(f"{Colors.BRIGHT_GREEN}AI:{Colors.RESET} ", end="", flush=True)
        parts: list[str] = []
        try:
            async for chunk in self.provider.generate_stream(
                full_prompt, system=self.system, options=self.options
            ):
                parts.append(chunk)
                print(chunk, end="", flush=True)
            print()
        except CLIError as e:
            print(f"\n{Colors.YELLOW}⚠️  Error: {e.message}{Colors.RESET}")
            logger.debug("[aicli.repl] Turn failed with exit code %d", e.exit_code)
            return None

        reply = "".join(parts)
        self.session.add_turn(user_input, reply)
        self._save(announce=self.verbose)
        return reply

    async def run(self) -> int:
        """Run the loop until EOF or /quit."""
        print_header(self.system)

        while True:
            try:
                user_input = self.input_fn(
                    f"{Colors.BRIGHT_BLUE}{Colors.BOLD}You:{Colors.RESET} "
                ).strip()
            except EOFError:
                print(f"\n{Colors.CYAN}Exiting REPL...{Colors.RESET}")
                break
            except KeyboardInterrupt:
                print(f"\n{Colors.YELLOW}Use /quit or Ctrl+D to exit{Colors.RESET}")
                continue

            if not user_input:
                continue

            if user_input.startswith("/"):
                if not self._handle_command(user_input):
                    break
                continue

            await self.turn(user_input)
            print()

        if self.transcript is not None:
            self._save(announce=True)
        print_divider()
        return 0


__all__ = ["ReplSession"]
