"""Terminal UI helpers for the interactive REPL."""

from __future__ import annotations

import shutil
from typing import Optional, Sequence

from ..session import Turn


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    GRAY = "\033[90m"

    BRIGHT_GREEN = "\033[92m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_CYAN = "\033[96m"


def get_terminal_width() -> int:
    """Get terminal width, default to 80."""
    return shutil.get_terminal_size((80, 24)).columns


def print_header(system: Optional[str] = None):
    """Print the REPL welcome box."""
    width = min(get_terminal_width(), 47)
    inner = width - 2

    def row(text: str) -> str:
        return "│" + f"  {text}".ljust(inner) + "│"

    print(f"{Colors.BRIGHT_CYAN}", end="")
    print("┌" + "─" * inner + "┐")
    print(row("ai REPL Mode"))
    print(row("Type your message and press Enter"))
    print(row("Press Ctrl+D to exit, /help for commands"))
    if system:
        shown = system[:30] + ("..." if len(system) > 30 else "")
        print(row(f"System: {shown}"))
    print("└" + "─" * inner + "┘")
    print(f"{Colors.RESET}")


def print_divider(char="─", color=Colors.GRAY):
    """Print a divider line."""
    width = min(get_terminal_width(), 70)
    print(f"{color}{char * width}{Colors.RESET}")


def print_help():
    """Print REPL commands."""
    width = min(get_terminal_width(), 70)

    print(f"\n{Colors.CYAN}{'─' * width}{Colors.RESET}")
    print(f"{Colors.CYAN}{Colors.BOLD}Available Commands:{Colors.RESET}")
    print(f"  {Colors.YELLOW}/help{Colors.RESET}      - Show this help message")
    print(f"  {Colors.YELLOW}/clear{Colors.RESET}     - Clear conversation history")
    print(f"  {Colors.YELLOW}/history{Colors.RESET}   - Show conversation history")
    print(f"  {Colors.YELLOW}/tokens{Colors.RESET}    - Show estimated token usage")
    print(f"  {Colors.YELLOW}/quit{Colors.RESET}      - Exit the REPL")
    print(f"{Colors.CYAN}{'─' * width}{Colors.RESET}\n")


def print_history(turns: Sequence[Turn]):
    """Print a one-line preview of every turn."""
    if not turns:
        print(f"{Colors.DIM}No conversation history yet.{Colors.RESET}\n")
        return

    print(f"\n{Colors.CYAN}Conversation History:{Colors.RESET}")
    for i, turn in enumerate(turns, 1):
        for role, color, content in (
            ("You", Colors.BRIGHT_BLUE, turn.user),
            ("AI", Colors.BRIGHT_GREEN, turn.assistant),
        ):
            preview = content[:60] + "..." if len(content) > 60 else content
            print(f"  {Colors.DIM}[{i}]{Colors.RESET} {color}{role}:{Colors.RESET} {preview}")
    print()


__all__ = [
    "Colors",
    "get_terminal_width",
    "print_header",
    "print_divider",
    "print_help",
    "print_history",
]
