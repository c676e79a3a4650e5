"""Command-line entry point for the ai CLI."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .. import __version__
from ..availability import check_availability
from ..config import ProjectConfig, load_project_config
from ..context import ContextBudgeter, TokenBudget, estimate, render_prompt, truncation_notice
from ..errors import CLIError, ContextExceededError, ExitCode, InvalidInputError
from ..llm import GenerationOptions, LLMProvider
from ..session import ConversationSession, TranscriptStore
from ..tracing import init_telemetry, shutdown_telemetry, tracing_requested
from .input import resolve_input
from .output import OutputFormat, OutputRenderer
from .repl import ReplSession

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Route aicli log records to stderr (WARNING, or DEBUG when verbose)."""
    root = logging.getLogger("aicli")
    if not any(getattr(h, "_aicli", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        handler._aicli = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ai",
        description="Command-line interface to a small-context text generation model",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    g = p.add_argument_group("input")
    g.add_argument("-p", "--prompt", help="Prompt text")
    g.add_argument("--stdin", action="store_true", help="Read prompt from stdin")

    g = p.add_argument_group("output")
    g.add_argument("--format", default="text", help="Output format (text|json)")
    g.add_argument(
        "--no-stream", action="store_true", help="Disable streaming output (buffer response)"
    )
    g.add_argument("-q", "--quiet", action="store_true", help="Only print model output")
    g.add_argument("-v", "--verbose", action="store_true", help="Show detailed information")

    g = p.add_argument_group("generation")
    g.add_argument("--max-tokens", type=int, help="Maximum response tokens")
    g.add_argument("--temperature", type=float, help="Temperature (0.0-2.0)")
    g.add_argument("--greedy", action="store_true", help="Use greedy sampling (deterministic)")
    g.add_argument("--provider", help="Provider name from aicli.toml or a preset (local|openai|deepseek)")
    g.add_argument("--model", help="Override the provider's model")
    g.add_argument("--base-url", help="Override the provider's API base URL")

    g = p.add_argument_group("session")
    g.add_argument("--system", help="System instruction")
    g.add_argument("--repl", action="store_true", help="Interactive conversation mode")
    g.add_argument("--save-session", metavar="PATH", help="Save the transcript as JSONL")
    g.add_argument("--load-session", metavar="PATH", help="Restore history from a JSONL transcript")

    g = p.add_argument_group("context budget (estimated tokens)")
    g.add_argument("--history-budget", type=int, help="History ceiling (default: 2048)")
    g.add_argument("--system-budget", type=int, help="System instruction ceiling (default: 500)")
    g.add_argument("--prompt-budget", type=int, help="Prompt ceiling (default: 1000)")
    g.add_argument("--response-budget", type=int, help="Response headroom (default: 548)")

    g = p.add_argument_group("operational")
    g.add_argument("--timeout", type=int, help="Generation timeout in seconds (default: 60)")
    g.add_argument("--skip-check", action="store_true", help="Skip the backend availability check")
    g.add_argument("--trace", action="store_true", help="Export OpenTelemetry traces (OTLP)")
    return p


def validate_args(args: argparse.Namespace) -> None:
    """Reject flag combinations that cannot work together.

    Raises:
        InvalidInputError: On the first invalid combination
    """
    if args.prompt is not None and args.stdin:
        raise InvalidInputError("Cannot specify both --prompt and --stdin")
    if args.temperature is not None and not (0.0 <= args.temperature <= 2.0):
        raise InvalidInputError("Temperature must be between 0.0 and 2.0")
    if args.format not in ("text", "json"):
        raise InvalidInputError("Format must be 'text' or 'json'")
    if args.format == "json" and args.repl:
        raise InvalidInputError("JSON format not supported in REPL mode")
    if args.timeout is not None and args.timeout <= 0:
        raise InvalidInputError("Timeout must be a positive number of seconds")


def build_budget(
    args: argparse.Namespace,
    config: ProjectConfig,
    context_window: Optional[int] = None,
) -> TokenBudget:
    """Resolve budget ceilings (flags over aicli.toml over defaults) and validate.

    Without a [context] total, the hard limit is the provider's context_window.
    """
    budget = config.budget
    if context_window and not config.budget_total_set:
        budget = budget.override(total=context_window)
    budget = budget.override(
        system=args.system_budget,
        history=args.history_budget,
        prompt=args.prompt_budget,
        response=args.response_budget,
    )
    return budget.validate()


def build_provider(args: argparse.Namespace, config: ProjectConfig) -> LLMProvider:
    name = args.provider or config.cli.provider
    try:
        provider = LLMProvider.from_config(name, config)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e

    overrides = {}
    if args.model:
        overrides["model"] = args.model
    if args.base_url:
        overrides["base_url"] = args.base_url
    # Unset in both places: keep the provider's own timeout
    timeout_sec = args.timeout or config.cli.timeout_sec
    if timeout_sec:
        overrides["timeout_ms"] = timeout_sec * 1000
    if overrides:
        provider = LLMProvider(replace(provider.config, **overrides))
    return provider


def resume_path(args: argparse.Namespace) -> Optional[str]:
    """Transcript to restore history from.

    --load-session wins. Otherwise an existing --save-session file is
    continued, so saving never discards earlier turns.
    """
    if args.load_session:
        return args.load_session
    if args.save_session and Path(args.save_session).expanduser().exists():
        logger.info("[aicli] Continuing existing transcript %s", args.save_session)
        return args.save_session
    return None


def load_session(path: Optional[str], system: Optional[str]) -> ConversationSession:
    if not path:
        return ConversationSession(system=system)
    try:
        turns = TranscriptStore(path).load()
    except FileNotFoundError as e:
        raise InvalidInputError(f"Session file not found: {path}") from e
    except OSError as e:
        raise InvalidInputError(f"Cannot read session file {path}: {e}") from e
    logger.info("[aicli] Restored %d turn(s) from %s", len(turns), path)
    return ConversationSession(system=system, turns=turns)


async def run_single_turn(
    args: argparse.Namespace,
    provider: LLMProvider,
    budget: TokenBudget,
    renderer: OutputRenderer,
    system: Optional[str],
    options: GenerationOptions,
) -> None:
    prompt = resolve_input(args.prompt, args.stdin)
    if not prompt.strip():
        raise InvalidInputError("Empty prompt")

    prompt_tokens = estimate(prompt)
    limit = budget.prompt_limit(system)
    if prompt_tokens > limit:
        raise ContextExceededError(
            f"Prompt too long: ~{prompt_tokens} estimated tokens exceeds the "
            f"{limit}-token limit left after system instruction and response headroom"
        )

    session = load_session(resume_path(args), system)
    context = ContextBudgeter.from_budget(budget).build_context(system, session.turns, prompt)
    if context.truncated:
        renderer.print_notice(truncation_notice(context.dropped))
    full_prompt = render_prompt(context.included_history, prompt) if session.turns else prompt

    if args.format == "text" and not args.no_stream:
        content, _ = await renderer.print_streaming(
            provider.generate_stream(full_prompt, system=system, options=options)
        )
    else:
        response = await provider.generate(full_prompt, system=system, options=options)
        renderer.print_response(response, prompt=prompt, system=system)
        content = response.content

    if args.save_session:
        session.add_turn(prompt, content)
        TranscriptStore(args.save_session).save(session.turns)


async def run(args: argparse.Namespace) -> int:
    renderer = OutputRenderer(format=args.format, quiet=args.quiet, verbose=args.verbose)

    config = load_project_config(Path.cwd())
    provider = build_provider(args, config)
    budget = build_budget(args, config, provider.config.context_window)
    if provider.config.context_window != budget.total:
        provider = LLMProvider(replace(provider.config, context_window=budget.total))
    system = args.system if args.system is not None else config.cli.system
    options = GenerationOptions(
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        greedy=args.greedy,
    )

    if not args.skip_check:
        await check_availability(provider)

    if args.repl:
        transcript = TranscriptStore(args.save_session) if args.save_session else None
        repl = ReplSession(
            provider=provider,
            budget=budget,
            system=system,
            verbose=args.verbose,
            transcript=transcript,
            options=options,
            session=load_session(resume_path(args), system),
        )
        return await repl.run()

    await run_single_turn(args, provider, budget, renderer, system, options)
    return ExitCode.SUCCESS


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose and not args.quiet)
    renderer = OutputRenderer(format=OutputFormat.TEXT, quiet=args.quiet)

    trace_enabled = tracing_requested(args.trace)
    if trace_enabled:
        init_telemetry()

    try:
        validate_args(args)
        return asyncio.run(run(args))
    except CLIError as e:
        renderer.print_error(e.message)
        return e.exit_code
    except KeyboardInterrupt:
        return ExitCode.GENERAL_ERROR
    except Exception as e:
        logger.debug("[aicli] Unhandled error", exc_info=True)
        renderer.print_error(str(e))
        return ExitCode.GENERAL_ERROR
    finally:
        if trace_enabled:
            shutdown_telemetry()


if __name__ == "__main__":
    sys.exit(main())
