"""Unit tests for the interactive REPL."""

import pytest

from aicli.cli.repl import ReplSession
from aicli.context import TokenBudget
from aicli.errors import GenerationTimeoutError
from aicli.session import ConversationSession, TranscriptStore, Turn


class TestReplTurns:
    @pytest.mark.asyncio
    async def test_history_is_budgeted(self, streaming_provider, make_input, capsys):
        provider = streaming_provider()
        repl = ReplSession(
            provider,
            budget=TokenBudget(history=3),
            verbose=True,
            input_fn=make_input(["aaaa", "bbbb", "cccc"]),
        )

        assert await repl.run() == 0

        assert provider.prompts == [
            "User: aaaa\n\nAssistant:",
            "User: aaaa\n\nAssistant: ok\n\nUser: bbbb\n\nAssistant:",
            "User: bbbb\n\nAssistant: ok\n\nUser: cccc\n\nAssistant:",
        ]
        # Full history is kept even though only part of it was sent
        assert len(repl.session) == 3
        out = capsys.readouterr().out
        assert "[Truncated 1 older message(s) due to context limit]" in out
        assert "Exiting REPL..." in out

    @pytest.mark.asyncio
    async def test_truncation_notice_hidden_without_verbose(self, streaming_provider, make_input, capsys):
        repl = ReplSession(
            streaming_provider(),
            budget=TokenBudget(history=3),
            input_fn=make_input(["aaaa", "bbbb", "cccc"]),
        )
        await repl.run()
        assert "Truncated" not in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_system_passed_through(self, make_input):
        calls = []

        class Provider:
            async def generate_stream(self, prompt, *, system=None, options=None):
                calls.append(system)
                yield "ok"

        repl = ReplSession(Provider(), system="Be brief.", input_fn=make_input(["hi"]))
        await repl.run()
        assert calls == ["Be brief."]

    @pytest.mark.asyncio
    async def test_failed_turn_not_recorded(self, streaming_provider, capsys):
        repl = ReplSession(streaming_provider(error=GenerationTimeoutError()))

        assert await repl.turn("hello") is None

        assert repl.session.is_empty()
        assert "Operation timed out" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_message_too_long(self, streaming_provider, capsys):
        provider = streaming_provider()
        repl = ReplSession(provider, budget=TokenBudget(total=600, response=500))

        assert await repl.turn("x" * 4 * 200) is None

        assert provider.prompts == []
        assert "Message too long" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_restored_session_used_as_history(self, streaming_provider):
        provider = streaming_provider()
        session = ConversationSession(turns=[Turn("hi", "hello")])
        repl = ReplSession(provider, session=session)

        await repl.turn("again")

        assert provider.prompts == ["User: hi\n\nAssistant: hello\n\nUser: again\n\nAssistant:"]


class TestReplCommands:
    @pytest.mark.asyncio
    async def test_quit_stops_loop(self, streaming_provider, make_input):
        provider = streaming_provider()
        repl = ReplSession(provider, input_fn=make_input(["/quit", "never sent"]))
        assert await repl.run() == 0
        assert provider.prompts == []

    @pytest.mark.asyncio
    async def test_clear_resets_history(self, streaming_provider, make_input, capsys):
        provider = streaming_provider()
        repl = ReplSession(provider, input_fn=make_input(["first", "/clear", "second"]))

        await repl.run()

        assert provider.prompts == ["User: first\n\nAssistant:", "User: second\n\nAssistant:"]
        assert "Conversation cleared" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_history_and_tokens(self, streaming_provider, make_input, capsys):
        repl = ReplSession(
            streaming_provider(), input_fn=make_input(["hello", "/history", "/tokens", "/bogus"])
        )

        await repl.run()

        out = capsys.readouterr().out
        assert "hello" in out
        assert "Estimated token usage" in out
        assert "Unknown command: /bogus" in out

    @pytest.mark.asyncio
    async def test_blank_lines_ignored(self, streaming_provider, make_input):
        provider = streaming_provider()
        repl = ReplSession(provider, input_fn=make_input(["", "   ", "hi"]))
        await repl.run()
        assert provider.prompts == ["User: hi\n\nAssistant:"]


class TestReplTranscript:
    @pytest.mark.asyncio
    async def test_saved_after_each_turn(self, tmp_path, streaming_provider, make_input, capsys):
        path = tmp_path / "chat.jsonl"
        repl = ReplSession(
            streaming_provider(chunks=("fine",)),
            transcript=TranscriptStore(path),
            input_fn=make_input(["one", "two"]),
        )

        await repl.run()

        assert TranscriptStore(path).load() == [Turn("one", "fine"), Turn("two", "fine")]
        assert f"Session saved to {path}" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_save_failure_is_reported(self, tmp_path, streaming_provider, capsys):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        repl = ReplSession(
            streaming_provider(), transcript=TranscriptStore(blocker / "chat.jsonl")
        )

        assert await repl.turn("hi") == "ok"

        assert "Failed to save session" in capsys.readouterr().out
        assert len(repl.session) == 1
