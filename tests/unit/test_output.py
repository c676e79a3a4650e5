"""Unit tests for prompt input resolution and output rendering."""

import io
import json

import pytest

from aicli.cli.input import resolve_input
from aicli.cli.output import OutputFormat, OutputRenderer
from aicli.llm import LLMResponse


class TTYInput(io.StringIO):
    def isatty(self):
        return True


class TestResolveInput:
    def test_argument_wins(self):
        assert resolve_input("from flag", use_stdin=True, stream=io.StringIO("ignored")) == "from flag"

    def test_empty_argument_is_kept(self):
        assert resolve_input("", stream=io.StringIO("ignored")) == ""

    def test_stdin_flag_trims(self):
        assert resolve_input(None, use_stdin=True, stream=io.StringIO("  hello\nworld \n\n")) == (
            "hello\nworld"
        )

    def test_piped_input_without_flag(self):
        assert resolve_input(None, stream=io.StringIO("piped\n")) == "piped"

    def test_interactive_reads_until_eof(self, capsys):
        result = resolve_input(None, stream=TTYInput("line one\nline two\n"))
        assert result == "line one\nline two"
        assert capsys.readouterr().out == "> "


class TestOutputRenderer:
    def make(self, **kwargs):
        out, err = io.StringIO(), io.StringIO()
        return OutputRenderer(out=out, err=err, **kwargs), out, err

    def test_text_response(self):
        renderer, out, _ = self.make()
        renderer.print_response(LLMResponse(content="Hi there", latency_ms=12), prompt="hi")
        assert out.getvalue() == "Hi there\n"

    def test_text_response_verbose(self):
        renderer, out, _ = self.make(verbose=True)
        response = LLMResponse(content="Hi there", latency_ms=12, usage={"completion_tokens": 3})
        renderer.print_response(response, prompt="hi")
        text = out.getvalue()
        assert "Latency: 12ms" in text
        assert "Estimated tokens: 3" in text

    def test_json_response(self):
        renderer, out, _ = self.make(format="json")
        response = LLMResponse(content="Paris", model="tiny", latency_ms=40)
        renderer.print_response(response, prompt="Capital of France?", system="Be brief.")

        document = json.loads(out.getvalue())
        assert document == {
            "estimated_tokens": 2,
            "latency_ms": 40,
            "model": "tiny",
            "prompt": "Capital of France?",
            "response": "Paris",
            "system": "Be brief.",
        }
        assert list(document) == sorted(document)

    @pytest.mark.asyncio
    async def test_print_streaming(self):
        renderer, out, _ = self.make()

        async def chunks():
            for piece in ["Hel", "lo", "!"]:
                yield piece

        content, latency_ms = await renderer.print_streaming(chunks())

        assert content == "Hello!"
        assert latency_ms >= 0
        assert out.getvalue() == "Hello!\n"

    def test_error_respects_quiet(self):
        renderer, _, err = self.make()
        renderer.print_error("boom")
        assert err.getvalue() == "Error: boom\n"

        quiet, _, quiet_err = self.make(quiet=True)
        quiet.print_error("boom")
        assert quiet_err.getvalue() == ""

    def test_notice_only_when_verbose(self):
        renderer, _, err = self.make()
        renderer.print_notice("[Truncated 1 older message(s) due to context limit]")
        assert err.getvalue() == ""

        verbose, _, verbose_err = self.make(verbose=True)
        verbose.print_notice("[Truncated 1 older message(s) due to context limit]")
        assert "Truncated 1" in verbose_err.getvalue()

    def test_format_coerced(self):
        renderer, _, _ = self.make(format="json")
        assert renderer.format is OutputFormat.JSON
