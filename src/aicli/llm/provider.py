"""LLM Provider - Direct HTTP calls to the generation backend.

Talks to an OpenAI-compatible chat completions endpoint. The backend is
treated as an opaque generation service: it receives one assembled prompt
(plus an optional system instruction) and returns text, either in one piece
or as a server-sent event stream.

Transport failures are translated into the CLI error taxonomy here, so
callers only ever see ``CLIError`` subclasses.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import TYPE_CHECKING, AsyncIterator, Optional

import httpx
from opentelemetry import trace

from ..errors import (
    CLIError,
    ContextExceededError,
    GenerationFailedError,
    GenerationTimeoutError,
    GuardrailError,
    UnavailableError,
)
from .config import GenerationOptions, LLMConfig
from .types import LLMResponse

if TYPE_CHECKING:
    from ..config import ProjectConfig

logger = logging.getLogger(__name__)

# Get tracer for LLM operation spans
tracer = trace.get_tracer(__name__)

_CONTEXT_ERROR_MARKERS = (
    "context_length_exceeded",
    "context length",
    "context window",
    "maximum context",
    "too many tokens",
)


def _is_context_error(status_code: int, body: str) -> bool:
    if status_code not in (400, 413, 422):
        return False
    lowered = body.lower()
    return any(marker in lowered for marker in _CONTEXT_ERROR_MARKERS)


def categorize_error(error: Exception, context_window: int = 4096) -> CLIError:
    """Map a transport or HTTP failure to a CLI error.

    Args:
        error: Exception raised while talking to the backend
        context_window: Hard context limit, quoted in the message

    Returns:
        The matching CLIError subclass instance
    """
    if isinstance(error, CLIError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return GenerationTimeoutError()
    if isinstance(error, httpx.ConnectError):
        return UnavailableError(f"Cannot reach generation backend: {error}")
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        body = error.response.text
        if _is_context_error(status, body):
            return ContextExceededError(
                f"Context window exceeded ({context_window} token limit)"
            )
        return GenerationFailedError(f"Generation failed: HTTP {status}: {body}")
    return GenerationFailedError(f"Generation failed: {error}")


class LLMProvider:
    """Client for the generation backend."""

    # Pre-configured providers
    LOCAL = LLMConfig(
        base_url="http://localhost:8000/v1",
        model="qwen2.5-0.5b-instruct",
        temperature=0.7,
        timeout_ms=60000,
    )

    OPENAI = LLMConfig(
        base_url="https://api.openai.com/v1",
        model="gpt-4o-mini",
        api_key=os.getenv("OPENAI_API_KEY"),
        temperature=0.7,
        timeout_ms=60000,
    )

    DEEPSEEK = LLMConfig(
        base_url="https://api.deepseek.com/v1",
        model="deepseek-chat",
        api_key=os.getenv("DEEPSEEK_API_KEY"),
        temperature=0.7,
        timeout_ms=60000,
    )

    def __init__(self, config: Optional[LLMConfig] = None):
        """Initialize LLM provider.

        Args:
            config: LLM configuration (defaults to LOCAL)
        """
        self.config = config or self.LOCAL

    @classmethod
    def presets(cls) -> dict[str, LLMConfig]:
        return {
            "local": cls.LOCAL,
            "openai": cls.OPENAI,
            "deepseek": cls.DEEPSEEK,
        }

    @classmethod
    def from_name(cls, provider_name: str) -> LLMProvider:
        """Create provider from a preset name.

        Args:
            provider_name: One of "local", "openai", "deepseek"

        Raises:
            ValueError: If the name is not a known preset
        """
        configs = cls.presets()
        config = configs.get(provider_name.lower())
        if not config:
            raise ValueError(
                f"Unknown provider: {provider_name}. Choose from: {list(configs.keys())}"
            )
        return cls(config)

    @classmethod
    def from_config(cls, provider_name: str, project_config: ProjectConfig) -> LLMProvider:
        """Create provider from ProjectConfig.

        Loads the ``[llm.<provider_name>]`` table from aicli.toml and falls
        back to the built-in presets if it is not there.

        Example aicli.toml:
            [llm.local]
            api_base = "http://localhost:8080/v1"
            model = "phi-3-mini"
            timeout_sec = 60
        """
        if provider_name in project_config.llm_providers:
            provider_cfg = project_config.llm_providers[provider_name]
            preset = cls.presets().get(provider_name.lower(), cls.LOCAL)

            llm_config = LLMConfig(
                base_url=provider_cfg.api_base or preset.base_url,
                model=provider_cfg.model or preset.model,
                api_key=provider_cfg.api_key or preset.api_key,
                temperature=provider_cfg.temperature,
                max_tokens=provider_cfg.max_tokens,
                timeout_ms=provider_cfg.timeout_sec * 1000,
                context_window=provider_cfg.context_window,
            )

            logger.info("[aicli.llm] Loaded provider '%s' from aicli.toml", provider_name)
            return cls(llm_config)

        logger.info("[aicli.llm] Provider '%s' not in aicli.toml, using built-in preset", provider_name)
        return cls.from_name(provider_name)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _timeout(self) -> float:
        return self.config.timeout_ms / 1000.0

    def _build_payload(
        self,
        prompt: str,
        system: Optional[str],
        options: Optional[GenerationOptions],
        stream: bool,
    ) -> dict:
        options = options or GenerationOptions()
        if options.greedy:
            temp = 0.0
        elif options.temperature is not None:
            temp = options.temperature
        else:
            temp = self.config.temperature
        max_tokens = options.max_tokens or self.config.max_tokens

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": temp,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if stream:
            payload["stream"] = True
        return payload

    def _span_attributes(self, payload: dict, prompt: str, system: Optional[str]) -> dict:
        return {
            "llm.provider": self.config.base_url,
            "llm.model": self.config.model,
            "llm.temperature": payload["temperature"],
            "llm.max_tokens": payload.get("max_tokens", 0),
            "llm.prompt.length": len(prompt),
            "llm.system.length": len(system) if system else 0,
        }

    def _fail(self, span, error: Exception) -> CLIError:
        categorized = categorize_error(error, self.config.context_window)
        span.set_attribute("llm.status", "error")
        span.set_attribute("llm.exit_code", categorized.exit_code)
        span.set_status(trace.Status(trace.StatusCode.ERROR, categorized.message))
        span.record_exception(error)
        return categorized

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> LLMResponse:
        """Generate a complete response.

        Args:
            prompt: Assembled prompt text
            system: Optional system instruction
            options: Per-call overrides

        Returns:
            LLMResponse with content, usage and latency

        Raises:
            CLIError: Categorized backend failure
        """
        payload = self._build_payload(prompt, system, options, stream=False)

        with tracer.start_as_current_span(
            "llm.generate", attributes=self._span_attributes(payload, prompt, system)
        ) as span:
            start = time.perf_counter()
            try:
                async with httpx.AsyncClient(timeout=self._timeout()) as client:
                    response = await client.post(
                        self._url("chat/completions"), json=payload, headers=self._headers()
                    )
                    response.raise_for_status()
                    result = response.json()

                choice = result["choices"][0]
                content = choice["message"]["content"] or ""
                finish_reason = choice.get("finish_reason")
                if finish_reason == "content_filter":
                    raise GuardrailError("Response blocked by content filter")
            except Exception as e:
                categorized = self._fail(span, e)
                if categorized is e:
                    raise
                raise categorized from e

            latency_ms = int((time.perf_counter() - start) * 1000)
            usage = result.get("usage") or {}

            span.set_attribute("llm.response.length", len(content))
            span.set_attribute("llm.status", "success")
            if usage:
                span.set_attribute("llm.usage.prompt_tokens", usage.get("prompt_tokens", 0))
                span.set_attribute(
                    "llm.usage.completion_tokens", usage.get("completion_tokens", 0)
                )
            span.set_status(trace.Status(trace.StatusCode.OK))

            return LLMResponse(
                content=content,
                model=result.get("model", self.config.model),
                usage=usage,
                finish_reason=finish_reason,
                latency_ms=latency_ms,
                raw=result,
            )

    async def generate_stream(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[str]:
        """Stream a response as text deltas.

        Empty and malformed SSE chunks are skipped.

        Raises:
            CLIError: Categorized backend failure
        """
        payload = self._build_payload(prompt, system, options, stream=True)

        with tracer.start_as_current_span(
            "llm.generate_stream", attributes=self._span_attributes(payload, prompt, system)
        ) as span:
            total_length = 0
            try:
                async with httpx.AsyncClient(timeout=self._timeout()) as client:
                    async with client.stream(
                        "POST",
                        self._url("chat/completions"),
                        json=payload,
                        headers=self._headers(),
                    ) as response:
                        try:
                            response.raise_for_status()
                        except httpx.HTTPStatusError:
                            await response.aread()
                            raise

                        async for line in response.aiter_lines():
                            if not line or not line.startswith("data:"):
                                continue
                            data = line[len("data:"):].strip()
                            if data == "[DONE]":
                                break
                            try:
                                chunk = json.loads(data)
                                choice = chunk["choices"][0]
                            except (json.JSONDecodeError, KeyError, IndexError, TypeError):
                                logger.debug("[aicli.llm] Skipping malformed chunk: %r", data)
                                continue

                            if choice.get("finish_reason") == "content_filter":
                                raise GuardrailError("Response blocked by content filter")

                            content = (choice.get("delta") or {}).get("content")
                            if content:
                                total_length += len(content)
                                yield content
            except Exception as e:
                categorized = self._fail(span, e)
                if categorized is e:
                    raise
                raise categorized from e

            span.set_attribute("llm.response.length", total_length)
            span.set_attribute("llm.status", "success")
            span.set_status(trace.Status(trace.StatusCode.OK))

    async def list_models(self) -> list[str]:
        """List model ids served by the backend.

        Raises:
            httpx.HTTPError: If the backend cannot be queried
        """
        async with httpx.AsyncClient(timeout=self._timeout()) as client:
            response = await client.get(self._url("models"), headers=self._headers())
            response.raise_for_status()
            result = response.json()

        return [m.get("id", "") for m in result.get("data", []) if isinstance(m, dict)]


__all__ = ["LLMProvider", "categorize_error"]
