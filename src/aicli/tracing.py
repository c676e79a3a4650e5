"""OpenTelemetry setup for the ai CLI.

Backend calls always run inside spans (``llm.generate``,
``llm.generate_stream``). Until ``init_telemetry()`` runs, the global tracer
is a no-op and those spans cost nothing.

Tracing is opt-in per run, via ``--trace`` or ``AICLI_TRACE``:

    AICLI_TRACE=1        export over OTLP/gRPC (OTEL_EXPORTER_OTLP_ENDPOINT)
    AICLI_TRACE=console  print finished spans to stderr, no collector needed
"""

import logging
import os
import sys
from typing import Optional, TextIO

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

from . import __version__

logger = logging.getLogger(__name__)

EXPORTER_OTLP = "otlp"
EXPORTER_CONSOLE = "console"

_ENABLED_VALUES = ("1", "true", "yes", EXPORTER_OTLP, EXPORTER_CONSOLE)

_provider: Optional[TracerProvider] = None


def _env_value() -> str:
    return os.getenv("AICLI_TRACE", "").strip().lower()


def tracing_requested(flag: bool = False) -> bool:
    """True if tracing was asked for by flag or AICLI_TRACE."""
    return flag or _env_value() in _ENABLED_VALUES


def exporter_from_env() -> str:
    """Exporter named by AICLI_TRACE; OTLP unless it says console."""
    return EXPORTER_CONSOLE if _env_value() == EXPORTER_CONSOLE else EXPORTER_OTLP


def _span_processor(
    exporter: str, otlp_endpoint: Optional[str], stream: Optional[TextIO]
) -> SpanProcessor:
    if exporter == EXPORTER_CONSOLE:
        # One call per run: export each span as it ends
        return SimpleSpanProcessor(ConsoleSpanExporter(out=stream or sys.stderr))
    if exporter != EXPORTER_OTLP:
        raise ValueError(f"Unknown trace exporter: {exporter}")

    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    logger.debug("[aicli.tracing] OTLP endpoint %s", endpoint)
    # Short CLI runs: flush every second
    return BatchSpanProcessor(
        OTLPSpanExporter(endpoint=endpoint, insecure=True),
        schedule_delay_millis=1000,
    )


def init_telemetry(
    exporter: Optional[str] = None,
    otlp_endpoint: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> TracerProvider:
    """Install a tracer provider for this run.

    Args:
        exporter: "otlp" or "console" (default: from AICLI_TRACE)
        otlp_endpoint: Collector endpoint for the OTLP exporter
        stream: Output for the console exporter (default: stderr)

    Returns:
        The installed provider; repeated calls return the same one
    """
    global _provider
    if _provider is not None:
        return _provider

    exporter = exporter or exporter_from_env()
    resource = Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", "aicli"),
            "service.version": __version__,
        }
    )

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(_span_processor(exporter, otlp_endpoint, stream))
    trace.set_tracer_provider(provider)

    _provider = provider
    logger.info("[aicli.tracing] Tracing enabled (%s exporter)", exporter)
    return provider


def shutdown_telemetry() -> None:
    """Flush pending spans and drop the provider installed by init_telemetry()."""
    global _provider
    if _provider is None:
        return

    _provider.shutdown()
    _provider = None
    logger.info("[aicli.tracing] Tracing shut down")


__all__ = [
    "EXPORTER_CONSOLE",
    "EXPORTER_OTLP",
    "exporter_from_env",
    "init_telemetry",
    "shutdown_telemetry",
    "tracing_requested",
]
