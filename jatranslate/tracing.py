"""
OpenTelemetry Tracing
=====================
Spans for translation runs.

Tracing is off unless ENABLE_TRACING=true. When enabled, spans are exported
over OTLP/HTTP and the httpx transport under the Anthropic SDK is
instrumented, so every API request nests under the stage span that made it.
When disabled the global no-op tracer is used.
"""

import atexit
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Mapping, Optional

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from jatranslate.config import TRACING, TracingConfig

SERVICE_NAME_VALUE = TRACING.SERVICE_NAME
OTLP_ENDPOINT = TRACING.OTLP_ENDPOINT

MAX_ATTRIBUTE_CHARS = 2048

_provider: Optional[TracerProvider] = None
_tracer: Optional[trace.Tracer] = None


def _shutdown_provider() -> None:
    """Flush pending spans at interpreter exit."""
    if _provider is None:
        return
    try:
        _provider.shutdown()
    except Exception as e:
        logger.debug(f"Tracer provider shutdown failed: {e}")


def setup_tracing(config: TracingConfig = TRACING) -> trace.Tracer:
    """
    Install an OTLP-exporting tracer provider and instrument httpx.

    Args:
        config: Service name and collector endpoint

    Returns:
        Tracer for the translation service
    """
    global _provider

    _provider = TracerProvider(resource=Resource.create({SERVICE_NAME: config.SERVICE_NAME}))
    _provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=config.OTLP_ENDPOINT)))
    trace.set_tracer_provider(_provider)

    HTTPXClientInstrumentor().instrument()
    atexit.register(_shutdown_provider)

    logger.info(f"Tracing enabled, exporting spans to {config.OTLP_ENDPOINT}")
    return trace.get_tracer(config.SERVICE_NAME)


def init_tracing(config: TracingConfig = TRACING) -> trace.Tracer:
    """Set tracing up once per process (no-op tracer when disabled)."""
    global _tracer
    if _tracer is None:
        _tracer = setup_tracing(config) if config.ENABLED else trace.get_tracer(config.SERVICE_NAME)
    return _tracer


def get_tracer(name: str = SERVICE_NAME_VALUE) -> trace.Tracer:
    return trace.get_tracer(name)


def _attribute_value(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (bool, int, float)):
        return value
    return str(value)[:MAX_ATTRIBUTE_CHARS]


def set_span_attributes(span: Any, attributes: Mapping[str, Any]) -> None:
    """Best-effort attribute setter.

    ``None`` values are skipped and anything that is not a number or bool is
    stored as a truncated string. Tracing problems never fail a translation.
    """
    setter = getattr(span, "set_attribute", None)
    if not callable(setter):
        return

    for key, value in attributes.items():
        if not key or value is None:
            continue
        try:
            setter(key, _attribute_value(value))
        except Exception as e:
            logger.debug(f"Dropping span attribute {key}: {e}")


@contextmanager
def stage_span(
    tracer: trace.Tracer,
    stage: str,
    chunk_index: Optional[int] = None,
    input_chars: Optional[int] = None,
) -> Iterator[Any]:
    """Span named ``stage.<stage>`` around one generation call."""
    with tracer.start_as_current_span(f"stage.{stage}") as span:
        set_span_attributes(
            span,
            {
                "jatranslate.stage": stage,
                "jatranslate.chunk_index": chunk_index,
                "jatranslate.input_chars": input_chars,
            },
        )
        yield span
