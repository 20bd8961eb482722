"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: post mutations, enrichment degradations, agile query latency

Both are initialised once at startup and injected into FastAPI via middleware.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from teamfeed.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
POST_MUTATIONS_TOTAL = Counter(
    "post_mutations_total",
    "Post mutations handled by the API",
    ["verb", "outcome"],  # verb: create|update|pin|react|comment|delete; outcome: ok|error
)

ENRICHMENT_DEGRADED_TOTAL = Counter(
    "enrichment_degraded_total",
    "Agile member responses served without profile enrichment",
    ["reason"],  # no_keys | fetch_failed | no_matches
)

AGILE_QUERY_LATENCY = Histogram(
    "agile_query_latency_seconds",
    "Latency of GET /teams/agile by query variant",
    ["variant"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

CLIENT_REQUESTS_TOTAL = Counter(
    "teamfeed_client_requests_total",
    "Requests issued by the feed client SDK",
    ["method", "outcome"],  # outcome: ok | http_error | transport_error
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing(engine=None) -> None:  # noqa: ANN001
    """
    Configure the global OTel TracerProvider with OTLP/Jaeger export.
    `engine` is the service's AsyncEngine; client-only callers omit it.
    """
    if not settings.tracing_enabled:
        logger.info("OTel tracing disabled")
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    # Auto-instrument the libraries on the request path
    HTTPXClientInstrumentor().instrument()
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    if settings.tracing_enabled:
        FastAPIInstrumentor.instrument_app(app)
