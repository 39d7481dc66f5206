"""OpenTelemetry setup for the proxy.

When enabled, spans cover inbound requests (FastAPI), the traced service
operations (activity narrative, record update) and, with the Redis store
backend, store commands. Log records then carry trace and span ids.
Telemetry never blocks startup: any setup failure is logged and the proxy
runs untraced.
"""

import logging
import threading
from dataclasses import dataclass

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from workdesk.core.config import Settings

logger = logging.getLogger(__name__)

# Liveness checks would otherwise dominate the trace volume
UNTRACED_URLS = "/api/health"


@dataclass
class TelemetryConfig:
    """Tracer provider settings plus the provider once started."""

    service_name: str
    service_version: str
    environment: str = "development"
    exporter: str = "console"
    otlp_endpoint: str | None = None
    sample_rate: float = 1.0
    trace_redis: bool = False
    tracer_provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryConfig":
        return cls(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
            exporter=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
            trace_redis=settings.store_backend == "redis",
        )

    @property
    def started(self) -> bool:
        return self.tracer_provider is not None

    def start(self, app: FastAPI) -> bool:
        """Install the global tracer provider and instrument app.

        Returns:
            True if tracing is active.
        """
        try:
            provider = TracerProvider(
                resource=Resource(
                    attributes={
                        SERVICE_NAME: self.service_name,
                        SERVICE_VERSION: self.service_version,
                        "deployment.environment": self.environment,
                    }
                ),
                sampler=TraceIdRatioBased(self.sample_rate),
            )
            exporter = self._build_exporter()
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception as e:
            logger.exception("Tracing setup failed, continuing untraced: %s", e)
            return False

        self.tracer_provider = provider
        self._instrument(app)
        logger.info(
            "Tracing on: service=%s exporter=%s sample_rate=%s",
            self.service_name,
            self.exporter,
            self.sample_rate,
        )
        return True

    def _build_exporter(self) -> SpanExporter | None:
        if self.exporter == "none":
            return None
        if self.exporter == "otlp":
            if not self.otlp_endpoint:
                logger.warning("TELEMETRY_EXPORTER=otlp without an endpoint; using console")
                return ConsoleSpanExporter()
            return OTLPSpanExporter(
                endpoint=self.otlp_endpoint,
                insecure=self.otlp_endpoint.startswith("http://"),
            )
        if self.exporter != "console":
            logger.warning("Unknown span exporter %r; using console", self.exporter)
        return ConsoleSpanExporter()

    def _instrument(self, app: FastAPI) -> None:
        # Each instrumentor is optional; one failing must not disable the rest
        steps = [
            (
                "fastapi",
                lambda: FastAPIInstrumentor.instrument_app(
                    app, tracer_provider=self.tracer_provider, excluded_urls=UNTRACED_URLS
                ),
            ),
            (
                "logging",
                lambda: LoggingInstrumentor().instrument(
                    tracer_provider=self.tracer_provider, set_logging_format=True
                ),
            ),
        ]
        if self.trace_redis:
            steps.append(
                ("redis", lambda: RedisInstrumentor().instrument(tracer_provider=self.tracer_provider))
            )
        for name, instrument in steps:
            try:
                instrument()
            except Exception as e:
                logger.exception("Failed to instrument %s: %s", name, e)

    def shutdown(self) -> None:
        """Flush buffered spans and release the provider."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception as e:
            logger.exception("Error flushing spans on shutdown: %s", e)
        self.tracer_provider = None


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    """Return the process telemetry instance (set at startup)."""
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
