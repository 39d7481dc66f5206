"""TelemetryConfig exporter selection and the traced decorator without a provider."""

import inspect

import pytest
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from workdesk.shared.telemetry import TelemetryConfig, traced


def config(**kwargs):
    return TelemetryConfig(service_name="workdesk", service_version="test", **kwargs)


def test_from_settings_traces_redis_only_for_redis_backend(settings):
    telemetry = TelemetryConfig.from_settings(settings)

    assert telemetry.service_name == settings.app_name
    assert telemetry.trace_redis is False
    assert not telemetry.started


@pytest.mark.parametrize(
    ("kwargs", "expected"),
    [
        ({"exporter": "console"}, ConsoleSpanExporter),
        ({"exporter": "otlp"}, ConsoleSpanExporter),
        ({"exporter": "zipkin"}, ConsoleSpanExporter),
        ({"exporter": "otlp", "otlp_endpoint": "http://collector:4317"}, OTLPSpanExporter),
    ],
)
def test_exporter_selection(kwargs, expected):
    assert isinstance(config(**kwargs)._build_exporter(), expected)


def test_no_exporter():
    assert config(exporter="none")._build_exporter() is None


def test_shutdown_without_start_is_a_no_op():
    config().shutdown()


async def test_traced_passes_through_results_and_errors():
    @traced("test.op")
    async def op(value, *, table=None):
        if value < 0:
            raise ValueError("negative")
        return value * 2

    assert inspect.iscoroutinefunction(op)
    assert op.__name__ == "op"
    assert await op(2, table="incident") == 4
    with pytest.raises(ValueError):
        await op(-1)
