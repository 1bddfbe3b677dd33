from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from opentelemetry.metrics import Counter
from opentelemetry.sdk.resources import Resource
from opentelemetry.trace import Status, StatusCode, Tracer

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import (
    Decision,
    ParentBased,
    Sampler,
    SamplingResult,
    TraceIdRatioBased,
)

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader

from . import __version__

INSTRUMENTATION_NAME = "synthload"
ERROR_SPAN_NAME = "synthetic.error"


@dataclass(frozen=True)
class ClientOptions:
    service_name: str = "synthetic-load"
    release: str = f"synthload@{__version__}"
    protocol: str = "grpc"
    insecure: bool = False
    sample_rate: float = 1.0
    metrics_port: Optional[int] = None


class ErrorsAlwaysSampler(Sampler):
    """Keeps every synthetic error; the rate only applies to transactions."""

    def __init__(self, rate: float):
        self._rate = rate
        self._transactions = ParentBased(TraceIdRatioBased(rate))

    def should_sample(
        self,
        parent_context,
        trace_id,
        name,
        kind=None,
        attributes=None,
        links=None,
        trace_state=None,
    ) -> SamplingResult:
        if name == ERROR_SPAN_NAME:
            return SamplingResult(Decision.RECORD_AND_SAMPLE, attributes)
        return self._transactions.should_sample(
            parent_context, trace_id, name, kind, attributes, links, trace_state
        )

    def get_description(self) -> str:
        return f"ErrorsAlwaysSampler{{{self._rate}}}"


def _make_exporter(endpoint: str, options: ClientOptions) -> SpanExporter:
    if options.protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(endpoint=endpoint, insecure=options.insecure)
    if options.protocol == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(endpoint=endpoint)
    raise ValueError(f"unsupported OTLP protocol: {options.protocol}")


def _make_prometheus_reader(port: int) -> MetricReader:
    from opentelemetry.exporter.prometheus import PrometheusMetricReader
    from prometheus_client import start_http_server

    start_http_server(port)
    return PrometheusMetricReader()


class ReportingClient:
    """Handle shared by every runner.

    Owns its own tracer and meter providers; nothing is registered globally,
    so several clients can coexist in one process (tests rely on this).
    """

    def __init__(self, tracer_provider: TracerProvider, meter_provider: MeterProvider):
        self.tracer_provider = tracer_provider
        self.meter_provider = meter_provider
        self.tracer: Tracer = tracer_provider.get_tracer(INSTRUMENTATION_NAME, __version__)

        meter = meter_provider.get_meter(INSTRUMENTATION_NAME, __version__)
        self._errors: Counter = meter.create_counter(
            "synthload.errors", unit="1", description="Synthetic errors reported"
        )
        self._transactions: Counter = meter.create_counter(
            "synthload.transactions", unit="1", description="Synthetic transactions emitted"
        )

    def capture_error(self, exc: BaseException) -> None:
        with self.tracer.start_as_current_span(ERROR_SPAN_NAME, record_exception=False) as span:
            span.set_attribute("error.type", type(exc).__name__)
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, description=str(exc)))
        self._errors.add(1)

    def record_transaction(self) -> None:
        self._transactions.add(1)

    def shutdown(self) -> None:
        self.tracer_provider.force_flush()
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()


def init_client(
    endpoint: str,
    options: Optional[ClientOptions] = None,
    *,
    span_exporter: Optional[SpanExporter] = None,
    metric_reader: Optional[MetricReader] = None,
) -> ReportingClient:
    options = options or ClientOptions()

    resource = Resource.create({
        "service.name": options.service_name,
        "service.version": options.release,
    })

    # ===== TRACE =====
    tracer_provider = TracerProvider(resource=resource, sampler=ErrorsAlwaysSampler(options.sample_rate))

    if span_exporter is not None:
        # Injected exporters are inspected synchronously.
        tracer_provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    else:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(_make_exporter(endpoint, options))
        )

    # ===== METRICS =====
    readers = []
    if metric_reader is not None:
        readers.append(metric_reader)
    elif options.metrics_port is not None:
        readers.append(_make_prometheus_reader(options.metrics_port))

    meter_provider = MeterProvider(resource=resource, metric_readers=readers)

    return ReportingClient(tracer_provider, meter_provider)
