"""OpenTelemetry metrics and logs for the share ledger."""

import logging
import os
from decimal import Decimal

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from shareledger._version import VERSION


# Module-level state
_initialized = False
_meter = None
_log_handler = None

# Counters (cumulative)
_buys_total = None
_sells_total = None
_shares_traded_total = None
_trade_value_total = None
_rejections_total = None
_conflict_retries_total = None


def setup_telemetry() -> bool:
    """Initialize OpenTelemetry metrics and log export.

    Returns True if telemetry was initialized, False if disabled.
    """
    global _initialized, _meter, _log_handler
    global _buys_total, _sells_total, _shares_traded_total, _trade_value_total
    global _rejections_total, _conflict_retries_total

    if _initialized:
        return True

    # Check if telemetry is enabled
    if os.getenv("OTLP_ENABLED", "true").lower() == "false":
        return False

    # Get configuration from environment
    otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/metrics")
    export_interval = int(os.getenv("OTLP_EXPORT_INTERVAL", "5000"))

    resource = Resource.create({
        "service.name": "share-ledger",
        "service.version": VERSION,
    })

    exporter = OTLPMetricExporter(endpoint=otlp_endpoint)
    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=export_interval,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(provider)

    _meter = metrics.get_meter("share_ledger", VERSION)

    _buys_total = _meter.create_counter(
        "ledger_buys_total",
        description="Total number of successful buys",
        unit="1",
    )

    _sells_total = _meter.create_counter(
        "ledger_sells_total",
        description="Total number of successful sells",
        unit="1",
    )

    _shares_traded_total = _meter.create_counter(
        "ledger_shares_traded_total",
        description="Total number of shares moved by buys and sells",
        unit="shares",
    )

    _trade_value_total = _meter.create_counter(
        "ledger_trade_value_total",
        description="Total cash value of buys and sells",
        unit="currency",
    )

    _rejections_total = _meter.create_counter(
        "ledger_rejections_total",
        description="Buys and sells rejected, by reason",
        unit="1",
    )

    _conflict_retries_total = _meter.create_counter(
        "ledger_conflict_retries_total",
        description="Attempts retried after a concurrent-write conflict",
        unit="1",
    )

    # === LOGS ===
    logs_endpoint = otlp_endpoint.replace("/v1/metrics", "/v1/logs")
    log_exporter = OTLPLogExporter(endpoint=logs_endpoint)
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
    set_logger_provider(logger_provider)

    _log_handler = LoggingHandler(
        level=logging.INFO,
        logger_provider=logger_provider,
    )

    _initialized = True
    return True


def get_log_handler() -> LoggingHandler | None:
    """Get the OTLP logging handler to attach to Python loggers."""
    return _log_handler


def is_enabled() -> bool:
    """Check if telemetry is initialized and enabled."""
    return _initialized


# --- Counter update functions ---

def record_trade(kind: str, property_id: str, shares: int, price: Decimal) -> None:
    """Record a committed buy or sell."""
    if not _initialized:
        return

    attributes = {"property_id": property_id, "kind": kind}
    if kind == "BUY":
        _buys_total.add(1, attributes)
    else:
        _sells_total.add(1, attributes)
    _shares_traded_total.add(shares, attributes)
    _trade_value_total.add(float(price * shares), attributes)


def record_rejection(kind: str, reason: str) -> None:
    """Record a business rejection (insufficient supply, holding, ...)."""
    if not _initialized:
        return

    _rejections_total.add(1, {"kind": kind, "reason": reason})


def record_conflict_retry(kind: str) -> None:
    """Record an attempt that will be retried after a write conflict."""
    if not _initialized:
        return

    _conflict_retries_total.add(1, {"kind": kind})
