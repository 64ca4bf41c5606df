import logging
import os
import sys

from opentelemetry import trace

LOG_FORMAT = (
    "%(asctime)s [%(levelname)s] %(name)s "
    "[trace=%(trace_id)s span=%(span_id)s] - %(message)s"
)


class TraceIdFilter(logging.Filter):
    """Injects the active OpenTelemetry trace and span ids into each record.

    Both fields are `-` when no span is recording.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            record.trace_id = format(ctx.trace_id, "032x")
            record.span_id = format(ctx.span_id, "016x")
        else:
            record.trace_id = "-"
            record.span_id = "-"
        return True


class SafeFormatter(logging.Formatter):
    """Formatter that tolerates records which skipped TraceIdFilter."""

    def format(self, record):
        if not hasattr(record, "trace_id"):
            record.trace_id = "-"
        if not hasattr(record, "span_id"):
            record.span_id = "-"
        return super().format(record)


def configure_logging(level: str | None = None) -> None:
    """
    Configure application-wide logging on stdout.

    `level` falls back to LOG_LEVEL, then INFO.
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SafeFormatter(LOG_FORMAT))
    handler.addFilter(TraceIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # SQL echo stays off unless asked for explicitly
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
