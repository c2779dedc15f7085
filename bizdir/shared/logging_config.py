# bizdir/shared/logging_config.py
import sys
import logging
import structlog
from opentelemetry import trace
from bizdir.shared.config import settings

def add_open_telemetry_spans(_, __, event_dict):
    """
    Processor to inject the current TraceID and SpanID into the log entry.
    Lets a resolution log line be matched with its search span.
    """
    span = trace.get_current_span()
    if not span.is_recording():
        event_dict["trace_id"] = None
        event_dict["span_id"] = None
        return event_dict

    ctx = span.get_span_context()
    event_dict["trace_id"] = format(ctx.trace_id, "032x")
    event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict

def configure_logging():
    """
    Configures structlog and the standard logging library to emit
    structured JSON logs (Production) or colored text logs (Development).
    """

    # 1. Chain of processors (applied in order to every event)
    processors = [
        structlog.contextvars.merge_contextvars,  # request-bound context
        add_open_telemetry_spans,                 # trace_id / span_id
        structlog.processors.add_log_level,       # "level": "info"
        structlog.processors.TimeStamper(fmt="iso"),  # "timestamp": "2026-..."
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,     # exc_info=True -> traceback text
    ]

    # 2. Output format
    if settings.LOG_FORMAT == "json":
        # Production: one JSON object per line
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Development: colored console output
        processors.append(structlog.dev.ConsoleRenderer())

    # 3. Configure structlog
    # Events below LOG_LEVEL are dropped before any processor runs
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # 4. Standard library logging (uvicorn, httpx)
    # Third-party records go to stdout at the same level.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.LOG_LEVEL.upper(),
    )
