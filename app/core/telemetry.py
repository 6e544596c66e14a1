"""
OpenTelemetry instrumentation for the FastAPI app and the MongoDB driver.

Spans are created locally; export is configured by the environment
(OTEL_* variables), not here.
"""

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

from app.core.logger import logger


def instrument_app(app):
    """
    Instrument FastAPI and PyMongo (which motor drives) with OpenTelemetry.

    Instrumentation failure is logged and ignored; the service runs without spans.
    """
    try:
        FastAPIInstrumentor.instrument_app(app)
        PymongoInstrumentor().instrument()
        logger.info(
            "OpenTelemetry instrumentation complete",
            metadata={"event": "telemetry_instrumented", "instrumentors": ["fastapi", "pymongo"]}
        )
    except Exception as e:
        logger.error("Failed to instrument application", error=e,
                     metadata={"event": "telemetry_instrumentation_failed"})
