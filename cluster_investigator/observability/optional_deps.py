"""
Loaders for optional tracing packages.

The OpenTelemetry SDK, the OTLP exporter and traceloop-sdk (OpenLLMetry) are
optional extras. Each loader returns the module, or None when that package is
not installed. Any other import failure (a broken install, a missing
transitive dependency, a syntax error) propagates: a real defect must never be
mistaken for "tracing unavailable".

Tests patch these loaders to simulate packages being present or absent.
"""

import importlib
import logging
from types import ModuleType
from typing import Optional

logger = logging.getLogger(__name__)


def _is_requested_module(module_name: str, missing: Optional[str]) -> bool:
    """True when the missing module is the requested one or one of its parent packages."""
    if not missing:
        return False
    return module_name == missing or module_name.startswith(missing + ".")


def load_optional(module_name: str) -> Optional[ModuleType]:
    """
    Import an optional module.

    Returns:
        The module, or None if it (or a parent package) is not installed

    Raises:
        Whatever the import raised, for every other failure
    """
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        if _is_requested_module(module_name, e.name):
            logger.debug("Optional package %s not installed", module_name)
            return None
        raise


def load_traceloop() -> Optional[ModuleType]:
    """traceloop-sdk: LLM auto-instrumentation and the Traceloop initializer."""
    return load_optional("traceloop.sdk")


def load_traceloop_decorators() -> Optional[ModuleType]:
    """traceloop-sdk decorators: the ``tool`` span helper."""
    return load_optional("traceloop.sdk.decorators")


def load_sdk_trace_export() -> Optional[ModuleType]:
    """opentelemetry-sdk export module: ConsoleSpanExporter for local debugging."""
    return load_optional("opentelemetry.sdk.trace.export")


def load_otlp_exporter() -> Optional[ModuleType]:
    """opentelemetry-exporter-otlp-proto-http: OTLPSpanExporter for collectors."""
    return load_optional("opentelemetry.exporter.otlp.proto.http.trace_exporter")
