"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus)

Responsabilidades:
    - Definir métricas Prometheus en un registry propio.
    - Proveer funciones pequeñas y estables para registrar eventos/duraciones.
    - Cuidar cardinalidad (NO user_id, NO emails, paths normalizados).
    - Exponer helpers para generar la respuesta /metrics.

Colaboradores:
    - crosscutting.middleware: registra latencia y conteo HTTP.
    - infrastructure.cache: registra hits/misses/errores del backend.
    - application.user_service: registra fallas del cache de usuarios.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

_requests_total = Counter(
    "userapi_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)
_request_latency = Histogram(
    "userapi_request_latency_seconds",
    "Latencia de requests HTTP",
    ["endpoint", "method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=_registry,
)
_user_cache_events = Counter(
    "userapi_user_cache_events_total",
    "Eventos del cache de usuarios (hit/miss/error)",
    ["event"],
    registry=_registry,
)

# Segmentos numéricos (ids) -> {id} para no explotar cardinalidad.
_ID_SEGMENT = re.compile(r"/\d+(?=/|$)")


def normalize_endpoint(path: str) -> str:
    """`/api/v1/users/42` -> `/api/v1/users/{id}`."""
    return _ID_SEGMENT.sub("/{id}", path or "/")


def record_request_metrics(
    *, endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    normalized = normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized, method=method, status=str(status_code)
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_user_cache_hit() -> None:
    _user_cache_events.labels(event="hit").inc()


def record_user_cache_miss() -> None:
    _user_cache_events.labels(event="miss").inc()


def record_user_cache_error() -> None:
    _user_cache_events.labels(event="error").inc()


def get_metrics_response() -> tuple[bytes, str]:
    """(body, content_type) listo para devolver en /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
