"""
Prometheus scrape endpoint.

Unauthenticated and unversioned. Exposes service operation timings from
``@measure_operation`` plus the scheduling counters (rejections by code,
booking conflicts, reschedule retries, audit writes).
"""

from fastapi import APIRouter, Response

from ..monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter()

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get(
    "/metrics/prometheus", include_in_schema=False, response_class=Response, response_model=None
)
async def get_prometheus_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers=_NO_CACHE_HEADERS,
    )
