from __future__ import annotations

from fastapi import APIRouter, Request

from ratewindow.core.client_identity import resolve_client_ip
from ratewindow.core.logging import get_request_id
from ratewindow.schemas.status import EchoResponse, SystemStatusResponse

router = APIRouter(tags=["Status"])


@router.get("/status", response_model=SystemStatusResponse)
def system_status(request: Request) -> SystemStatusResponse:
    """System health report.

    Returns uptime, process details, memory usage and rate limiter metrics
    for the instance serving the request.
    """

    return request.app.state.monitoring.system_status()


@router.get("/echo", response_model=EchoResponse)
async def echo(request: Request) -> EchoResponse:
    """Describe the current request as seen by the pipeline.

    Useful to verify which client address the rate limiter keys on.
    """

    return EchoResponse(
        method=request.method,
        path=request.url.path,
        client_ip=resolve_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_id=get_request_id(),
    )
