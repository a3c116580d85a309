from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Never rate limited, so load balancers can always reach it.

    Returns:
        dict: ``{"status": "ok"}``.
    """

    return {"status": "ok"}
