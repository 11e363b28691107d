from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..deps import ServiceDep

ROUTER_TAG = "internal"

router = APIRouter()


@router.get("/health")
async def health(service: ServiceDep, verbose: int = 0):
    if not verbose:
        return {"status": "OK"}
    info = await service.health()
    return JSONResponse(status_code=200 if info["ok"] else 503, content=info)
