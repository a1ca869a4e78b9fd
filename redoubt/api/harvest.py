"""
Harvest API endpoints.

``POST /v1/harvest`` takes an asserted machine/user identity and returns
everything the compiled policies produce for it.
"""
import logging

import anyio
from fastapi import APIRouter, Depends, Request

from redoubt.api.models import ErrorResponse, HarvestRequest, HarvestResponse
from redoubt.interpolation import build_environment
from redoubt.policy.engine import HarvestDispatcher

router = APIRouter()
logger = logging.getLogger(__name__)


def get_dispatcher(request: Request) -> HarvestDispatcher:
    return request.app.state.dispatcher


@router.post(
    "/v1/harvest",
    summary="Harvest tasks and products for an identity",
    response_model=HarvestResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed or missing request body"},
        500: {"model": ErrorResponse, "description": "A probe or producer failed"},
    },
)
async def harvest(req: HarvestRequest, dispatcher: HarvestDispatcher = Depends(get_dispatcher)):
    env = build_environment(req)
    logger.debug("Harvest environment: %s", env.model_dump_json())
    # Units may block (file reads, remote calls); keep them off the event loop.
    return await anyio.to_thread.run_sync(dispatcher.dispatch, env)


@router.get("/healthz", summary="Liveness check")
async def healthz(dispatcher: HarvestDispatcher = Depends(get_dispatcher)):
    return {"status": "ok", "policies": len(dispatcher.policies)}
