"""
FastAPI application for redoubt.

The application is built around an already compiled policy set: policy
compilation happens before the app exists, so a broken policy document
never produces a serving process.
"""
from contextlib import asynccontextmanager
import logging
import time
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse as _JSONResponse

from redoubt import __version__
from redoubt.api import harvest
from redoubt.policy.engine import HarvestDispatcher, HarvestError
from redoubt.policy.models import Policy

logger = logging.getLogger("redoubt.app")


class JSONResponse(_JSONResponse):
    media_type = "application/json; charset=utf-8"


def create_app(policies: Iterable[Policy]) -> FastAPI:
    """
    Build the application serving ``policies``.

    Args:
        policies: Compiled policies, fixed for the lifetime of the app
    """
    dispatcher = HarvestDispatcher(policies)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Serving %d policies: %s", len(dispatcher.policies),
                    ", ".join(p.name for p in dispatcher.policies) or "none")
        yield
        logger.info("Shutting down redoubt...")

    app = FastAPI(
        title="redoubt API",
        description="redoubt - policy-driven harvest of machine-scoped tasks and products",
        version=__version__,
        lifespan=lifespan,
        default_response_class=JSONResponse,
    )
    app.state.dispatcher = dispatcher

    # Request logging middleware (complements Uvicorn access logs)
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        path = request.url.path
        method = request.method
        try:
            response = await call_next(request)
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info("%s %s -> %s in %dms", method, path, response.status_code, duration_ms)
            return response
        except Exception as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.exception("%s %s -> 500 in %dms (error: %s)", method, path, duration_ms, e)
            raise

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        logger.warning("Bad request: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "bad request"})

    @app.exception_handler(HarvestError)
    async def harvest_failed(request: Request, exc: HarvestError):
        logger.warning("Harvest failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(harvest.router, tags=["Harvest"])
    return app
