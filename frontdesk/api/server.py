"""
Front-desk API Server.

A FastAPI application exposing the demo data lifecycle and today's queue
status to the practice dashboard.
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from frontdesk.config import get_settings
from frontdesk.exceptions import Busy, FrontDeskError
from frontdesk.services.demo import DemoDataOrchestrator, get_demo_orchestrator
from frontdesk.services.record_store import get_record_store
from frontdesk.services.status import StatusReporter, get_status_reporter

HTTP_MULTI_STATUS = 207


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _error_response(status_code: int, error: str, message: str, **detail) -> JSONResponse:
    return JSONResponse(
        {"ok": False, "error": error, "message": message, **detail},
        status_code=status_code,
    )


def _message_of(error: Exception) -> str:
    if isinstance(error, FrontDeskError):
        return error.message
    return str(error) or error.__class__.__name__


# ============================================================================
# FastAPI Application
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting front-desk API for {settings.clinic_name}")
    logger.info(f"Record store: {settings.record_store_url}")
    yield
    logger.info("Shutting down front-desk API")
    await get_record_store().close()


app = FastAPI(
    title="Ignis Front Desk API",
    description="Demo data lifecycle and queue status for the practice dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "timestamp": datetime.now().isoformat()}


@app.post("/api/demo/setup")
async def demo_setup(
    orchestrator: DemoDataOrchestrator = Depends(get_demo_orchestrator),
):
    """
    Seed demo data for today.

    200 when every resource was written, 207 Multi-Status when some failed
    (the body names each failed resource), 500 on unexpected errors or
    while another demo operation is running (with ``busy: true``).
    """
    logger.info("POST /api/demo/setup")
    try:
        # Shielded: an aborted request lets in-flight store writes finish
        result = await asyncio.shield(orchestrator.setup())
    except Busy as e:
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "setup_failed", e.message, busy=True
        )
    except Exception as e:
        logger.error(f"Demo setup failed: {e}")
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "setup_failed", _message_of(e)
        )

    if result.success:
        body = {"ok": True, "message": "Demo data setup complete"}
        status_code = status.HTTP_200_OK
    else:
        body = {"ok": False, "message": "Demo data setup completed with errors"}
        status_code = HTTP_MULTI_STATUS
    body.update(result.model_dump(mode="json"))
    return JSONResponse(body, status_code=status_code)


@app.delete("/api/demo/clear")
async def demo_clear(
    orchestrator: DemoDataOrchestrator = Depends(get_demo_orchestrator),
):
    """
    Delete the demo data written by setup.

    Per-resource failures are listed in the body; the call itself only
    fails (500) on unexpected errors, or while another demo operation
    is running (with ``busy: true``).
    """
    logger.info("DELETE /api/demo/clear")
    try:
        result = await asyncio.shield(orchestrator.clear())
    except Busy as e:
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "clear_failed", e.message, busy=True
        )
    except Exception as e:
        logger.error(f"Demo clear failed: {e}")
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "clear_failed", _message_of(e)
        )

    body = {"ok": True, "message": "Demo data cleared"}
    body.update(result.model_dump(mode="json"))
    return JSONResponse(body, status_code=status.HTTP_200_OK)


@app.get("/api/demo/status")
async def demo_status(
    reporter: StatusReporter = Depends(get_status_reporter),
):
    """Today's queue and appointment figures (Europe/Berlin calendar day)."""
    try:
        snapshot = await reporter.status()
    except Exception as e:
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "status_failed", _message_of(e)
        )

    body = {"ok": True}
    body.update(snapshot.model_dump(mode="json"))
    return JSONResponse(body, status_code=status.HTTP_200_OK)


# ============================================================================
# Run Server
# ============================================================================


def run_server(host: str | None = None, port: int | None = None):
    """Run the front-desk API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "frontdesk.api.server:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=False,
        workers=1,  # demo data tracking lives in process memory
        loop="uvloop",
        http="httptools",
    )


if __name__ == "__main__":
    run_server()
