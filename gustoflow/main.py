"""
FastAPI Application Entry Point

GustoFlow data gateway: one endpoint accepting tagged data actions that are
translated into parameterized SQL against the managed store.

Endpoints:
    - POST /api: Gateway actions (SELECT_ALL, SELECT_SINGLE, INSERT, UPDATE,
      DELETE, EXECUTE, CHECK_BINDING)
    - OPTIONS /api: CORS pre-flight
    - GET /health: System health check

Run:
    uvicorn gustoflow.main:app --port 8001
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from gustoflow.core.config import get_settings, setup_logging
from gustoflow.database import dispose_engine, get_db, init_db
from gustoflow.schemas import GatewayRequest, HealthResponse
from gustoflow.services.gateway import BindingError, GatewayDispatcher, InvalidActionError

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST",
    "Access-Control-Allow-Headers": "Content-Type",
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} gateway")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.has_database:
        try:
            await init_db()
        except Exception as e:
            # Keep serving: every action will report the failure as a 500
            logger.error(f"Database initialization failed: {e}")
    else:
        logger.warning("No DATABASE_URL configured, gateway will answer with binding errors")

    yield

    logger.info("Shutting down...")
    await dispose_engine()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Data gateway translating tagged actions into parameterized SQL.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST"],
    allow_headers=["Content-Type"],
)


# =============================================================================
# GATEWAY ENDPOINT
# =============================================================================

@app.options("/api", tags=["Gateway"])
async def gateway_preflight() -> Response:
    """Permissive CORS pre-flight for POST + Content-Type."""
    return Response(status_code=204, headers=CORS_HEADERS)


@app.api_route(
    "/api",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def gateway_method_not_allowed() -> PlainTextResponse:
    return PlainTextResponse("Method not allowed", status_code=405)


@app.post(
    "/api",
    tags=["Gateway"],
    summary="Execute a gateway action",
)
async def gateway(
    request: Request,
    db: Optional[AsyncSession] = Depends(get_db),
) -> Response:
    """
    Execute one tagged data action.

    Reads return a JSON array or a single object/null; mutations return
    ``{"success": true}``. Any failure is a 500 with the error message as a
    plain-text body, which clients treat as the trigger for local fallback.
    """
    try:
        payload = GatewayRequest.model_validate(await request.json())
        result: Any = await GatewayDispatcher(db).handle(payload)
        return JSONResponse(content=jsonable_encoder(result))

    except InvalidActionError as e:
        logger.warning(f"Rejected gateway action: {e.action!r}")
        return PlainTextResponse(str(e), status_code=400)

    except BindingError as e:
        logger.error(str(e))
        return PlainTextResponse(str(e), status_code=500)

    except Exception as e:
        logger.exception(f"Gateway error: {e}")
        return PlainTextResponse(str(e), status_code=500)


# =============================================================================
# HEALTH ENDPOINT
# =============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: Optional[AsyncSession] = Depends(get_db),
) -> HealthResponse:
    """Verify the database binding is operational."""
    if db is None:
        db_status = "unconfigured"
    else:
        db_status = "healthy"
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"unhealthy: {str(e)}"
            logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        environment=settings.env_mode.value,
        timestamp=datetime.now(),
    )
