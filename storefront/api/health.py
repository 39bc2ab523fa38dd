from fastapi import APIRouter, Request
from pydantic import BaseModel, Field
from sqlalchemy import text
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status", examples=["healthy"])
    service: str = Field(..., description="Service name", examples=["storefront-catalog"])
    version: str = Field(..., description="Service version", examples=["1.0.0"])
    database: str = Field(..., description="Database reachability", examples=["ok"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="""
    Health check endpoint for monitoring and load balancer health checks.

    Reports `degraded` when the database cannot be reached.
    """
)
def health(request: Request):
    """Health check endpoint"""
    database = "ok"
    try:
        with request.app.state.database.connect().connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health check could not reach the database: {e}")
        database = "unreachable"

    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        service=request.app.state.settings.app_name,
        version=request.app.version,
        database=database
    )
