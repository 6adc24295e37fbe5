"""Health check endpoint (public) with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from flowiq.core.config import APP_VERSION, settings
from flowiq.core.database import check_db_connected, get_db
from flowiq.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """Service status and database reachability, for load balancers and monitoring."""
    return HealthResponse(
        version=APP_VERSION,
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
    )
