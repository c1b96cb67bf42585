"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from squadline import __version__
from squadline.core.config import settings
from squadline.core.database import check_db_connected, get_db
from squadline.core.serialization import SafeRoute
from squadline.schemas.health import HealthResponse

router = APIRouter(route_class=SafeRoute)


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """Service status for load balancers; degraded when the database is unreachable."""
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=settings.APP_ENV,
        version=__version__,
        database="connected" if connected else "disconnected",
    )
