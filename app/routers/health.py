from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from app.db.connection import DatabaseConnection
from app.dependencies import get_database_connection
from app.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    database: DatabaseConnection = Depends(get_database_connection),  # noqa: B008
) -> HealthResponse:
    connected = await database.ping()
    return HealthResponse(
        status="OK",
        database="Connected" if connected else "Disconnected",
        timestamp=datetime.now(UTC),
    )
