"""Health check endpoint."""

import sqlite3
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_db
from api.models.responses import HealthResponse
from core.config import API_VERSION

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(conn: sqlite3.Connection = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Returns 200 if the event store answers, 503 otherwise.
    """
    timestamp = datetime.now(timezone.utc).isoformat()

    try:
        conn.execute("SELECT 1 FROM users LIMIT 1").fetchall()
    except sqlite3.Error as e:
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=API_VERSION,
                database_available=False,
                timestamp=timestamp,
                error=f"Event store unavailable: {e}",
            ).model_dump(),
        )

    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        database_available=True,
        timestamp=timestamp,
    )
