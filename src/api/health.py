"""Health check endpoint."""

import logging
import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check(db: Annotated[Session, Depends(get_db)]):
    """Report process uptime and whether the database answers."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "error"

    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "database": database,
    }
