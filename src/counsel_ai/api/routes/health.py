"""Liveness plus a database round-trip for the similarity cache."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from counsel_ai.db.session import get_session_factory

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health(session_factory: async_sessionmaker = Depends(get_session_factory)):
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("health_database_unavailable", error=str(e))
        return JSONResponse(
            status_code=503, content={"status": "degraded", "database": "unavailable"}
        )
    return {"status": "ok", "database": "ok"}
