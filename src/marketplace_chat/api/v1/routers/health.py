from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from marketplace_chat.api.deps import RegistryDep
from marketplace_chat.infrastructure.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(registry: RegistryDep) -> dict[str, str | int]:
    """Liveness, plus how many identities currently hold a socket."""
    return {"status": "ok", "rooms": registry.room_count}


@router.get("/readyz")
async def readyz() -> JSONResponse:
    """Ready once the message store answers."""
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1 FROM messages LIMIT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Message store not ready: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": [f"postgres: {exc}"]},
        )
    return JSONResponse(content={"status": "ready"})
