import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ptbuddy.database import engine
from ptbuddy.migrations import head_revision, schema_revision
from ptbuddy.settings import get_settings

router = APIRouter(tags=["Health"])
logger = logging.getLogger("ptbuddy.health")


@router.get("/healthz")
def healthz():
    settings = get_settings()
    return {"status": "ok", "app": settings.app_name, "environment": settings.environment}


@router.get("/readyz")
def readyz():
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            revision = schema_revision(connection)
    except SQLAlchemyError:
        logger.exception("Readiness check failed")
        return JSONResponse(status_code=503, content={"status": "not_ready"})

    head = head_revision()
    return {
        "status": "ready",
        "schemaRevision": revision,
        "schemaUpToDate": revision == head,
    }
