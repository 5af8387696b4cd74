"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return application, database and content catalog status."""
    catalog = getattr(request.app.state, "catalog", None)
    catalog_status = "loaded" if catalog is not None else "not_loaded"
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected", "catalog": catalog_status}
    except Exception:
        return {"status": "error", "database": "disconnected", "catalog": catalog_status}
