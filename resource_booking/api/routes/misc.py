from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ...config import get_settings
from ...core.clock import Clock, get_clock
from ...db.session import get_db

router = APIRouter(tags=["misc"])


@router.get("/health")
def health_check(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    db.execute(text("SELECT 1"))
    settings = get_settings()
    return {
        "status": "ok",
        "env": settings.env,
        "timezone": settings.timezone,
        "server_time": clock().isoformat(),
    }
