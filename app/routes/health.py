import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, text

from app.config import settings
from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(session: Session = Depends(get_session)):
    """Liveness probe; also reports which integrations have credentials."""
    try:
        session.exec(text("SELECT 1"))
        db_status = "ok"
    except Exception as e:
        logger.error(f"Health check database ping failed: {e}")
        db_status = "failed"

    return {
        "ok": db_status == "ok",
        "database": db_status,
        "env": settings.ENV,
        "payments_configured": bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET),
        "email_configured": bool(settings.BREVO_API_KEY),
        "timestamp": datetime.utcnow().isoformat(),
    }
