import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session

from app.config import settings
from app.models.transaction import Transaction, TransactionStatus

logger = logging.getLogger(__name__)


def expire_stale_transactions(session: Session, older_than: Optional[timedelta] = None) -> int:
    """Mark ``created`` transactions that never completed payment as ``failed``."""
    older_than = older_than or timedelta(minutes=settings.ORDER_EXPIRY_MINUTES)
    now = datetime.utcnow()
    cutoff = now - older_than

    result = session.execute(
        update(Transaction)
        .where(Transaction.status == TransactionStatus.created)
        .where(Transaction.created_at < cutoff)
        .values(status=TransactionStatus.failed, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    session.commit()

    logger.info(f"Expired {result.rowcount} unpaid transactions")
    return result.rowcount
