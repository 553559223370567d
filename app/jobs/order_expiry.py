import logging

from sqlmodel import Session

from app.database import engine
from app.services.order_expiry_service import expire_stale_transactions

logger = logging.getLogger(__name__)


def expire_unpaid_orders() -> int:
    with Session(engine) as session:
        expired = expire_stale_transactions(session)
    logger.info(f"Order expiry run: {expired} transaction(s) failed")
    return expired


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    expire_unpaid_orders()
