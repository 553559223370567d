import logging

from sqlmodel import Session

from app.database import engine
from app.services.email_outbox import deliver_pending
from app.services.email_service import get_mailer

logger = logging.getLogger(__name__)


def deliver_outbox(limit: int = 100) -> dict:
    with Session(engine) as session:
        summary = deliver_pending(session, get_mailer(), limit=limit)
    logger.info(f"Outbox run: {summary}")
    return summary


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    deliver_outbox()
