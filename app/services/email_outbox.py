import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from app.config import settings
from app.models.email import EmailOutbox, EmailStatus

logger = logging.getLogger(__name__)


def enqueue_email(
    session: Session,
    *,
    to_email: str,
    subject: str,
    html: str,
    related_token_id: Optional[int] = None,
) -> EmailOutbox:
    entry = EmailOutbox(
        to_email=to_email,
        subject=subject,
        html=html,
        related_token_id=related_token_id,
    )
    session.add(entry)
    return entry


def deliver_entry(
    session: Session,
    mailer,
    entry: EmailOutbox,
    max_attempts: Optional[int] = None,
) -> bool:
    """Try to send one outbox entry. Never raises; the outcome is stored on the row."""
    if entry.status != EmailStatus.pending:
        return entry.status == EmailStatus.sent

    max_attempts = max_attempts or settings.EMAIL_MAX_ATTEMPTS
    entry.attempts += 1

    try:
        mailer.send(to=entry.to_email, subject=entry.subject, html=entry.html)
    except Exception as e:
        entry.last_error = str(e)
        if entry.attempts >= max_attempts:
            entry.status = EmailStatus.failed
            logger.error(f"Email {entry.id} to {entry.to_email} permanently failed: {e}")
        else:
            logger.warning(f"Email {entry.id} attempt {entry.attempts} failed: {e}")
        session.add(entry)
        session.commit()
        return False

    entry.status = EmailStatus.sent
    entry.sent_at = datetime.utcnow()
    entry.last_error = None
    session.add(entry)
    session.commit()
    logger.info(f"Email {entry.id} sent to {entry.to_email} (attempt {entry.attempts})")
    return True


def deliver_pending(session: Session, mailer, limit: int = 50) -> dict:
    pending = session.exec(
        select(EmailOutbox)
        .where(EmailOutbox.status == EmailStatus.pending)
        .order_by(EmailOutbox.created_at, EmailOutbox.id)
        .limit(limit)
    ).all()

    sent = 0
    for entry in pending:
        if deliver_entry(session, mailer, entry):
            sent += 1

    return {"attempted": len(pending), "sent": sent, "failed": len(pending) - sent}
