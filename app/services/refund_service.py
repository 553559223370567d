import logging
from datetime import datetime

from sqlmodel import Session, select

from app.constants.transaction_status import can_transition
from app.errors import Conflict
from app.models.access_token import AccessToken
from app.models.transaction import Transaction, TransactionStatus

logger = logging.getLogger(__name__)


def refund_transaction(session: Session, txn: Transaction) -> dict:
    """Record a refund made at the gateway and revoke the tokens it paid for.

    The money movement itself happens in the gateway dashboard.
    """
    if not can_transition(txn.status, TransactionStatus.refunded):
        raise Conflict(
            f"Cannot refund a {txn.status.value} transaction",
            reason="invalid_transition",
        )

    tokens = session.exec(
        select(AccessToken).where(AccessToken.transaction_id == txn.id)
    ).all()
    for qr in tokens:
        qr.is_revoked = True
        session.add(qr)

    txn.status = TransactionStatus.refunded
    txn.updated_at = datetime.utcnow()
    session.add(txn)
    session.commit()
    session.refresh(txn)

    logger.info(f"Transaction {txn.id} refunded, {len(tokens)} token(s) revoked")
    return {"transaction_id": txn.id, "status": txn.status, "revoked_tokens": len(tokens)}
