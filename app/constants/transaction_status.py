from app.models.transaction import TransactionStatus

ALLOWED_TRANSITIONS = {
    TransactionStatus.created: [TransactionStatus.paid, TransactionStatus.failed],
    TransactionStatus.paid: [TransactionStatus.refunded],
    TransactionStatus.failed: [],
    TransactionStatus.refunded: [],
}


def can_transition(current: TransactionStatus, target: TransactionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, [])
