"""
Repository for payment transactions.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from lao_cinema.models.payment_transaction import PaymentStatus, PaymentTransaction

logger = logging.getLogger(__name__)


class PaymentTransactionRepository:

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_by_id(self, transaction_id: str) -> Optional[PaymentTransaction]:
        return (
            self.db.query(PaymentTransaction)
            .filter(PaymentTransaction.id == transaction_id)
            .first()
        )

    def create(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """Insert a transaction and commit."""
        self.db.add(transaction)
        self.db.commit()
        logger.info(
            "Payment transaction created",
            extra={
                "transaction_id": transaction.id,
                "provider": transaction.provider,
                "amount_lak": transaction.amount_lak,
            },
        )
        return transaction

    def transition(
        self,
        transaction: PaymentTransaction,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        rental_id: Optional[str] = None,
        provider_response: Optional[dict] = None,
    ) -> bool:
        """
        Move a transaction from one status to another and commit.

        The update only applies while the stored row still holds
        ``from_status``. The in-memory transaction is refreshed afterwards
        so it reflects the stored status either way.

        Returns:
            True if this call changed the row, False if another writer moved
            the transaction first
        """
        values = {PaymentTransaction.status: to_status}
        if rental_id is not None:
            values[PaymentTransaction.rental_id] = rental_id
        if provider_response is not None:
            values[PaymentTransaction.provider_response] = provider_response

        updated = (
            self.db.query(PaymentTransaction)
            .filter(
                PaymentTransaction.id == transaction.id,
                PaymentTransaction.status == from_status,
            )
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(transaction)

        if updated != 1:
            logger.warning(
                "Payment transaction status changed concurrently",
                extra={
                    "transaction_id": transaction.id,
                    "expected": from_status.value,
                    "actual": transaction.status.value,
                },
            )
            return False

        logger.info(
            "Payment transaction updated",
            extra={"transaction_id": transaction.id, "status": to_status.value},
        )
        return True
