"""
Credit ledger gate — admission control in front of job creation.

Starting a job costs credits. The gate holds no state of its own: the
check-and-deduct is a single guarded UPDATE in the job store, so racing
requests for the same user can never overdraw the balance.
"""

import logging

from models.store import JobStore
from worker.errors import ValidationError

logger = logging.getLogger(__name__)


class CreditLedger:

    def __init__(self, store: JobStore):
        self._store = store

    def try_debit(self, owner_id: str, amount: int) -> bool:
        """
        Take `amount` credits from `owner_id` if the balance covers it.

        Returns False (no exception) when the balance is too low or the
        user does not exist — that's a normal admission decision.
        Raises PersistenceError if the store is unreachable; the balance
        is left unchanged in that case.
        """
        self._validate(owner_id, amount)
        debited = self._store.try_debit_credit(owner_id, amount)
        if debited:
            logger.info(f"Debited {amount} credit(s) from user {owner_id}")
        else:
            logger.info(f"Insufficient credits for user {owner_id} (needed {amount})")
        return debited

    def refund(self, owner_id: str, amount: int) -> bool:
        """Give back credits taken by a debit whose job never got created."""
        self._validate(owner_id, amount)
        refunded = self._store.refund_credit(owner_id, amount)
        if refunded:
            logger.info(f"Refunded {amount} credit(s) to user {owner_id}")
        return refunded

    def balance(self, owner_id: str) -> int | None:
        return self._store.get_credits(owner_id)

    @staticmethod
    def _validate(owner_id: str, amount: int) -> None:
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required", field="owner_id")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("amount must be a positive integer", field="amount")
