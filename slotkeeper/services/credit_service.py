# slotkeeper/services/credit_service.py
"""
Credit balances.

``debit_one``/``add_credits`` run inside the caller's transaction and lock the
``(customer, credit_type)`` row first; ``grant_credits`` is the admin entry
point and owns its transaction.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import PermissionName
from ..core.exceptions import InsufficientCreditsException, ValidationException
from ..core.permissions import Actor, ensure_permission
from ..models.credit import CreditBalance
from ..repositories.credit_repository import CreditBalanceRepository
from .base import BaseService


class CreditService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        balance_repository: Optional[CreditBalanceRepository] = None,
    ):
        super().__init__(db, clock)
        self.repository = balance_repository or CreditBalanceRepository(db)

    def get_balances(self, customer_id: str) -> List[CreditBalance]:
        return self.repository.list_for_customer(customer_id)

    def remaining(self, customer_id: str, credit_type: str) -> int:
        balance = self.repository.get_balance(customer_id, credit_type)
        return balance.credits_remaining if balance else 0

    def debit_one(self, customer_id: str, credit_type: str) -> CreditBalance:
        """Take one credit; raises InsufficientCreditsException without mutating anything."""
        balance = self.repository.get_balance(customer_id, credit_type, for_update=True)
        remaining = balance.credits_remaining if balance else 0
        if balance is None or remaining < 1:
            raise InsufficientCreditsException(credit_type, remaining)
        self.repository.update(
            balance,
            credits_remaining=balance.credits_remaining - 1,
            updated_at=self.now(),
        )
        return balance

    def add_credits(self, customer_id: str, credit_type: str, credits: int) -> CreditBalance:
        if credits < 1:
            raise ValidationException("credits must be a positive number")
        balance = self.repository.get_balance(customer_id, credit_type, for_update=True)
        if balance is None:
            return self.repository.create(
                customer_id=customer_id,
                credit_type=credit_type,
                credits_remaining=credits,
                credits_total=credits,
                updated_at=self.now(),
            )
        return self.repository.update(
            balance,
            credits_remaining=balance.credits_remaining + credits,
            credits_total=balance.credits_total + credits,
            updated_at=self.now(),
        )

    @BaseService.measure_operation("grant_credits")
    def grant_credits(
        self, actor: Actor, customer_id: str, credit_type: str, credits: int
    ) -> CreditBalance:
        ensure_permission(actor, PermissionName.MANAGE_CREDITS)
        with self.transaction():
            balance = self.add_credits(customer_id, credit_type, credits)
        self.log_operation(
            "grant_credits",
            customer_id=customer_id,
            credit_type=credit_type,
            credits=credits,
            granted_by=actor.user_id,
        )
        return balance
