# slotkeeper/repositories/credit_repository.py
"""Credit balances, packages and package purchases."""

from typing import List, Optional

from sqlalchemy.orm import Session

from slotkeeper.models.credit import CreditBalance, CreditPackage, PackagePurchase
from slotkeeper.repositories.base_repository import BaseRepository


class CreditBalanceRepository(BaseRepository[CreditBalance]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, CreditBalance)

    def get_balance(
        self, customer_id: str, credit_type: str, *, for_update: bool = False
    ) -> Optional[CreditBalance]:
        query = self._build_query().filter(
            CreditBalance.customer_id == customer_id,
            CreditBalance.credit_type == credit_type,
        )
        if for_update:
            query = query.populate_existing().with_for_update()
        return self._execute_first(query)

    def list_for_customer(self, customer_id: str) -> List[CreditBalance]:
        query = (
            self._build_query()
            .filter(CreditBalance.customer_id == customer_id)
            .order_by(CreditBalance.credit_type)
        )
        return self._execute_query(query)


class CreditPackageRepository(BaseRepository[CreditPackage]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, CreditPackage)

    def list_active(self) -> List[CreditPackage]:
        query = self._build_query().filter(CreditPackage.is_active.is_(True)).order_by(
            CreditPackage.price
        )
        return self._execute_query(query)


class PackagePurchaseRepository(BaseRepository[PackagePurchase]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, PackagePurchase)

    def get_by_checkout_order_id(
        self, order_id: str, *, for_update: bool = False
    ) -> Optional[PackagePurchase]:
        query = self._build_query().filter(PackagePurchase.checkout_order_id == order_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return self._execute_first(query)
