# slotkeeper/services/package_service.py
"""
Credit package purchases.

A purchase is created with its invoice, then a checkout order is opened for
``package_<id>``. Credits are granted by the reconciliation engine when the
provider reports the order paid.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import PaymentStatus, PermissionName
from ..core.exceptions import NotFoundException, ServiceException, ValidationException
from ..core.permissions import Actor, ensure_permission
from ..integrations.checkout_client import CheckoutClient, CheckoutProviderError
from ..models.credit import CreditPackage
from ..repositories.credit_repository import CreditPackageRepository, PackagePurchaseRepository
from .base import BaseService
from .invoice_service import InvoiceService


@dataclass
class PackageCheckout:
    purchase_id: str
    invoice_number: str
    order_id: str
    payment_url: Optional[str]


class PackageService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        checkout_client: Optional[CheckoutClient] = None,
        invoice_service: Optional[InvoiceService] = None,
    ):
        super().__init__(db, clock)
        self.checkout_client = checkout_client
        self.invoices = invoice_service or InvoiceService(db, self.clock)
        self.packages = CreditPackageRepository(db)
        self.purchases = PackagePurchaseRepository(db)

    def list_packages(self) -> List[CreditPackage]:
        return self.packages.list_active()

    @BaseService.measure_operation("create_package")
    def create_package(
        self,
        actor: Actor,
        *,
        name: str,
        credit_type: str,
        credits: int,
        price: Decimal,
        currency: Optional[str] = None,
    ) -> CreditPackage:
        ensure_permission(actor, PermissionName.MANAGE_CREDITS)
        if credits < 1:
            raise ValidationException("A package must contain at least one credit")
        with self.transaction():
            package = self.packages.create(
                name=name,
                credit_type=credit_type,
                credits=credits,
                price=price,
                currency=currency or settings.default_currency,
                is_active=True,
            )
        return package

    @BaseService.measure_operation("purchase_package")
    def purchase_package(self, actor: Actor, package_id: str) -> PackageCheckout:
        ensure_permission(actor, PermissionName.PURCHASE_PACKAGE)
        if actor.user_id is None:
            raise ValidationException("Buying a package requires a customer account")
        if self.checkout_client is None:
            raise ServiceException(
                "Checkout payments are not configured", code="CHECKOUT_NOT_CONFIGURED"
            )

        with self.transaction():
            package = self.packages.get_by_id(package_id)
            if package is None or not package.is_active:
                raise NotFoundException(f"Package {package_id} not found")
            purchase = self.purchases.create(
                customer_id=actor.user_id,
                package_id=package.id,
                credit_type=package.credit_type,
                credits=package.credits,
                amount=package.price,
                currency=package.currency,
                payment_status=PaymentStatus.UNPAID.value,
                created_at=self.now(),
            )
            invoice = self.invoices.issue_for_package_purchase(purchase, f"Package: {package.name}")

        try:
            order = self.checkout_client.create_order(
                merchant_reference=purchase.merchant_reference,
                amount=purchase.amount,
                currency=purchase.currency,
                description=f"Package: {package.name}",
                return_url=settings.checkout_return_url,
            )
        except CheckoutProviderError as exc:
            raise ServiceException(
                "The payment provider could not create an order",
                code="CHECKOUT_PROVIDER_ERROR",
                details={"purchase_id": purchase.id, "status_code": exc.status_code},
            ) from exc

        order_id = str(order.get("OrderId") or "")
        if not order_id:
            raise ServiceException(
                "The payment provider returned no order id", code="CHECKOUT_PROVIDER_ERROR"
            )
        with self.transaction():
            self.purchases.update(purchase, checkout_order_id=order_id, updated_at=self.now())

        self.log_operation("purchase_package", purchase_id=purchase.id, order_id=order_id)
        return PackageCheckout(
            purchase_id=purchase.id,
            invoice_number=invoice.invoice_number,
            order_id=order_id,
            payment_url=order.get("PaymentLink"),
        )
