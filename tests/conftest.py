"""
Shared fixtures.

Every test gets its own in-memory SQLite database and a frozen clock set to
Monday 2025-01-20 08:00 UTC. Services under test share that clock so hold
expiry can be driven with ``clock.advance(minutes=...)``.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
import json
from typing import Any, Callable, Dict, List, Optional

from fastapi.testclient import TestClient
import httpx
from pydantic import SecretStr
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from slotkeeper.api.dependencies import (
    get_checkout_client,
    get_clock,
    get_db,
    get_hold_reaper_service,
    get_payment_reconciliation_service,
)
from slotkeeper.core.clock import FrozenClock
from slotkeeper.core.config import settings
from slotkeeper.core.enums import RoleName
from slotkeeper.core.permissions import Actor
from slotkeeper.database import Base
from slotkeeper.integrations.checkout_client import CheckoutClient, compute_signature
from slotkeeper.main import app
import slotkeeper.models  # noqa: F401
from slotkeeper.models.credit import CreditBalance, CreditPackage
from slotkeeper.models.resource import AvailabilityWindow, Resource
from slotkeeper.services.availability_service import AvailabilityService
from slotkeeper.services.credit_service import CreditService
from slotkeeper.services.hold_reaper_service import HoldReaperService
from slotkeeper.services.package_service import PackageService
from slotkeeper.services.payment_reconciliation_service import PaymentReconciliationService
from slotkeeper.services.reservation_service import ReservationService
from slotkeeper.services.schedule_service import ScheduleService

WEBHOOK_SECRET = "whsec_test_secret"
REAPER_SECRET = "reaper-test-secret"
START_OF_TEST = datetime(2025, 1, 20, 8, 0, tzinfo=timezone.utc)
# A Monday one week after START_OF_TEST.
BOOKING_DAY = date(2025, 1, 27)
STUDENT_ID = "01JSTUDENT000000000000000A"
OTHER_STUDENT_ID = "01JSTUDENT000000000000000B"
TEACHER_ID = "01JTEACHER000000000000000A"
ADMIN_ID = "01JADMIN000000000000000000"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START_OF_TEST)


# Actors


@pytest.fixture
def admin() -> Actor:
    return Actor(role=RoleName.ADMIN, user_id=ADMIN_ID)


@pytest.fixture
def teacher() -> Actor:
    return Actor(role=RoleName.TEACHER, user_id=TEACHER_ID)


@pytest.fixture
def student() -> Actor:
    return Actor(role=RoleName.STUDENT, user_id=STUDENT_ID)


@pytest.fixture
def other_student() -> Actor:
    return Actor(role=RoleName.STUDENT, user_id=OTHER_STUDENT_ID)


@pytest.fixture
def guest() -> Actor:
    return Actor.guest()


# Data


@pytest.fixture
def resource(db) -> Resource:
    """Resource priced 600/h with three Monday windows."""
    resource = Resource(
        name="Studio A",
        hourly_rate=Decimal("600.00"),
        currency="SEK",
        max_participants=2,
        is_active=True,
        created_at=START_OF_TEST,
    )
    db.add(resource)
    db.flush()
    windows = ((time(8, 15), time(8, 55)), (time(9, 0), time(9, 40)), (time(10, 0), time(10, 40)))
    for start, end in windows:
        db.add(
            AvailabilityWindow(
                resource_id=resource.id,
                day_of_week=0,
                start_time=start,
                end_time=end,
                is_active=True,
            )
        )
    db.commit()
    return resource


@pytest.fixture
def grant_credits(db) -> Callable[[str, int, str], CreditBalance]:
    def _grant(customer_id: str, credits: int, credit_type: str = "lesson") -> CreditBalance:
        balance = CreditBalance(
            customer_id=customer_id,
            credit_type=credit_type,
            credits_remaining=credits,
            credits_total=credits,
        )
        db.add(balance)
        db.commit()
        return balance

    return _grant


@pytest.fixture
def credit_package(db) -> CreditPackage:
    package = CreditPackage(
        name="Ten lessons",
        credit_type="lesson",
        credits=10,
        price=Decimal("4500.00"),
        currency="SEK",
        is_active=True,
    )
    db.add(package)
    db.commit()
    return package


# Checkout provider


class FakeCheckoutProvider:
    """Records requests and answers like the provider's order API."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.fail_with: Optional[int] = None
        self._counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"ErrorCode": "Unavailable"})
        if request.method == "POST" and request.url.path.endswith("/orders"):
            self._counter += 1
            order_id = f"ORD-{self._counter}"
            body = json.loads(request.content)
            self.orders[order_id] = {**body, "OrderId": order_id, "Status": "InProcess"}
            return httpx.Response(
                201,
                json={"OrderId": order_id, "PaymentLink": f"https://pay.example/{order_id}"},
            )
        order_id = request.url.path.rsplit("/", 1)[-1]
        order = self.orders.get(order_id)
        if order is None:
            return httpx.Response(404, json={"ErrorCode": "OrderNotFound"})
        return httpx.Response(200, json=order)


@pytest.fixture
def checkout_provider() -> FakeCheckoutProvider:
    return FakeCheckoutProvider()


@pytest.fixture
def checkout_client(checkout_provider) -> CheckoutClient:
    return CheckoutClient(
        api_key="test-api-key",
        base_url="https://checkout.example/api",
        transport=httpx.MockTransport(checkout_provider.handler),
    )


@pytest.fixture
def sign() -> Callable[[bytes], str]:
    def _sign(raw_body: bytes) -> str:
        return compute_signature(WEBHOOK_SECRET, raw_body)

    return _sign


# Services


@pytest.fixture
def availability_service(db, clock) -> AvailabilityService:
    return AvailabilityService(db, clock)


@pytest.fixture
def reservation_service(db, clock) -> ReservationService:
    return ReservationService(db, clock)


@pytest.fixture
def reconciliation_service(db, clock, reservation_service, checkout_client):
    return PaymentReconciliationService(
        db,
        clock,
        reservation_service=reservation_service,
        checkout_client=checkout_client,
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def reaper_service(db, clock, reservation_service) -> HoldReaperService:
    return HoldReaperService(
        db, clock, reservation_service=reservation_service, default_cutoff_minutes=15
    )


@pytest.fixture
def credit_service(db, clock) -> CreditService:
    return CreditService(db, clock)


@pytest.fixture
def package_service(db, clock, checkout_client) -> PackageService:
    return PackageService(db, clock, checkout_client=checkout_client)


@pytest.fixture
def schedule_service(db, clock) -> ScheduleService:
    return ScheduleService(db, clock)


@pytest.fixture
def book(reservation_service, resource, student):
    """Create a reservation on BOOKING_DAY; defaults to the 08:15 slot for the student."""

    def _book(
        actor: Optional[Actor] = None,
        start: time = time(8, 15),
        end: time = time(8, 55),
        **kwargs: Any,
    ):
        actor = actor or student
        if actor.user_id is None:
            kwargs.setdefault("guest_name", "Guest Person")
            kwargs.setdefault("guest_email", "guest@example.com")
        return reservation_service.create_reservation(
            actor,
            resource_id=resource.id,
            booking_date=BOOKING_DAY,
            start_time=start,
            end_time=end,
            **kwargs,
        )

    return _book


@pytest.fixture
def booking_day() -> date:
    return BOOKING_DAY


@pytest.fixture
def webhook_secret() -> str:
    return WEBHOOK_SECRET


# HTTP


@pytest.fixture
def client(
    db, clock, checkout_client, reconciliation_service, reaper_service, monkeypatch
) -> TestClient:
    """TestClient bound to the test session, frozen clock and fake checkout provider."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    monkeypatch.setattr(settings, "reaper_secret", SecretStr(REAPER_SECRET))
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_checkout_client] = lambda: checkout_client
    app.dependency_overrides[get_payment_reconciliation_service] = lambda: reconciliation_service
    app.dependency_overrides[get_hold_reaper_service] = lambda: reaper_service

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def auth_headers() -> Callable[[Actor], Dict[str, str]]:
    """Identity headers the upstream auth layer would forward for ``actor``."""

    def _headers(actor: Actor) -> Dict[str, str]:
        if actor.user_id is None:
            return {}
        return {"X-User-Id": actor.user_id, "X-User-Role": actor.role.value}

    return _headers


@pytest.fixture
def reaper_secret() -> str:
    return REAPER_SECRET
