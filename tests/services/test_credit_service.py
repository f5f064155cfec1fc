import pytest

from slotkeeper.core.exceptions import (
    ForbiddenException,
    InsufficientCreditsException,
    ValidationException,
)


def test_grant_creates_balance(credit_service, admin, student):
    balance = credit_service.grant_credits(admin, student.user_id, "lesson", 5)
    assert balance.credits_remaining == 5
    assert balance.credits_total == 5


def test_grant_adds_to_existing_balance(credit_service, admin, student, grant_credits):
    grant_credits(student.user_id, 2)
    balance = credit_service.grant_credits(admin, student.user_id, "lesson", 3)
    assert balance.credits_remaining == 5
    assert balance.credits_total == 5


def test_balances_are_per_credit_type(credit_service, admin, student):
    credit_service.grant_credits(admin, student.user_id, "lesson", 1)
    credit_service.grant_credits(admin, student.user_id, "group", 4)
    assert credit_service.remaining(student.user_id, "lesson") == 1
    assert credit_service.remaining(student.user_id, "group") == 4
    assert credit_service.remaining(student.user_id, "private") == 0
    assert {b.credit_type for b in credit_service.get_balances(student.user_id)} == {
        "lesson",
        "group",
    }


def test_grant_requires_positive_amount(credit_service, admin, student):
    with pytest.raises(ValidationException):
        credit_service.grant_credits(admin, student.user_id, "lesson", 0)


def test_only_admin_grants(credit_service, teacher, student):
    with pytest.raises(ForbiddenException):
        credit_service.grant_credits(teacher, student.user_id, "lesson", 1)


def test_debit_without_balance(credit_service, student):
    with pytest.raises(InsufficientCreditsException):
        credit_service.debit_one(student.user_id, "lesson")


def test_debit_stops_at_zero(credit_service, student, grant_credits, db):
    grant_credits(student.user_id, 1)
    credit_service.debit_one(student.user_id, "lesson")
    db.commit()
    with pytest.raises(InsufficientCreditsException):
        credit_service.debit_one(student.user_id, "lesson")
    assert credit_service.remaining(student.user_id, "lesson") == 0
