import inspect
import json

from slotkeeper.integrations.checkout_client import SIGNATURE_HEADER
from slotkeeper.routes.v1.webhooks_checkout import handle_checkout_webhook

WEBHOOK_URL = "/api/v1/webhooks/checkout"


def _post(client, sign, payload, signature=None):
    raw = json.dumps(payload).encode()
    return client.post(
        WEBHOOK_URL,
        content=raw,
        headers={
            "Content-Type": "application/json",
            SIGNATURE_HEADER: signature if signature is not None else sign(raw),
        },
    )


def test_paid_delivery_is_accepted(client, sign, book, reconciliation_service, student, db):
    reservation, _ = book()
    session = reconciliation_service.start_checkout(student, reservation.id)

    res = _post(client, sign, {"OrderId": session.order_id, "Status": "Paid", "EventId": "e1"})

    assert res.status_code == 202
    assert res.json() == {"ok": True, "outcome": "applied", "reason": None}
    db.refresh(reservation)
    assert reservation.payment_status == "paid"

    again = _post(client, sign, {"OrderId": session.order_id, "Status": "Paid", "EventId": "e1"})
    assert again.status_code == 202
    assert again.json()["outcome"] == "already_applied"


def test_unknown_order_is_acknowledged_with_200(client, sign):
    res = _post(client, sign, {"OrderId": "ORD-404", "Status": "Paid"})
    assert res.status_code == 200
    assert res.json() == {"ok": True, "outcome": "ignored", "reason": "unknown_order"}


def test_bad_signature_is_401(client, sign):
    res = _post(client, sign, {"OrderId": "ORD-1", "Status": "Paid"}, signature="sha256=00")
    assert res.status_code == 401
    assert res.json()["code"] == "INVALID_SIGNATURE"


def test_missing_signature_is_401(client):
    res = client.post(WEBHOOK_URL, content=b'{"OrderId": "ORD-1", "Status": "Paid"}')
    assert res.status_code == 401


def test_malformed_body_is_400(client, sign):
    raw = b"{not json"
    res = client.post(WEBHOOK_URL, content=raw, headers={SIGNATURE_HEADER: sign(raw)})
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


def test_unusable_amount_is_acknowledged_without_paying(
    client, sign, book, reconciliation_service, student, db
):
    reservation, _ = book()
    session = reconciliation_service.start_checkout(student, reservation.id)

    res = _post(
        client, sign, {"OrderId": session.order_id, "Status": "Paid", "TotalPrice": "Infinity"}
    )

    assert res.status_code == 200
    assert res.json()["reason"] == "amount_mismatch"
    db.refresh(reservation)
    assert reservation.payment_status == "unpaid"


def test_handler_runs_in_the_request_threadpool():
    # Sync handler, run in the threadpool like every other route.
    assert not inspect.iscoroutinefunction(handle_checkout_webhook)
