from datetime import time, timedelta

from slotkeeper.models.credit import CreditBalance


def test_create_resource_and_publish_template(client, auth_headers, admin, booking_day):
    res = client.post(
        "/api/v1/admin/resources",
        json={"name": "Room 7", "hourly_rate": "450.00", "max_participants": 3},
        headers=auth_headers(admin),
    )
    assert res.status_code == 201
    resource_id = res.json()["id"]
    assert res.json()["currency"] == "SEK"

    res = client.put(
        f"/api/v1/admin/resources/{resource_id}/template",
        json={"windows": [{"day_of_week": 0, "start_time": "12:00", "end_time": "13:00"}]},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.json()[0]["start_time"] == "12:00:00"

    slots = client.get(
        "/api/v1/availability", params={"resource_id": resource_id, "date": booking_day.isoformat()}
    )
    assert slots.json()["slots"] == [{"start_time": "12:00", "end_time": "13:00"}]


def test_overlapping_template_is_rejected(client, auth_headers, admin, resource):
    res = client.put(
        f"/api/v1/admin/resources/{resource.id}/template",
        json={
            "windows": [
                {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
                {"day_of_week": 1, "start_time": "09:30", "end_time": "10:30"},
            ]
        },
        headers=auth_headers(admin),
    )
    assert res.status_code == 400


def test_block_and_unblock_date(client, auth_headers, admin, resource, booking_day):
    res = client.post(
        f"/api/v1/admin/resources/{resource.id}/blocked-ranges",
        json={"date": booking_day.isoformat(), "reason": "Maintenance"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 201
    assert res.json()["is_all_day"] is True
    block_id = res.json()["id"]

    params = {"resource_id": resource.id, "date": booking_day.isoformat()}
    assert client.get("/api/v1/availability", params=params).json()["slots"] == []

    res = client.delete(
        f"/api/v1/admin/resources/blocked-ranges/{block_id}", headers=auth_headers(admin)
    )
    assert res.status_code == 204
    assert len(client.get("/api/v1/availability", params=params).json()["slots"]) == 3


def test_half_open_block_request_is_422(client, auth_headers, admin, resource, booking_day):
    res = client.post(
        f"/api/v1/admin/resources/{resource.id}/blocked-ranges",
        json={"date": booking_day.isoformat(), "start_time": "09:00"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 422


def test_extra_slot_lifecycle(client, auth_headers, admin, resource, booking_day):
    sunday = booking_day + timedelta(days=6)
    res = client.post(
        f"/api/v1/admin/resources/{resource.id}/extra-slots",
        json={"date": sunday.isoformat(), "start_time": "10:00", "end_time": "11:00"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 201
    slot_id = res.json()["id"]

    params = {"resource_id": resource.id, "date": sunday.isoformat()}
    assert client.get("/api/v1/availability", params=params).json()["slots"] == [
        {"start_time": "10:00", "end_time": "11:00"}
    ]
    res = client.delete(
        f"/api/v1/admin/resources/extra-slots/{slot_id}", headers=auth_headers(admin)
    )
    assert res.status_code == 204
    assert client.get("/api/v1/availability", params=params).json()["slots"] == []


def test_schedule_requires_admin(client, auth_headers, teacher):
    res = client.post(
        "/api/v1/admin/resources",
        json={"name": "Room 8", "hourly_rate": "100"},
        headers=auth_headers(teacher),
    )
    assert res.status_code == 403


def test_move_reservation(client, auth_headers, book, admin, booking_day):
    reservation, _ = book()
    res = client.post(
        f"/api/v1/admin/reservations/{reservation.id}/move",
        json={"date": booking_day.isoformat(), "start_time": "09:00", "end_time": "09:40"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.json()["start_time"] == "09:00:00"


def test_move_onto_taken_slot_is_409(client, auth_headers, book, admin, other_student, booking_day):
    reservation, _ = book()
    book(other_student, start=time(9, 0), end=time(9, 40))
    res = client.post(
        f"/api/v1/admin/reservations/{reservation.id}/move",
        json={"date": booking_day.isoformat(), "start_time": "09:00", "end_time": "09:40"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 409


def test_bulk_unbook(client, auth_headers, book, admin, student, db):
    reservation, _ = book()
    res = client.post(
        "/api/v1/admin/reservations/bulk-unbook",
        json={"reservation_ids": [reservation.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ"]},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["successful"] == 1
    assert body["failed"] == 1
    assert body["results"][0]["credit_refunded"] is True
    balance = db.query(CreditBalance).filter_by(customer_id=student.user_id).one()
    assert balance.credits_remaining == 1


def test_bulk_unbook_needs_ids(client, auth_headers, admin):
    res = client.post(
        "/api/v1/admin/reservations/bulk-unbook",
        json={"reservation_ids": []},
        headers=auth_headers(admin),
    )
    assert res.status_code == 422


def test_admin_cancel_and_complete(client, auth_headers, book, admin, reconciliation_service):
    first, _ = book()
    res = client.post(
        f"/api/v1/admin/reservations/{first.id}/cancel", headers=auth_headers(admin)
    )
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"

    second, _ = book(start=time(9, 0), end=time(9, 40))
    reconciliation_service.confirm_payment(admin, second.id)
    res = client.post(
        f"/api/v1/admin/reservations/{second.id}/complete", headers=auth_headers(admin)
    )
    assert res.json()["status"] == "completed"


def test_grant_credits_and_create_package(client, auth_headers, admin, student):
    res = client.post(
        "/api/v1/admin/credits/grant",
        json={"customer_id": student.user_id, "credits": 4},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.json()["credits_remaining"] == 4

    res = client.post(
        "/api/v1/admin/packages",
        json={"name": "Group pass", "credit_type": "group", "credits": 8, "price": "1200"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 201
    assert res.json()["credit_type"] == "group"


def test_teacher_unbooks_with_refund(client, auth_headers, book, teacher):
    reservation, _ = book()
    res = client.post(
        f"/api/v1/teacher/reservations/{reservation.id}/unbook",
        json={"reason": "teacher ill"},
        headers=auth_headers(teacher),
    )
    assert res.status_code == 200
    assert res.json() == {
        "reservation_id": reservation.id,
        "success": True,
        "credit_refunded": True,
        "error": None,
    }


def test_teacher_completes_confirmed_lesson(
    client, auth_headers, book, teacher, admin, reconciliation_service
):
    reservation, _ = book()
    unpaid = client.post(
        f"/api/v1/teacher/reservations/{reservation.id}/complete", headers=auth_headers(teacher)
    )
    assert unpaid.status_code == 409

    reconciliation_service.confirm_payment(admin, reservation.id)
    res = client.post(
        f"/api/v1/teacher/reservations/{reservation.id}/complete", headers=auth_headers(teacher)
    )
    assert res.status_code == 200
    assert res.json()["status"] == "completed"


def test_student_cannot_unbook(client, auth_headers, book, student):
    reservation, _ = book()
    res = client.post(
        f"/api/v1/teacher/reservations/{reservation.id}/unbook", headers=auth_headers(student)
    )
    assert res.status_code == 403


def test_health_and_metrics(client):
    health = client.get("/api/v1/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    metrics = client.get("/api/v1/metrics")
    assert metrics.status_code == 200
    assert "slotkeeper" in metrics.text
