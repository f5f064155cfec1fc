from slotkeeper import database
from slotkeeper.models.reservation import Reservation
from slotkeeper.tasks import reaper_tasks
from slotkeeper.tasks.celery_app import celery_app


def test_task_is_registered_and_scheduled():
    assert "slotkeeper.tasks.reaper_tasks.release_stale_holds" in celery_app.tasks
    entry = celery_app.conf.beat_schedule["release-stale-holds"]
    assert entry["task"] == "slotkeeper.tasks.reaper_tasks.release_stale_holds"


def test_task_releases_holds_with_its_own_session(book, session_factory, monkeypatch):
    # Holds are created on the frozen 2025 clock; the task runs on wall-clock time.
    reservation, _ = book()
    monkeypatch.setattr(database, "SessionLocal", session_factory)

    counts = reaper_tasks.release_stale_holds(minutes=15)

    assert counts == {"temp": 1, "on_hold": 0, "total": 1}
    check = session_factory()
    try:
        assert check.get(Reservation, reservation.id).status == "cancelled"
    finally:
        check.close()


def test_task_with_nothing_to_do(session_factory, monkeypatch):
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    assert reaper_tasks.release_stale_holds()["total"] == 0
