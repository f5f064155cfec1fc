from pydantic import SecretStr

from slotkeeper.core.config import settings

REAP_URL = "/api/v1/reap"


def test_requires_bearer_secret(client):
    assert client.post(REAP_URL).status_code == 401
    assert client.post(REAP_URL, headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.post(REAP_URL, headers={"Authorization": "Basic xyz"}).status_code == 401


def test_disabled_without_configured_secret(client, monkeypatch, reaper_secret):
    monkeypatch.setattr(settings, "reaper_secret", SecretStr(""))
    res = client.post(REAP_URL, headers={"Authorization": f"Bearer {reaper_secret}"})
    assert res.status_code == 401


def test_releases_stale_holds(client, book, clock, reaper_secret, db):
    reservation, _ = book()
    clock.advance(minutes=16)

    res = client.post(REAP_URL, headers={"Authorization": f"Bearer {reaper_secret}"})

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "cutoff_minutes": 15,
        "deleted": {"temp": 1, "on_hold": 0, "total": 1},
    }
    db.refresh(reservation)
    assert reservation.status == "cancelled"


def test_custom_minutes(client, book, clock, reaper_secret):
    book()
    clock.advance(minutes=3)
    res = client.post(
        REAP_URL, params={"minutes": 2}, headers={"Authorization": f"Bearer {reaper_secret}"}
    )
    assert res.json()["cutoff_minutes"] == 2
    assert res.json()["deleted"]["total"] == 1


def test_minutes_out_of_range(client, reaper_secret):
    res = client.post(
        REAP_URL, params={"minutes": 0}, headers={"Authorization": f"Bearer {reaper_secret}"}
    )
    assert res.status_code == 422


def test_statistics(client, book, clock, reaper_secret):
    book()
    clock.advance(minutes=20)
    res = client.get(REAP_URL, headers={"Authorization": f"Bearer {reaper_secret}"})
    assert res.status_code == 200
    assert res.json() == {
        "cutoff_minutes": 15,
        "active": {"temp": 1, "on_hold": 0},
        "stale": {"temp": 1, "on_hold": 0},
    }
