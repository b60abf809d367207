"""
Service catalog tests: seeding, listing, rate edits.
"""

from decimal import Decimal

from ppp import models
from ppp.routers.services import seed_towing_services


def test_catalog_seeded_once(db):
    assert db.query(models.TowingService).count() == len(models.DEFAULT_SERVICES) == 19
    # Second seed is a no-op
    assert seed_towing_services(db) == 0
    assert db.query(models.TowingService).count() == 19


def test_list_services(client, auth_headers):
    resp = client.get("/api/services/", headers=auth_headers)
    assert resp.status_code == 200
    services = resp.json()
    assert len(services) == 19
    assert services[0] == {"id": 1, "name": "Normal Recovery (On or Near Highway)", "rate": 4.0}
    assert services[-1]["name"] == "70+ MPH Collision Factor"
    assert services[-1]["rate"] == 5.0


def test_admin_updates_rate_from_text(client, admin_headers, db):
    resp = client.patch("/api/services/3", json={"rate": "6.25"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["rate"] == 6.25

    row = db.query(models.TowingService).filter(models.TowingService.id == 3).first()
    assert row.rate == Decimal("6.25")
    assert row.name == "Salvage/Debris Recovery"


def test_admin_updates_rate_from_number(client, admin_headers):
    resp = client.patch("/api/services/1", json={"rate": 4.5}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["rate"] == 4.5


def test_invalid_rate_rejected(client, admin_headers):
    assert client.patch("/api/services/1", json={"rate": "abc"}, headers=admin_headers).status_code == 400
    assert client.patch("/api/services/1", json={"rate": -1}, headers=admin_headers).status_code == 400
    assert client.patch("/api/services/1", json={"rate": 1000}, headers=admin_headers).status_code == 400


def test_unknown_service_404(client, admin_headers):
    assert client.patch("/api/services/999", json={"rate": 2}, headers=admin_headers).status_code == 404


def test_regular_user_cannot_edit_rates(client, auth_headers):
    assert client.patch("/api/services/1", json={"rate": 9}, headers=auth_headers).status_code == 403


def test_rate_edit_changes_recomputed_invoice(client, admin_headers, auth_headers, job_id):
    client.post(f"/api/jobs/{job_id}/invoice", json={
        "selected_services": {"1": True},
    }, headers=auth_headers)

    client.patch("/api/services/1", json={"rate": "8.0"}, headers=admin_headers)

    invoice = client.get(f"/api/jobs/{job_id}/invoice", headers=auth_headers).json()
    # 5000 lbs at 8.0c/lb
    assert invoice["subtotal"] == 400.0


def test_rate_range_checked_after_rounding(client, admin_headers):
    # 999.996 rounds to 1000.00, which does not fit Numeric(5, 2)
    assert client.patch("/api/services/1", json={"rate": 999.996}, headers=admin_headers).status_code == 400
    assert client.patch("/api/services/1", json={"rate": "999.996"}, headers=admin_headers).status_code == 400

    resp = client.patch("/api/services/1", json={"rate": 999.994}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["rate"] == 999.99
