# Overview: Pytest coverage for the seller payment API and the admin review API.

"""
End-to-end payment workflow over HTTP:

seller posts a Standard ad "Bike" in vehicles
-> submits "Ali" / "Easypaisa" / "TX123"
-> admin approves (ad public) or rejects with "blurry screenshot" (ad rejected)
"""

import pytest


@pytest.fixture
def standard_ad(client, seller_headers, categories):
    resp = client.post("/api/ads", json={
        "title": "Bike",
        "category_id": categories["vehicles"].id,
        "price": 150,
        "package": "Standard",
    }, headers=seller_headers)
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def submitted(client, seller_headers, standard_ad):
    resp = client.post("/api/payments", json={
        "ad_id": standard_ad["id"],
        "sender_name": "Ali",
        "bank_name": "Easypaisa",
        "transaction_id": "TX123",
    }, headers=seller_headers)
    assert resp.status_code == 201
    return resp.get_json()


def test_instructions_are_public(client):
    resp = client.get("/api/payments/instructions")
    assert resp.status_code == 200
    assert set(resp.get_json()) == {"bank_name", "account_number", "account_title"}


class TestSubmitPaymentApi:

    def test_submit(self, submitted, standard_ad):
        assert submitted["status"] == "pending"
        assert submitted["ad_id"] == standard_ad["id"]
        assert submitted["transaction_id"] == "TX123"

    def test_duplicate_pending_conflicts(self, client, seller_headers, standard_ad, submitted):
        resp = client.post("/api/payments", json={
            "ad_id": standard_ad["id"],
            "sender_name": "Ali",
            "bank_name": "Easypaisa",
            "transaction_id": "TX124",
        }, headers=seller_headers)
        assert resp.status_code == 409

    def test_missing_fields(self, client, seller_headers, standard_ad):
        resp = client.post("/api/payments", json={"ad_id": standard_ad["id"]}, headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"].startswith("Missing required fields")

    def test_free_ad_rejected(self, client, seller_headers, categories):
        ad = client.post("/api/ads", json={
            "title": "Lamp", "category_id": categories["home-garden"].id,
        }, headers=seller_headers).get_json()

        resp = client.post("/api/payments", json={
            "ad_id": ad["id"],
            "sender_name": "Ali",
            "bank_name": "Easypaisa",
            "transaction_id": "TX1",
        }, headers=seller_headers)
        assert resp.status_code == 400

    def test_other_sellers_ad_not_found(self, client, other_seller_headers, standard_ad):
        resp = client.post("/api/payments", json={
            "ad_id": standard_ad["id"],
            "sender_name": "Mallory",
            "bank_name": "Easypaisa",
            "transaction_id": "TX666",
        }, headers=other_seller_headers)
        assert resp.status_code == 404

    def test_mine_and_by_ad(self, client, seller_headers, other_seller_headers, standard_ad, submitted):
        mine = client.get("/api/payments/mine", headers=seller_headers).get_json()
        assert mine["count"] == 1
        assert mine["payments"][0]["ad_title"] == "Bike"

        by_ad = client.get(f"/api/payments/ad/{standard_ad['id']}", headers=seller_headers)
        assert by_ad.status_code == 200
        assert by_ad.get_json()["id"] == submitted["id"]

        assert client.get(f"/api/payments/ad/{standard_ad['id']}", headers=other_seller_headers).status_code == 404


class TestReviewApi:

    def test_pending_queue(self, client, admin_headers, submitted):
        body = client.get("/api/admin/payments/pending", headers=admin_headers).get_json()
        assert body["count"] == 1
        entry = body["payments"][0]
        assert entry["id"] == submitted["id"]
        assert entry["user_name"] == "Sara Seller"
        assert entry["package"] == "Standard"

    def test_approve_publishes(self, client, admin_headers, standard_ad, submitted):
        resp = client.post(f"/api/admin/payments/{submitted['id']}/approve", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["payment"]["status"] == "verified"
        assert resp.get_json()["payment"]["ad_status"] == "approved"

        public = client.get("/api/ads").get_json()
        assert [a["id"] for a in public["ads"]] == [standard_ad["id"]]

        again = client.post(f"/api/admin/payments/{submitted['id']}/approve", headers=admin_headers)
        assert again.status_code == 400

    def test_reject_requires_note(self, client, admin_headers, submitted):
        resp = client.post(f"/api/admin/payments/{submitted['id']}/reject", json={}, headers=admin_headers)
        assert resp.status_code == 400

        still_pending = client.get("/api/admin/payments?status=pending", headers=admin_headers).get_json()
        assert still_pending["count"] == 1

    def test_reject_with_note(self, client, admin_headers, seller_headers, standard_ad, submitted):
        resp = client.post(
            f"/api/admin/payments/{submitted['id']}/reject",
            json={"admin_note": "blurry screenshot"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        payment = resp.get_json()["payment"]
        assert payment["status"] == "rejected"
        assert payment["admin_note"] == "blurry screenshot"

        mine = client.get("/api/ads/mine", headers=seller_headers).get_json()["ads"]
        assert mine[0]["status"] == "rejected"
        assert mine[0]["rejection_reason"] == "blurry screenshot"

    def test_note_edit_after_review(self, client, admin_headers, submitted):
        client.post(f"/api/admin/payments/{submitted['id']}/approve", headers=admin_headers)

        resp = client.patch(
            f"/api/admin/payments/{submitted['id']}/note",
            json={"admin_note": "Matched statement"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["admin_note"] == "Matched statement"

    def test_note_must_be_string(self, client, admin_headers, submitted):
        resp = client.post(
            f"/api/admin/payments/{submitted['id']}/reject",
            json={"admin_note": 42},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_unknown_status_filter(self, client, admin_headers, db_session):
        assert client.get("/api/admin/payments?status=paid", headers=admin_headers).status_code == 400

    def test_unknown_payment(self, client, admin_headers, db_session):
        assert client.post("/api/admin/payments/999/approve", headers=admin_headers).status_code == 404
