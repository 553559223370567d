import pytest
from sqlmodel import select

from app.models.access_token import AccessToken
from app.models.email import EmailOutbox, EmailStatus
from app.models.transaction import Transaction, TransactionStatus
from app.models.user import Role


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=Role.admin)


def test_admin_routes_require_admin(client, make_user, auth_headers):
    assert client.get("/api/admin/transactions").status_code == 401

    res = client.get("/api/admin/transactions", headers=auth_headers(make_user()))
    assert res.status_code == 403
    assert res.json()["error"] == "forbidden"


def test_ledger_lists_transactions(client, session, admin, make_user, make_video, auth_headers):
    buyer, video = make_user(email="buyer@example.com"), make_video(title="Ledger clip")
    session.add(Transaction(user_id=buyer.id, video_id=video.id, razorpay_order_id="o1", amount=199, status=TransactionStatus.paid))
    session.add(Transaction(user_id=buyer.id, video_id=video.id, razorpay_order_id="o2", amount=199))
    session.commit()

    body = client.get("/api/admin/transactions", headers=auth_headers(admin)).json()
    assert body["total"] == 2
    assert {i["user_email"] for i in body["items"]} == {"buyer@example.com"}
    assert {i["video_title"] for i in body["items"]} == {"Ledger clip"}

    paid = client.get("/api/admin/transactions", params={"status": "paid"}, headers=auth_headers(admin)).json()
    assert [i["razorpay_order_id"] for i in paid["items"]] == ["o1"]


def test_refund_endpoint(client, session, admin, make_user, make_video, make_token, auth_headers):
    buyer, video = make_user(), make_video()
    txn = Transaction(user_id=buyer.id, video_id=video.id, razorpay_order_id="o1", amount=199, status=TransactionStatus.paid)
    session.add(txn)
    session.commit()
    qr = make_token(buyer, video)
    qr.transaction_id = txn.id
    session.add(qr)
    session.commit()

    res = client.post(f"/api/admin/transactions/{txn.id}/refund", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["revoked_tokens"] == 1

    res = client.post(f"/api/admin/transactions/{txn.id}/refund", headers=auth_headers(admin))
    assert res.status_code == 409
    assert res.json()["error"] == "invalid_transition"

    res = client.post("/api/access/verify", json={"token": qr.token})
    assert res.json()["error"] == "revoked"


def test_catalog_listing_and_folders(client, admin, make_video, auth_headers):
    make_video(title="A", folder="Nature")
    make_video(title="B", folder="Travel", is_active=False)
    make_video(title="C", folder="Nature")

    headers = auth_headers(admin)
    assert client.get("/api/admin/folders", headers=headers).json()["items"] == ["Nature", "Travel"]

    nature = client.get("/api/admin/videos", params={"folder": "Nature"}, headers=headers).json()["items"]
    assert sorted(v["title"] for v in nature) == ["A", "C"]
    assert len(client.get("/api/admin/videos", headers=headers).json()["items"]) == 3


def test_revoke_token_endpoint(client, session, admin, make_user, make_video, make_token, auth_headers):
    qr = make_token(make_user(), make_video())

    res = client.post(f"/api/admin/tokens/{qr.token}/revoke", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["is_revoked"] is True

    assert client.post("/api/admin/tokens/missing/revoke", headers=auth_headers(admin)).status_code == 404


def test_outbox_redelivery(client, session, mailer, admin, auth_headers):
    session.add(EmailOutbox(to_email="buyer@example.com", subject="Your video", html="<p>hi</p>"))
    session.commit()

    headers = auth_headers(admin)
    pending = client.get("/api/admin/outbox", params={"status": "pending"}, headers=headers).json()
    assert pending["total"] == 1

    mailer.fail = True
    assert client.post("/api/admin/outbox/deliver", headers=headers).json() == {"attempted": 1, "sent": 0, "failed": 1}

    mailer.fail = False
    assert client.post("/api/admin/outbox/deliver", headers=headers).json() == {"attempted": 1, "sent": 1, "failed": 0}

    session.expire_all()
    entry = session.exec(select(EmailOutbox)).one()
    assert entry.status == EmailStatus.sent
    assert entry.attempts == 2
    assert len(mailer.sent) == 1


def test_outbox_gives_up_after_max_attempts(session, mailer, monkeypatch):
    from app.config import settings
    from app.services.email_outbox import deliver_pending

    monkeypatch.setattr(settings, "EMAIL_MAX_ATTEMPTS", 2)
    session.add(EmailOutbox(to_email="buyer@example.com", subject="s", html="h"))
    session.commit()

    mailer.fail = True
    deliver_pending(session, mailer)
    deliver_pending(session, mailer)
    assert deliver_pending(session, mailer) == {"attempted": 0, "sent": 0, "failed": 0}

    entry = session.exec(select(EmailOutbox)).one()
    assert entry.status == EmailStatus.failed
    assert entry.attempts == 2
