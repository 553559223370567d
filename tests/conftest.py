import hashlib
import hmac
import os
from datetime import datetime, timedelta
from itertools import count
from typing import Generator

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.config import settings
from app.database import get_session
from app.errors import GatewayError
from app.main import app
from app.models.access_token import AccessToken
from app.models.user import Role, User
from app.models.video import Video
from app.services.email_service import EmailDeliveryError, get_mailer
from app.services.payment_service import RazorpayGateway, get_payment_gateway
from app.utils.hash import hash_password
from app.utils.token import create_access_token

GATEWAY_SECRET = "rzp_test_secret"


def razorpay_signature(order_id, payment_id, secret=GATEWAY_SECRET):
    """Signature Razorpay Checkout hands back to the browser after a payment."""
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


class FakeGateway:
    key_id = "rzp_test_key"
    key_secret = GATEWAY_SECRET

    def __init__(self):
        self.orders = []
        self.fail = False
        self._ids = count(1)
        # signatures go through the real razorpay client
        self._verifier = RazorpayGateway(self.key_id, self.key_secret)

    def open_order(self, amount_minor, currency, receipt, notes=None):
        if self.fail:
            raise GatewayError("Order creation failed")
        order_id = f"order_test_{next(self._ids)}"
        self.orders.append({"id": order_id, "amount": amount_minor, "currency": currency, "receipt": receipt})
        return order_id

    def verify_signature(self, order_id, payment_id, signature):
        return self._verifier.verify_signature(order_id, payment_id, signature)


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to, subject, html):
        if self.fail:
            raise EmailDeliveryError("smtp down")
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture(scope="function")
def engine():
    # in-memory SQLite shared by a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator:
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture(autouse=True)
def media_dir(tmp_path, monkeypatch):
    path = tmp_path / "media"
    monkeypatch.setattr(settings, "MEDIA_DIR", str(path))
    return path


@pytest.fixture(scope="function")
def client(session, gateway, mailer):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    ids = count(1)

    def _make_user(email=None, password="pw1", role=Role.user, name=None):
        user = User(
            email=email or f"user{next(ids)}@example.com",
            password=hash_password(password),
            name=name,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_video(session):
    def _make_video(title="Sunset timelapse", price=199, folder="General", is_active=True, **extra):
        video = Video(
            title=title,
            description=extra.pop("description", f"{title} in 4K"),
            price=price,
            folder=folder,
            preview_url="/uploads/videos/preview.jpg",
            file_url="/uploads/videos/full.mp4",
            is_active=is_active,
            **extra,
        )
        session.add(video)
        session.commit()
        session.refresh(video)
        return video

    return _make_video


@pytest.fixture
def make_token(session):
    def _make_token(user, video, max_downloads=5, download_count=0, expires_in=timedelta(days=7), is_revoked=False, token=None):
        qr = AccessToken(
            user_id=user.id,
            video_id=video.id,
            token=token or f"tok-{user.id}-{video.id}-{max_downloads}-{download_count}-{is_revoked}",
            expires_at=datetime.utcnow() + expires_in,
            max_downloads=max_downloads,
            download_count=download_count,
            is_revoked=is_revoked,
        )
        session.add(qr)
        session.commit()
        session.refresh(qr)
        return qr

    return _make_token


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _auth_headers


@pytest.fixture
def sign():
    def _sign(order_id, payment_id, secret=GATEWAY_SECRET):
        return razorpay_signature(order_id, payment_id, secret)

    return _sign
