import os

# Settings are read at import time; keep a local .env from pointing tests at a real database
os.environ["DATABASE_URL"] = ""
os.environ["JWT_SECRET_KEY"] = "dressmaker-test-secret-key-0123456789abcdef"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

import itertools
import time
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import jwt
import pytest
import pytest_asyncio
from fastapi import WebSocketDisconnect
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from config import get_db, JWT_SECRET_KEY, JWT_ALGORITHM
from models import Base
from main import app
from routers.auth.helpers import auth_helpers
from routers.payments.helpers import payment_helpers
from routers.profiles.helpers import profile_helpers
from routers.orders.helpers import order_helpers
from utils.realtime import realtime_hub


def make_token(user_id, email=None, expires_in=3600, secret=JWT_SECRET_KEY, **claims):
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


class RegisteredUser:
    """A signed-up user with its role profile and a valid access token"""

    def __init__(self, user_id, email, role, profile):
        self.user_id = str(user_id)
        self.email = email
        self.role = role
        self.profile = profile
        self.token = make_token(user_id, email)

    @property
    def profile_id(self):
        return str(self.profile.id)

    @property
    def headers(self):
        return {"Authorization": f"Bearer {self.token}"}


class RecordingWebSocket:
    """Stand-in socket: records accept/close and disconnects on first receive"""

    def __init__(self, session):
        self.session = session
        self.accepted = False
        self.transaction_open_on_accept = None
        self.close_code = None
        self.sent = []

    async def accept(self):
        self.accepted = True
        self.transaction_open_on_accept = self.session.in_transaction()

    async def receive_text(self):
        raise WebSocketDisconnect(code=1000)

    async def send_text(self, data):
        self.sent.append(data)

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.close_code = code


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dressmaker.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def supabase_client():
    client = MagicMock()
    auth_helpers._supabase = client
    yield client
    auth_helpers._supabase = None


@pytest.fixture(autouse=True)
def storage():
    storage = MagicMock()
    profile_helpers._storage = storage
    yield storage
    profile_helpers._storage = None


@pytest.fixture(autouse=True)
def razorpay_client():
    client = MagicMock()
    counter = itertools.count(1)
    client.order.create.side_effect = lambda data: {"id": f"order_test{next(counter):04d}", **data}
    payment_helpers._razorpay_client = client
    yield client
    payment_helpers._razorpay_client = None


@pytest.fixture(autouse=True)
def notifications(monkeypatch):
    sent = SimpleNamespace(email=MagicMock(return_value=True), sms=MagicMock(return_value=True))
    monkeypatch.setattr("routers.orders.orders.send_email", sent.email)
    monkeypatch.setattr("routers.orders.orders.send_sms", sent.sms)
    return sent


@pytest.fixture(autouse=True)
def clean_realtime_hub():
    yield
    realtime_hub._subscriptions.clear()


@pytest.fixture
def create_user(session_factory):
    async def _create(role, full_name=None, email=None, phone=None, **profile_fields):
        user_id = uuid.uuid4()
        email = email or f"{role}-{user_id.hex[:8]}@example.com"
        async with session_factory() as session:
            profile = await profile_helpers.create_profile(
                session,
                user_id=user_id,
                email=email,
                role=role,
                full_name=full_name or f"Test {role.title()}",
                phone=phone
            )
            if profile_fields:
                for field, value in profile_fields.items():
                    setattr(profile, field, value)
                await session.commit()
                await session.refresh(profile)
        return RegisteredUser(user_id, email, role, profile)

    return _create


@pytest_asyncio.fixture
async def customer(create_user):
    return await create_user("customer", full_name="Asha Rao", phone="+919800000001")


@pytest_asyncio.fixture
async def other_customer(create_user):
    return await create_user("customer", full_name="Meera Iyer")


@pytest_asyncio.fixture
async def tailor(create_user):
    return await create_user(
        "tailor",
        full_name="Ravi Kumar",
        phone="+919800000002",
        is_verified=True,
        latitude=12.9716,
        longitude=77.5946
    )


@pytest_asyncio.fixture
async def admin(create_user):
    return await create_user("admin", full_name="Platform Admin")


@pytest.fixture
def order_payload(tailor):
    return {
        "tailor_id": tailor.profile_id,
        "total_amount": 1500.0,
        "delivery_address": "12 MG Road, Bengaluru",
        "items": [
            {"garment_type": "kurta", "fabric_type": "cotton", "quantity": 2, "unit_price": 500.0},
            {"garment_type": "salwar", "color": "white", "quantity": 1, "unit_price": 500.0},
        ],
    }


@pytest_asyncio.fixture
async def placed_order(session_factory, customer, tailor):
    async with session_factory() as session:
        return await order_helpers.create_order(
            session,
            customer_id=customer.profile.id,
            tailor_id=tailor.profile.id,
            total_amount=1500.0,
            items=[{"garment_type": "blouse", "quantity": 1, "unit_price": 1500.0}],
            changed_by=customer.user_id
        )
