import os

# Must be set before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from medicare.main import app
from medicare.core.config import settings
from medicare.core.database import get_db, get_redis, Base

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)

@event.listens_for(engine, "connect")
def enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite only enforces foreign keys when asked to, per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

class FakeRedis:
    """In-memory stand-in for the Redis commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture
def fake_redis():
    redis_client = FakeRedis()
    app.dependency_overrides[get_redis] = lambda: redis_client
    yield redis_client
    app.dependency_overrides.pop(get_redis, None)

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(test_db, fake_redis):
    # Startup seeds the admin account into the fresh tables
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

# Helpers

DEFAULT_PASSWORD = "TestPassword123"

def register(client, role="patient", email=None, **fields):
    """Register a user through the API and return the created user."""
    payload = {
        "name": fields.pop("name", f"Test {role.title()}"),
        "email": email or f"{role}@example.com",
        "password": DEFAULT_PASSWORD,
        "role": role,
        "phone": "5550100",
    }
    payload.update(fields)
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.json()
    return response.json()["data"]

def login(client, email, password=DEFAULT_PASSWORD):
    response = client.post(
        "/api/v1/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.json()
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}

class Account:
    def __init__(self, user, headers):
        self.user = user
        self.id = user["id"]
        self.headers = headers

def make_account(client, role, email):
    user = register(client, role=role, email=email)
    return Account(user, login(client, email))

@pytest.fixture
def admin(client):
    headers = login(client, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    me = client.get("/api/v1/auth/me", headers=headers).json()["data"]
    return Account(me, headers)

@pytest.fixture
def patient(client):
    return make_account(client, "patient", "patient@example.com")

@pytest.fixture
def other_patient(client):
    return make_account(client, "patient", "other.patient@example.com")

@pytest.fixture
def doctor(client, admin):
    account = make_account(client, "doctor", "doctor@example.com")
    response = client.put(f"/api/v1/users/doctors/{account.id}/verify", headers=admin.headers)
    assert response.status_code == 200
    return account

@pytest.fixture
def other_doctor(client):
    """A doctor still awaiting verification."""
    return make_account(client, "doctor", "other.doctor@example.com")
