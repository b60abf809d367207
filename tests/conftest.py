"""
Shared test fixtures: SQLite database, test client, auth helpers.
"""

import io
import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set env before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="ppp-uploads-")

from ppp import models
from ppp.database import Base, get_db
from ppp.main import app
from ppp.routers.auth import create_user
from ppp.routers.services import seed_towing_services


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables and seed the service catalog before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        seed_towing_services(session)
    finally:
        session.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, username, password="strongpassword123"):
    response = client.post("/api/auth/register", json={
        "username": username,
        "password": password,
    })
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Register a regular user and return auth headers."""
    return register(client, "driver1")


@pytest.fixture
def other_headers(client):
    """A second regular user, not in any company."""
    return register(client, "driver2")


@pytest.fixture
def admin_headers(client, db):
    """Create an admin directly in the DB and return auth headers."""
    create_user(db, "admin", "adminpass123", models.UserRole.ADMIN)
    response = client.post("/api/auth/login", json={
        "username": "admin",
        "password": "adminpass123",
    })
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def sample_job(**overrides):
    job = {
        "customer_name": "Acme Freight",
        "invoice_number": "INV-1001",
        "vehicle_type": "Freightliner Cascadia",
        "vehicle_weight": 5000,
        "problem_description": "Rolled into ditch on I-80",
        "fuel_surcharge": 10,
    }
    job.update(overrides)
    return job


@pytest.fixture
def job_id(client, auth_headers):
    """A job owned by driver1."""
    response = client.post("/api/jobs/", json=sample_job(), headers=auth_headers)
    assert response.status_code == 200, response.text
    return response.json()["id"]


def image_bytes(fmt="PNG", color=(200, 30, 30)):
    """A small real image encoded in the given Pillow format."""
    buf = io.BytesIO()
    Image.new("RGB", (40, 30), color).save(buf, format=fmt)
    return buf.getvalue()
