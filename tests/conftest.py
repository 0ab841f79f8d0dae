# tests/conftest.py
import pytest
import os
import random

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES_ON_START"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["PREFECT_TEST_MODE"] = "1"
os.environ["PREFECT_LOGGING_LEVEL"] = "ERROR"

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Import app and global variables
from agriconnect.main import app, get_db, get_session_factory, get_price_rng
from agriconnect.database import Base, make_engine
from agriconnect.models import User

# 1. Configure Engine
# One shared in-memory SQLite connection, so request sessions and
# background imports see the same data
test_engine = make_engine("sqlite://", poolclass=StaticPool)

# 2. Create Testing Session
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

@pytest.fixture(scope="function")
def db_session():
    """
    Creates a fresh database session for a single test.
    """
    Base.metadata.create_all(bind=test_engine)

    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop tables to clean up
        Base.metadata.drop_all(bind=test_engine)

@pytest.fixture(scope="function")
def session_factory(db_session):
    return TestSessionLocal

@pytest.fixture(scope="function")
def seeded_rng():
    return random.Random(42)

@pytest.fixture(scope="function")
def client(db_session, seeded_rng):
    """
    Overrides the dependency injection to use our test database.
    """
    def get_test_db_override():
        yield db_session

    app.dependency_overrides[get_db] = get_test_db_override
    app.dependency_overrides[get_session_factory] = lambda: TestSessionLocal
    app.dependency_overrides[get_price_rng] = lambda: seeded_rng

    # TestClient runs background tasks SYNCHRONOUSLY, which is great for testing.
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

def _add_user(db_session, name, email, role):
    user = User(name=name, email=email, role=role)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture(scope="function")
def admin_user(db_session):
    return _add_user(db_session, "Admin", "admin@test.local", "admin")

@pytest.fixture(scope="function")
def farmer_user(db_session):
    return _add_user(db_session, "Farmer", "farmer@test.local", "farmer")

@pytest.fixture(scope="function")
def admin_headers(admin_user):
    return {"X-User-Id": str(admin_user.id)}

@pytest.fixture(scope="function")
def farmer_headers(farmer_user):
    return {"X-User-Id": str(farmer_user.id)}
