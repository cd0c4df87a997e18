"""Pytest configuration and fixtures for the test suite."""
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.database import Base, get_db
from catalog.models.product import Category, Factory, Product


@pytest.fixture
def now():
    """Fixed clock: 15 June 2025."""
    return datetime(2025, 6, 15, 10, 30, 0)


@pytest.fixture
def test_engine():
    """Create an in-memory SQLite database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db_session(session_factory):
    """Create a database session for a test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def reference_data(db_session):
    """Categories and a factory the generator can resolve."""
    tees = Category(id=1, name="T-Shirts", code="TSH", hs_code="6109.10")
    jeans = Category(id=2, name="Jeans", code="JNS", hs_code="6203.42")
    factory = Factory(id=1, name="Dhaka Knit", code="DK-01")
    db_session.add_all([tees, jeans, factory])
    db_session.commit()
    return {"tees": tees, "jeans": jeans, "factory": factory}


@pytest.fixture
def make_product(db_session):
    """Insert a stored product row."""
    def _make(**fields):
        fields.setdefault("name", "Stored Product")
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def client(session_factory, reference_data):
    """FastAPI test client using the in-memory database."""
    from catalog.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_payload():
    """A create payload in the shape the admin panel sends."""
    return {
        "name": "Classic Tee",
        "slug": "classic-tee",
        "short_description": "Heavyweight cotton tee",
        "selling_price": 1200,
        "compare_price": 1500,
        "inventory": 10,
        "categories": [{"id": 1, "code": "TSH"}],
        "factory": {"data": {"id": 1}},
        "images": {"data": [{"id": 11}, {"id": 12}]},
        "product_variants": [
            {"color": "Red", "size": "M, M, L"},
        ],
    }
