"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base
from app.infrastructure.db.models import User
from app.application.categories import CreateCategoryUseCase, CreateSubcategoryUseCase
from app.application.expenses import CreateExpenseUseCase


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    # StaticPool: one shared connection, visible from TestClient worker threads
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite doesn't support JSONB - remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_user_id(db_session):
    """Existing user ID for tests"""
    user = User(email="ana@example.com", password_hash="x", name="Ana")
    db_session.add(user)
    db_session.commit()
    return user.id


@pytest.fixture
def other_user_id(db_session):
    """Second user - for ownership checks"""
    user = User(email="bruno@example.com", password_hash="x", name="Bruno")
    db_session.add(user)
    db_session.commit()
    return user.id


@pytest.fixture
def category(db_session, sample_user_id):
    """Category «Vivienda» (30%) with subcategory «Alquiler»"""
    cat = CreateCategoryUseCase(db_session).execute(sample_user_id, "Vivienda", budget_percentage=30)
    sub = CreateSubcategoryUseCase(db_session).execute(sample_user_id, cat.id, "Alquiler")
    return cat, sub


@pytest.fixture
def make_expense(db_session, sample_user_id, category):
    """Factory: create an expense in the sample category"""
    cat, sub = category

    def _make(name="Alquiler", amount="1000", frequency="MONTHLY", user_id=None, category_id=None, subcategory_id=None):
        return CreateExpenseUseCase(db_session).execute(
            user_id=user_id or sample_user_id,
            name=name,
            estimated_amount=amount,
            frequency=frequency,
            category_id=category_id or cat.id,
            subcategory_id=subcategory_id or sub.id,
        )

    return _make
