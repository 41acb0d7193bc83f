"""
Test configuration and fixtures for the scheduling test suite.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from planboard.app.db.database import (
    activities,
    activity_constraints,
    activity_dependencies,
    get_db,
    init_db,
)
from planboard.main import app


@pytest.fixture
def db_engine(tmp_path):
    """SQLite database with the scheduling tables created."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db_session):
    """Insert activity, dependency and constraint rows.

    Usage: seed(tasks=[{...}], dependencies=[{...}], constraints=[{...}])
    """
    def _seed(tasks=(), dependencies=(), constraints=()):
        for row in tasks:
            db_session.execute(activities.insert().values(**row))
        for row in dependencies:
            db_session.execute(activity_dependencies.insert().values(**row))
        for row in constraints:
            db_session.execute(activity_constraints.insert().values(**row))
        db_session.commit()
    return _seed


@pytest.fixture
def client(session_factory):
    """Test client whose get_db dependency points at the test database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
