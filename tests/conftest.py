import sys
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from condition_reports.config import Base  # noqa: E402
import condition_reports.config as app_config  # noqa: E402
from condition_reports.auth.jwt import get_password_hash  # noqa: E402
# Import the full models module so every table registers with Base metadata.
from condition_reports.models import models as _all_models  # noqa: E402,F401
from condition_reports.models.models import User, new_id, utcnow  # noqa: E402
from condition_reports.repositories import MemoryStore, Repositories, memory_repositories, sql_repositories  # noqa: E402
from condition_reports.schemas.schemas import GPSCoordinates, PropertyAddress, PropertyCreate  # noqa: E402
from condition_reports.services.properties import PropertyService  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Point the app-wide SessionLocal/engine at a throwaway database with all tables."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    db_path = db_dir / "app.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    app_config.SessionLocal = SessionLocal
    app_config.engine = engine
    yield
    engine.dispose()


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture(params=["sql", "memory"])
def repos(request, db_session: Session) -> Repositories:
    """Run the test against both the database and the in-memory data source."""
    if request.param == "memory":
        return memory_repositories(MemoryStore())
    return sql_repositories(db_session)


@pytest.fixture
def sql_repos(db_session: Session) -> Repositories:
    return sql_repositories(db_session)


@pytest.fixture
def create_user(repos: Repositories) -> Callable[..., User]:
    counter = {"value": 0}

    def _create(email: Optional[str] = None, role: str = "tenant", full_name: str = "Test Inspector") -> User:
        counter["value"] += 1
        user = User(
            id=new_id(),
            email=email or f"user{counter['value']}@example.com",
            full_name=full_name,
            hashed_password=get_password_hash("changeme"),
            role=role,
            is_active=True,
            created_at=utcnow(),
        )
        return repos.users.add(user)

    return _create


def make_property_payload(**overrides: Any) -> PropertyCreate:
    data: Dict[str, Any] = {
        "name": "Sea Point Flat",
        "property_type": "Flat",
        "unit_number": "12",
        "address": PropertyAddress(
            street_number="45",
            street_name="Beach Road",
            suburb="Sea Point",
            city="Cape Town",
            province="Western Cape",
            postal_code="8005",
        ),
        "gps_coordinates": GPSCoordinates(
            latitude=-33.9137,
            longitude=18.3867,
            accuracy=8.0,
            timestamp=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        ),
        "user_role": "tenant",
    }
    data.update(overrides)
    return PropertyCreate(**data)


@pytest.fixture
def create_property(repos: Repositories) -> Callable[..., Any]:
    def _create(user: User, **overrides: Any):
        return PropertyService(repos).create_property(user.id, make_property_payload(**overrides))

    return _create


@pytest.fixture
def property_payload() -> Callable[..., PropertyCreate]:
    return make_property_payload
