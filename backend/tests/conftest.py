from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from aeonwise.db.base import Base
from aeonwise.db.session import SessionFactory, build_session_factory
from aeonwise.points_ledger import PointsLedger
from aeonwise.profile_service import ProfileService
from aeonwise.telemetry import clear_listeners


@pytest.fixture(autouse=True)
def _isolated_telemetry() -> Iterator[None]:
    clear_listeners()
    yield
    clear_listeners()


@pytest.fixture
def session_factory() -> Iterator[SessionFactory]:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield build_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture
def ledger(session_factory: SessionFactory) -> PointsLedger:
    return PointsLedger(session_factory)


@pytest.fixture
def service(session_factory: SessionFactory, ledger: PointsLedger) -> ProfileService:
    return ProfileService(session_factory, ledger)
