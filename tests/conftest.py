from __future__ import annotations

import os
from decimal import Decimal


# Prevent import-time failure in crisis_sim.api.database.database and auth during test discovery.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from crisis_sim.api.database.database import Base
from crisis_sim.models import SimulationRun, Stock, Users, USER_ROLE_ADMIN, USER_ROLE_USER
from crisis_sim.trading_engine.services.market_clock import MarketClock
from crisis_sim.trading_engine.services.pricing import PricePathGenerator
from tests.support import RUN_START, FixedRandom, FrozenClock


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Session:
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def market_clock(frozen_clock: FrozenClock) -> MarketClock:
    return MarketClock(
        generator=PricePathGenerator(rng=FixedRandom()),
        now=frozen_clock,
    )


def add_stock(
    session: Session,
    ticker: str,
    sector: str,
    base_price: str,
    name: str | None = None,
) -> Stock:
    stock = Stock(
        ticker=ticker,
        name=name or ticker,
        sector=sector,
        base_price=Decimal(base_price),
    )
    session.add(stock)
    session.flush()
    return stock


def add_user(
    session: Session,
    username: str,
    balance: str = "100000",
    role: str = USER_ROLE_USER,
) -> Users:
    user = Users(
        username=username,
        email=f"{username}@example.com",
        password="not-a-real-hash",
        role=role,
        balance=Decimal(balance),
        risk_index=0.0,
        is_active=True,
    )
    session.add(user)
    session.flush()
    return user


def add_run(session: Session, current_day: int = 0, is_active: bool = True) -> SimulationRun:
    run = SimulationRun(
        run_date=RUN_START.date(),
        current_day=current_day,
        is_active=is_active,
        created_at=RUN_START,
    )
    session.add(run)
    session.flush()
    return run


@pytest.fixture
def stocks(session: Session) -> dict[str, Stock]:
    return {
        "HDFCBANK": add_stock(session, "HDFCBANK", "Banking", "1580.25"),
        "ICICIBANK": add_stock(session, "ICICIBANK", "Banking", "950.60"),
        "TCS": add_stock(session, "TCS", "IT", "3650.75"),
    }


@pytest.fixture
def trader(session: Session) -> Users:
    return add_user(session, "trader")


@pytest.fixture
def admin(session: Session) -> Users:
    return add_user(session, "admin", balance="1000000", role=USER_ROLE_ADMIN)


@pytest.fixture
def make_stock(session: Session):
    return lambda *args, **kwargs: add_stock(session, *args, **kwargs)


@pytest.fixture
def make_user(session: Session):
    return lambda *args, **kwargs: add_user(session, *args, **kwargs)


@pytest.fixture
def make_run(session: Session):
    return lambda *args, **kwargs: add_run(session, *args, **kwargs)
