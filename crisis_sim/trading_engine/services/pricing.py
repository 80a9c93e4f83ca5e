from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Protocol
import logging
import random

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from crisis_sim.models.crisis_event import CrisisEvent
from crisis_sim.models.simulated_price import SimulatedPrice
from crisis_sim.models.simulation_run import FINAL_DAY, FIRST_DAY, SimulationRun
from crisis_sim.models.stock import Stock
from crisis_sim.settings import SIM_RANDOM_SEED
from crisis_sim.utils.helper import CENT, ensure_utc, round_2_decimals

logger = logging.getLogger("crisis_sim.trading_engine.pricing")

NOISE_AMPLITUDE = Decimal("0.04")
IMPORT_JITTER_AMPLITUDE = Decimal("0.1")
PRICE_FLOOR = CENT

# Shared by every default generator so a fixed seed starts one stream per process.
_process_rng = random.Random(SIM_RANDOM_SEED)


@dataclass(frozen=True)
class PricePoint:
    """Generated price for one stock on one simulated day."""
    stock_id: int
    day_index: int
    price: Decimal
    priced_at: datetime


@dataclass(frozen=True)
class StockQuote:
    stock_id: int
    sector: str
    base_price: Decimal


@dataclass(frozen=True)
class CrisisShock:
    """Sector drift added to the daily return while the crisis is running."""
    sector: str
    impact_strength: Decimal
    start_day: int
    end_day: int

    def applies_to(self, sector: str, day: int) -> bool:
        return self.sector == sector and self.start_day <= day <= self.end_day


class PriceSeriesRepository(Protocol):
    """Persistence boundary for a run's generated price paths."""

    def replace_series(
        self,
        session: Session,
        run_id: int,
        points: list[PricePoint],
    ) -> int:
        raise NotImplementedError

    def list_series(
        self,
        session: Session,
        run_id: int,
        stock_id: int,
    ) -> list[PricePoint]:
        raise NotImplementedError

    def get_price(
        self,
        session: Session,
        run_id: int,
        stock_id: int,
        day_index: int,
    ) -> Decimal | None:
        raise NotImplementedError


class SqlPriceSeriesRepository:
    """SQLAlchemy repository for simulated price paths."""

    def replace_series(
        self,
        session: Session,
        run_id: int,
        points: list[PricePoint],
    ) -> int:
        session.execute(delete(SimulatedPrice).where(SimulatedPrice.run_id == run_id))
        session.add_all(
            SimulatedPrice(
                run_id=run_id,
                stock_id=point.stock_id,
                day_index=point.day_index,
                price=point.price,
                priced_at=point.priced_at,
            )
            for point in points
        )
        session.flush()
        return len(points)

    def list_series(
        self,
        session: Session,
        run_id: int,
        stock_id: int,
    ) -> list[PricePoint]:
        stmt = (
            select(SimulatedPrice)
            .where(SimulatedPrice.run_id == run_id)
            .where(SimulatedPrice.stock_id == stock_id)
            .order_by(SimulatedPrice.day_index)
        )
        rows = session.execute(stmt).scalars().all()
        return [
            PricePoint(
                stock_id=int(row.stock_id),
                day_index=int(row.day_index),
                price=Decimal(str(row.price)),
                priced_at=ensure_utc(row.priced_at),
            )
            for row in rows
        ]

    def get_price(
        self,
        session: Session,
        run_id: int,
        stock_id: int,
        day_index: int,
    ) -> Decimal | None:
        stmt = (
            select(SimulatedPrice.price)
            .where(SimulatedPrice.run_id == run_id)
            .where(SimulatedPrice.stock_id == stock_id)
            .where(SimulatedPrice.day_index == day_index)
        )
        price = session.execute(stmt).scalars().first()
        if price is None:
            return None
        return Decimal(str(price))


class PricePathGenerator:
    """Builds and stores the full week of prices for a simulation run.

    Each day's price is the previous day's price moved by uniform noise in
    [-2%, +2%] plus the summed drift of every crisis hitting the stock's
    sector that day. Noise is drawn day by day across all stocks, so with a
    seeded random source adding a crisis leaves every other draw unchanged.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        repo: PriceSeriesRepository | None = None,
        price_floor: Decimal = PRICE_FLOOR,
    ) -> None:
        self._rng = rng or _process_rng
        self._repo = repo or SqlPriceSeriesRepository()
        self._price_floor = price_floor

    @property
    def repo(self) -> PriceSeriesRepository:
        return self._repo

    def generate(self, session: Session, run_id: int) -> list[PricePoint]:
        run = session.get(SimulationRun, run_id)
        if run is None:
            raise ValueError(f"Simulation run not found for run_id={run_id}")

        stocks = self._load_stocks(session)
        shocks = self._load_shocks(session, run_id)
        points = self.build_paths(
            stocks=stocks,
            shocks=shocks,
            start=ensure_utc(run.created_at),
        )
        self._repo.replace_series(session=session, run_id=run_id, points=points)
        logger.info(
            "Generated %d prices for run_id=%s (%d stocks, %d crises)",
            len(points),
            run_id,
            len(stocks),
            len(shocks),
        )
        return points

    def build_paths(
        self,
        stocks: list[StockQuote],
        shocks: list[CrisisShock],
        start: datetime,
    ) -> list[PricePoint]:
        previous: dict[int, Decimal] = {
            stock.stock_id: Decimal(str(stock.base_price)) for stock in stocks
        }
        points: list[PricePoint] = []

        for day in range(FIRST_DAY, FINAL_DAY + 1):
            priced_at = start + timedelta(days=day)
            for stock in stocks:
                noise = self._draw_noise()
                factor = crisis_factor(shocks, sector=stock.sector, day=day)
                price = round_2_decimals(
                    previous[stock.stock_id] * (Decimal("1") + noise + factor)
                )
                price = max(price, self._price_floor)
                previous[stock.stock_id] = price
                points.append(
                    PricePoint(
                        stock_id=stock.stock_id,
                        day_index=day,
                        price=price,
                        priced_at=priced_at,
                    )
                )
        return points

    def _draw_noise(self) -> Decimal:
        return (Decimal(str(self._rng.random())) - Decimal("0.5")) * NOISE_AMPLITUDE

    def _load_stocks(self, session: Session) -> list[StockQuote]:
        rows = session.execute(select(Stock).order_by(Stock.stock_id)).scalars().all()
        return [
            StockQuote(
                stock_id=int(row.stock_id),
                sector=row.sector,
                base_price=Decimal(str(row.base_price)),
            )
            for row in rows
        ]

    def _load_shocks(self, session: Session, run_id: int) -> list[CrisisShock]:
        stmt = (
            select(CrisisEvent)
            .where(CrisisEvent.run_id == run_id)
            .order_by(CrisisEvent.crisis_id)
        )
        rows = session.execute(stmt).scalars().all()
        return [
            CrisisShock(
                sector=row.sector,
                impact_strength=Decimal(str(row.impact_strength)),
                start_day=int(row.start_day),
                end_day=int(row.end_day),
            )
            for row in rows
        ]


def crisis_factor(shocks: list[CrisisShock], sector: str, day: int) -> Decimal:
    return sum(
        (shock.impact_strength for shock in shocks if shock.applies_to(sector, day)),
        Decimal("0"),
    )


def import_prices(
    session: Session,
    rng: random.Random | None = None,
    price_floor: Decimal = PRICE_FLOOR,
) -> int:
    """Move every stock's base price by an independent uniform +/-5% jitter."""
    rng = rng or _process_rng
    stocks = session.execute(select(Stock).order_by(Stock.stock_id)).scalars().all()
    for stock in stocks:
        variation = (Decimal(str(rng.random())) - Decimal("0.5")) * IMPORT_JITTER_AMPLITUDE
        jittered = round_2_decimals(Decimal(str(stock.base_price)) * (Decimal("1") + variation))
        stock.base_price = max(jittered, price_floor)
    session.flush()
    logger.info("Imported base prices for %d stocks", len(stocks))
    return len(stocks)
