from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable
import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from crisis_sim.models.crisis_event import CrisisEvent
from crisis_sim.models.simulation_run import FINAL_DAY, FIRST_DAY, SimulationRun
from crisis_sim.models.stock import Stock
from crisis_sim.utils.helper import utc_now

from .pricing import PricePathGenerator, PricePoint

logger = logging.getLogger("crisis_sim.trading_engine.market_clock")


class MarketClock:
    """Tracks the active simulation run and the day it has reached."""

    def __init__(
        self,
        generator: PricePathGenerator | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._generator = generator or PricePathGenerator()
        self._now = now

    @property
    def generator(self) -> PricePathGenerator:
        return self._generator

    def get_active_run(
        self,
        session: Session,
        for_update: bool = False,
    ) -> SimulationRun | None:
        stmt = (
            select(SimulationRun)
            .where(SimulationRun.is_active.is_(True))
            .order_by(SimulationRun.run_id.desc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalars().first()

    def start_new_run(self, session: Session) -> SimulationRun:
        session.execute(
            update(SimulationRun)
            .where(SimulationRun.is_active.is_(True))
            .values(is_active=False)
        )
        created_at = self._now()
        run = SimulationRun(
            run_date=created_at.date(),
            current_day=FIRST_DAY,
            is_active=True,
            created_at=created_at,
        )
        session.add(run)
        session.flush()

        self._generator.generate(session, int(run.run_id))
        logger.info("Started simulation run_id=%s", run.run_id)
        return run

    def advance_day(self, session: Session) -> bool:
        run = self.get_active_run(session, for_update=True)
        if run is None:
            logger.info("Cannot advance day: no active simulation run")
            return False
        if run.current_day >= FINAL_DAY:
            logger.info("Cannot advance day: run_id=%s already at day %d", run.run_id, FINAL_DAY)
            return False

        run.current_day = int(run.current_day) + 1
        session.flush()
        logger.info("Advanced run_id=%s to day %d", run.run_id, run.current_day)
        return True

    def current_price(self, session: Session, stock_id: int) -> Decimal | None:
        stock = session.get(Stock, stock_id)
        if stock is None:
            return None

        run = self.get_active_run(session)
        if run is not None:
            price = self._day_price(session, run, stock_id)
            if price is not None:
                return price
        return Decimal(str(stock.base_price))

    def run_price(
        self,
        session: Session,
        run: SimulationRun,
        stock_id: int,
    ) -> Decimal | None:
        """Price of a stock on the day the given run has reached."""
        price = self._day_price(session, run, stock_id)
        if price is not None:
            return price
        stock = session.get(Stock, stock_id)
        return Decimal(str(stock.base_price)) if stock is not None else None

    def price_history(
        self,
        session: Session,
        stock_id: int,
        run_id: int,
    ) -> list[PricePoint]:
        return self._generator.repo.list_series(
            session=session,
            run_id=run_id,
            stock_id=stock_id,
        )

    def active_crises(self, session: Session) -> list[CrisisEvent]:
        run = self.get_active_run(session)
        if run is None:
            return []
        return self.crises_on_day(session, run_id=int(run.run_id), day=int(run.current_day))

    def crises_on_day(self, session: Session, run_id: int, day: int) -> list[CrisisEvent]:
        stmt = (
            select(CrisisEvent)
            .where(CrisisEvent.run_id == run_id)
            .where(CrisisEvent.start_day <= day)
            .where(CrisisEvent.end_day >= day)
            .order_by(CrisisEvent.crisis_id)
        )
        return list(session.execute(stmt).scalars().all())

    def _day_price(
        self,
        session: Session,
        run: SimulationRun,
        stock_id: int,
    ) -> Decimal | None:
        return self._generator.repo.get_price(
            session=session,
            run_id=int(run.run_id),
            stock_id=stock_id,
            day_index=int(run.current_day),
        )
