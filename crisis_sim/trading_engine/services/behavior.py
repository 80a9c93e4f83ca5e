from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Sequence
import logging

import numpy as np
from sqlalchemy import select
from sqlalchemy.orm import Session

from crisis_sim.models.behavior_event import BehaviorEvent
from crisis_sim.models.crisis_event import CrisisEvent
from crisis_sim.models.simulation_run import SimulationRun
from crisis_sim.models.stock import Stock
from crisis_sim.models.transaction import Transaction
from crisis_sim.models.users import Users
from crisis_sim.utils.helper import ensure_utc

from .actions import TradeAction, TradeType
from .market_clock import MarketClock

logger = logging.getLogger("crisis_sim.trading_engine.behavior")

PANIC_SELL_WINDOW = timedelta(hours=2)
DELAYED_REACTION_WINDOW = timedelta(hours=24)
MS_PER_HOUR = 60 * 60 * 1000


@dataclass(frozen=True)
class BehaviorStats:
    total_trades: int
    trade_type_counts: dict[str, int]
    avg_reaction_time_hours: float
    total_risk_delta: float

    def to_dict(self) -> dict:
        return {
            "total_trades": self.total_trades,
            "trade_type_counts": dict(self.trade_type_counts),
            "avg_reaction_time_hours": self.avg_reaction_time_hours,
            "total_risk_delta": self.total_risk_delta,
        }


def calculate_volatility(prices: Sequence[Decimal | float]) -> float:
    """Population standard deviation of day-over-day simple returns."""
    if len(prices) < 2:
        return 0.0
    series = np.asarray([float(price) for price in prices], dtype=float)
    returns = np.diff(series) / series[:-1]
    return float(np.std(returns))


def reaction_time_ms(now: datetime, run_started_at: datetime, crisis_start_day: int) -> int:
    crisis_start = ensure_utc(run_started_at) + timedelta(days=crisis_start_day)
    return (ensure_utc(now) - crisis_start) // timedelta(milliseconds=1)


def classify_trade_type(
    action: TradeAction,
    reaction_ms: int | None,
    impact_strength: Decimal | None,
) -> TradeType:
    if reaction_ms is None or impact_strength is None:
        return TradeType.NORMAL

    if action is TradeAction.SELL:
        if reaction_ms < PANIC_SELL_WINDOW // timedelta(milliseconds=1):
            return TradeType.PANIC_SELL
        if reaction_ms > DELAYED_REACTION_WINDOW // timedelta(milliseconds=1):
            return TradeType.DELAYED_REACTION
        return TradeType.NORMAL

    if impact_strength < 0:
        return TradeType.CRISIS_BUY
    return TradeType.FOMO_BUY


class BehaviorClassifier:
    """Labels each executed trade and folds its risk delta into the user's risk index."""

    def __init__(self, market_clock: MarketClock | None = None) -> None:
        self._clock = market_clock or MarketClock()

    def classify(
        self,
        session: Session,
        user: Users,
        stock: Stock,
        transaction: Transaction,
        run: SimulationRun,
        now: datetime,
    ) -> BehaviorEvent:
        action = TradeAction(transaction.action)
        crisis = self._relevant_crisis(session, run=run, sector=stock.sector)

        reaction_ms: int | None = None
        impact: Decimal | None = None
        if crisis is not None:
            reaction_ms = reaction_time_ms(
                now=now,
                run_started_at=run.created_at,
                crisis_start_day=int(crisis.start_day),
            )
            impact = Decimal(str(crisis.impact_strength))

        trade_type = classify_trade_type(action, reaction_ms, impact)
        risk_delta = self._risk_delta(session, run=run, stock_id=int(stock.stock_id), action=action)

        event = BehaviorEvent(
            user_id=user.user_id,
            stock_id=stock.stock_id,
            transaction_id=transaction.transaction_id,
            crisis_id=crisis.crisis_id if crisis is not None else None,
            reaction_time_ms=reaction_ms,
            trade_type=trade_type.value,
            risk_delta=risk_delta,
            recorded_at=now,
        )
        session.add(event)
        user.risk_index = float(user.risk_index or 0.0) + risk_delta

        logger.info(
            "Classified transaction_id=%s as %s (risk_delta=%.6f)",
            transaction.transaction_id,
            trade_type.value,
            risk_delta,
        )
        return event

    def user_behavior_stats(
        self,
        session: Session,
        user_id: int,
        run_id: int | None = None,
    ) -> BehaviorStats:
        tx_stmt = select(Transaction.transaction_id).where(Transaction.user_id == user_id)
        if run_id is not None:
            tx_stmt = tx_stmt.where(Transaction.run_id == run_id)
        transaction_ids = list(session.execute(tx_stmt).scalars().all())

        events: list[BehaviorEvent] = []
        if transaction_ids:
            event_stmt = select(BehaviorEvent).where(
                BehaviorEvent.transaction_id.in_(transaction_ids)
            )
            events = list(session.execute(event_stmt).scalars().all())

        counts = Counter(event.trade_type for event in events)
        reaction_times = [
            event.reaction_time_ms for event in events if event.reaction_time_ms is not None
        ]
        avg_reaction_hours = (
            float(np.mean(reaction_times)) / MS_PER_HOUR if reaction_times else 0.0
        )
        return BehaviorStats(
            total_trades=len(transaction_ids),
            trade_type_counts={trade_type.value: counts.get(trade_type.value, 0) for trade_type in TradeType},
            avg_reaction_time_hours=avg_reaction_hours,
            total_risk_delta=float(sum(event.risk_delta for event in events)),
        )

    def _relevant_crisis(
        self,
        session: Session,
        run: SimulationRun,
        sector: str,
    ) -> CrisisEvent | None:
        crises = self._clock.crises_on_day(
            session,
            run_id=int(run.run_id),
            day=int(run.current_day),
        )
        return next((crisis for crisis in crises if crisis.sector == sector), None)

    def _risk_delta(
        self,
        session: Session,
        run: SimulationRun,
        stock_id: int,
        action: TradeAction,
    ) -> float:
        history = self._clock.price_history(
            session,
            stock_id=stock_id,
            run_id=int(run.run_id),
        )
        volatility = calculate_volatility([point.price for point in history])
        return volatility if action is TradeAction.BUY else -volatility
