from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging

import numpy as np
import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crisis_sim.models.behavior_event import BehaviorEvent
from crisis_sim.models.crisis_event import CrisisEvent
from crisis_sim.models.simulation_run import FINAL_DAY, SimulationRun
from crisis_sim.models.stock import Stock
from crisis_sim.models.transaction import Transaction
from crisis_sim.models.users import USER_ROLE_USER, Users
from crisis_sim.models.weekly_summary import WeeklySummary
from crisis_sim.utils.helper import utc_now

from .actions import TradeType
from .behavior import MS_PER_HOUR
from .market_clock import MarketClock
from .portfolio import PortfolioService
from .results import FailureReason, OperationResult

logger = logging.getLogger("crisis_sim.trading_engine.analytics")

TOP_TRADER_LIMIT = 5
QUICK_REACTION_HOURS = 2
MODERATE_REACTION_HOURS = 12


@dataclass(frozen=True)
class TopTrader:
    username: str
    profit: Decimal

    def to_dict(self) -> dict:
        return {"username": self.username, "profit": float(self.profit)}


@dataclass(frozen=True)
class CrisisTimelineEntry:
    title: str
    day: int
    impact: float

    def to_dict(self) -> dict:
        return {"title": self.title, "day": self.day, "impact": self.impact}


@dataclass(frozen=True)
class WeeklyMetrics:
    sector_impact: dict[str, float]
    avg_reaction_time_hours: float
    total_trades: int
    panic_sells: int
    fomo_buys: int
    risk_index_change: float
    top_traders: list[TopTrader]
    crisis_timeline: list[CrisisTimelineEntry]


@dataclass(frozen=True)
class SummaryResult(OperationResult):
    summary: WeeklySummary | None = None


def _signed(value: float, fmt: str) -> str:
    return f"{'+' if value > 0 else ''}{value:{fmt}}"


def _share(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


def render_narrative(metrics: WeeklyMetrics) -> str:
    lines = [
        "Weekly Simulation Summary",
        "",
        "Market Overview:",
        f"- Total trades executed: {metrics.total_trades}",
        f"- Panic sells: {metrics.panic_sells} ({_share(metrics.panic_sells, metrics.total_trades):.1f}%)",
        f"- FOMO buys: {metrics.fomo_buys} ({_share(metrics.fomo_buys, metrics.total_trades):.1f}%)",
        f"- Average reaction time: {metrics.avg_reaction_time_hours:.2f} hours",
        "",
        "Sector Performance:",
    ]
    lines.extend(
        f"- {sector}: {_signed(impact, '.2f')}%"
        for sector, impact in metrics.sector_impact.items()
    )
    lines.append("")

    if metrics.crisis_timeline:
        lines.append("Crisis Events:")
        lines.extend(
            f"- Day {entry.day}: {entry.title} (Impact: {_signed(entry.impact * 100, '.1f')}%)"
            for entry in metrics.crisis_timeline
        )
        lines.append("")

    hours = metrics.avg_reaction_time_hours
    if hours < QUICK_REACTION_HOURS:
        speed = "quick"
    elif hours < MODERATE_REACTION_HOURS:
        speed = "moderate"
    else:
        speed = "slow"
    mood = "Risk-averse" if metrics.panic_sells > metrics.fomo_buys else "Risk-seeking"

    lines.extend(
        [
            "Behavioral Insights:",
            f"- Average risk index change: {_signed(metrics.risk_index_change, '.3f')}",
            f"- Traders showed {speed} reactions to crisis events.",
            f"- {mood} behavior was dominant this week.",
            "",
        ]
    )

    if metrics.top_traders:
        lines.append("Top Performers:")
        lines.extend(
            f"{rank}. {trader.username}: ₹{trader.profit:.2f}"
            for rank, trader in enumerate(metrics.top_traders, start=1)
        )
    lines.append("")

    return "\n".join(lines)


class WeeklyAnalyticsService:
    """Aggregates a finished run into a persisted weekly summary."""

    def __init__(
        self,
        market_clock: MarketClock | None = None,
        portfolio: PortfolioService | None = None,
    ) -> None:
        self._clock = market_clock or MarketClock()
        self._portfolio = portfolio or PortfolioService()

    def generate_weekly_summary(self, session: Session, run_id: int) -> SummaryResult:
        run = session.get(SimulationRun, run_id)
        if run is None:
            return SummaryResult(
                success=False,
                message="Simulation run not found",
                reason=FailureReason.NOT_FOUND,
            )
        if int(run.current_day) < FINAL_DAY:
            return SummaryResult(
                success=False,
                message=f"Simulation must reach day {FINAL_DAY} before summarizing",
                reason=FailureReason.VALIDATION,
            )

        existing = session.execute(
            select(func.count(WeeklySummary.summary_id)).where(WeeklySummary.run_id == run_id)
        ).scalar_one()
        if existing:
            logger.warning("run_id=%s already has %d weekly summaries", run_id, existing)

        metrics = self.compute_metrics(session, run)
        summary = WeeklySummary(
            run_id=run_id,
            sector_impact=metrics.sector_impact,
            avg_reaction_time_hours=metrics.avg_reaction_time_hours,
            total_trades=metrics.total_trades,
            panic_sells=metrics.panic_sells,
            fomo_buys=metrics.fomo_buys,
            risk_index_change=metrics.risk_index_change,
            top_traders=[trader.to_dict() for trader in metrics.top_traders],
            crisis_timeline=[entry.to_dict() for entry in metrics.crisis_timeline],
            narrative=render_narrative(metrics),
            created_at=utc_now(),
        )
        session.add(summary)
        session.flush()
        logger.info("Generated weekly summary_id=%s for run_id=%s", summary.summary_id, run_id)
        return SummaryResult(success=True, message="Weekly summary generated", summary=summary)

    def list_summaries(self, session: Session, run_id: int) -> list[WeeklySummary]:
        stmt = (
            select(WeeklySummary)
            .where(WeeklySummary.run_id == run_id)
            .order_by(WeeklySummary.summary_id)
        )
        return list(session.execute(stmt).scalars().all())

    def compute_metrics(self, session: Session, run: SimulationRun) -> WeeklyMetrics:
        run_id = int(run.run_id)
        transactions = list(
            session.execute(
                select(Transaction)
                .where(Transaction.run_id == run_id)
                .order_by(Transaction.transaction_id)
            ).scalars().all()
        )
        events = self._load_events(session, [int(tx.transaction_id) for tx in transactions])
        traders = list(
            session.execute(
                select(Users).where(Users.role == USER_ROLE_USER).order_by(Users.user_id)
            ).scalars().all()
        )
        crises = list(
            session.execute(
                select(CrisisEvent)
                .where(CrisisEvent.run_id == run_id)
                .order_by(CrisisEvent.crisis_id)
            ).scalars().all()
        )

        trade_types = pd.Series([event.trade_type for event in events], dtype="object")
        type_counts = trade_types.value_counts()
        reaction_times = [
            event.reaction_time_ms for event in events if event.reaction_time_ms is not None
        ]

        return WeeklyMetrics(
            sector_impact=self._sector_impact(session, run_id),
            avg_reaction_time_hours=(
                float(np.mean(reaction_times)) / MS_PER_HOUR if reaction_times else 0.0
            ),
            total_trades=len(transactions),
            panic_sells=int(type_counts.get(TradeType.PANIC_SELL.value, 0)),
            fomo_buys=int(type_counts.get(TradeType.FOMO_BUY.value, 0)),
            risk_index_change=self._risk_index_change(traders, events),
            top_traders=self._top_traders(session, run, traders),
            crisis_timeline=[
                CrisisTimelineEntry(
                    title=crisis.title,
                    day=int(crisis.start_day),
                    impact=float(crisis.impact_strength),
                )
                for crisis in crises
            ],
        )

    def _load_events(self, session: Session, transaction_ids: list[int]) -> list[BehaviorEvent]:
        if not transaction_ids:
            return []
        stmt = (
            select(BehaviorEvent)
            .where(BehaviorEvent.transaction_id.in_(transaction_ids))
            .order_by(BehaviorEvent.event_id)
        )
        return list(session.execute(stmt).scalars().all())

    def _sector_impact(self, session: Session, run_id: int) -> dict[str, float]:
        stocks = session.execute(select(Stock).order_by(Stock.stock_id)).scalars().all()
        rows: list[tuple[str, float | None]] = []
        for stock in stocks:
            history = self._clock.price_history(session, stock_id=int(stock.stock_id), run_id=run_id)
            change = None
            if len(history) > 1:
                start = history[0].price
                end = history[-1].price
                change = float((end - start) / start * 100)
            rows.append((stock.sector, change))

        frame = pd.DataFrame(rows, columns=["sector", "change_pct"])
        if frame.empty:
            return {}
        priced = frame.dropna(subset=["change_pct"])
        totals = priced.groupby("sector", sort=False)["change_pct"].sum()
        counts = frame.groupby("sector", sort=False).size()
        return {
            str(sector): float(total) / int(counts[sector])
            for sector, total in totals.items()
        }

    def _risk_index_change(self, traders: list[Users], events: list[BehaviorEvent]) -> float:
        if not traders:
            return 0.0
        per_user = {int(user.user_id): 0.0 for user in traders}
        for event in events:
            if int(event.user_id) in per_user:
                per_user[int(event.user_id)] += float(event.risk_delta)
        return float(np.mean(list(per_user.values())))

    def _top_traders(
        self,
        session: Session,
        run: SimulationRun,
        traders: list[Users],
    ) -> list[TopTrader]:
        ranked = [
            TopTrader(
                username=user.username,
                profit=self._portfolio.performance(
                    session,
                    user_id=int(user.user_id),
                    price_of=lambda stock_id: self._clock.run_price(session, run, stock_id),
                ).profit_loss,
            )
            for user in traders
        ]
        ranked.sort(key=lambda trader: trader.profit, reverse=True)
        return ranked[:TOP_TRADER_LIMIT]
