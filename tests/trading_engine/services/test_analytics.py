from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from crisis_sim.trading_engine.services.analytics import (
    CrisisTimelineEntry,
    TopTrader,
    WeeklyAnalyticsService,
    WeeklyMetrics,
    render_narrative,
)
from crisis_sim.trading_engine.services.crisis import CrisisDefinition, CrisisService
from crisis_sim.trading_engine.services.execution import TradeExecutor
from crisis_sim.trading_engine.services.results import FailureReason
from tests.support import RUN_START


def _finish_run(session, market_clock) -> None:
    while market_clock.advance_day(session):
        pass


def _crisis(session, market_clock, run, title: str, sector: str, impact: str, start_day: int, end_day: int) -> None:
    result = CrisisService(market_clock.generator).create_crisis(
        session,
        run.run_id,
        CrisisDefinition(
            title=title,
            sector=sector,
            impact_strength=Decimal(impact),
            start_day=start_day,
            end_day=end_day,
        ),
    )
    assert result.success is True


def test_summary_requires_final_day(session, stocks, market_clock) -> None:
    run = market_clock.start_new_run(session)
    for _ in range(3):
        market_clock.advance_day(session)

    result = WeeklyAnalyticsService(market_clock).generate_weekly_summary(session, run.run_id)

    assert result.success is False
    assert result.reason is FailureReason.VALIDATION
    assert WeeklyAnalyticsService(market_clock).list_summaries(session, run.run_id) == []


def test_summary_for_unknown_run(session, market_clock) -> None:
    result = WeeklyAnalyticsService(market_clock).generate_weekly_summary(session, 42)

    assert result.success is False
    assert result.reason is FailureReason.NOT_FOUND


def test_summary_of_a_crisis_week(session, stocks, trader, admin, market_clock, frozen_clock) -> None:
    run = market_clock.start_new_run(session)
    _crisis(session, market_clock, run, "RBI rate shock", "Banking", "-0.10", 1, 3)
    executor = TradeExecutor(market_clock, now=frozen_clock)
    hdfc = stocks["HDFCBANK"]

    executor.buy(session, trader.user_id, stocks["TCS"].stock_id, 1)
    market_clock.advance_day(session)
    frozen_clock.set(RUN_START + timedelta(days=1, hours=1))
    assert executor.buy(session, trader.user_id, hdfc.stock_id, 1).trade_type == "crisis_buy"
    assert executor.sell(session, trader.user_id, hdfc.stock_id, 1).trade_type == "panic_sell"
    _finish_run(session, market_clock)

    result = WeeklyAnalyticsService(market_clock).generate_weekly_summary(session, run.run_id)

    summary = result.summary
    assert result.success is True
    assert summary.total_trades == 3
    assert summary.panic_sells == 1
    assert summary.fomo_buys == 0
    assert summary.avg_reaction_time_hours == pytest.approx(1.0)
    assert summary.risk_index_change == pytest.approx(0.0)
    assert list(summary.sector_impact) == ["Banking", "IT"]
    assert summary.sector_impact["Banking"] == pytest.approx(-27.0996, abs=1e-3)
    assert summary.sector_impact["IT"] == pytest.approx(0.0)
    assert summary.top_traders == [{"username": "trader", "profit": 0.0}]
    assert summary.crisis_timeline == [{"title": "RBI rate shock", "day": 1, "impact": -0.1}]
    assert summary.narrative == "\n".join(
        [
            "Weekly Simulation Summary",
            "",
            "Market Overview:",
            "- Total trades executed: 3",
            "- Panic sells: 1 (33.3%)",
            "- FOMO buys: 0 (0.0%)",
            "- Average reaction time: 1.00 hours",
            "",
            "Sector Performance:",
            "- Banking: -27.10%",
            "- IT: 0.00%",
            "",
            "Crisis Events:",
            "- Day 1: RBI rate shock (Impact: -10.0%)",
            "",
            "Behavioral Insights:",
            "- Average risk index change: 0.000",
            "- Traders showed quick reactions to crisis events.",
            "- Risk-averse behavior was dominant this week.",
            "",
            "Top Performers:",
            "1. trader: ₹0.00",
            "",
        ]
    )


def test_top_traders_keep_five_best_profits(session, stocks, make_user, market_clock) -> None:
    run = market_clock.start_new_run(session)
    _crisis(session, market_clock, run, "IT rally", "IT", "0.10", 1, 1)
    executor = TradeExecutor(market_clock)
    tcs = stocks["TCS"]
    for quantity in range(1, 8):
        user = make_user(f"u{quantity}")
        executor.buy(session, user.user_id, tcs.stock_id, quantity)
    _finish_run(session, market_clock)

    summary = WeeklyAnalyticsService(market_clock).generate_weekly_summary(session, run.run_id).summary

    assert [trader["username"] for trader in summary.top_traders] == ["u7", "u6", "u5", "u4", "u3"]
    assert summary.top_traders[0]["profit"] == pytest.approx(7 * 365.08)
    assert summary.fomo_buys == 0
    assert summary.narrative.count("₹") == 5


def test_repeat_summaries_are_kept(session, stocks, market_clock) -> None:
    run = market_clock.start_new_run(session)
    _finish_run(session, market_clock)
    service = WeeklyAnalyticsService(market_clock)

    first = service.generate_weekly_summary(session, run.run_id)
    second = service.generate_weekly_summary(session, run.run_id)

    assert first.success is True and second.success is True
    assert [summary.summary_id for summary in service.list_summaries(session, run.run_id)] == [
        first.summary.summary_id,
        second.summary.summary_id,
    ]


def test_quiet_week_narrative_omits_optional_sections(session, stocks, market_clock) -> None:
    run = market_clock.start_new_run(session)
    _finish_run(session, market_clock)

    summary = WeeklyAnalyticsService(market_clock).generate_weekly_summary(session, run.run_id).summary

    assert summary.total_trades == 0
    assert summary.top_traders == []
    assert "- Panic sells: 0 (0.0%)" in summary.narrative
    assert "Crisis Events:" not in summary.narrative
    assert "Top Performers:" not in summary.narrative
    assert "Risk-seeking behavior was dominant this week." in summary.narrative
    assert summary.narrative.endswith("Risk-seeking behavior was dominant this week.\n\n")


def test_render_narrative_reaction_speed_bands() -> None:
    def metrics(hours: float) -> WeeklyMetrics:
        return WeeklyMetrics(
            sector_impact={"Energy": 3.456},
            avg_reaction_time_hours=hours,
            total_trades=4,
            panic_sells=1,
            fomo_buys=2,
            risk_index_change=0.0123,
            top_traders=[TopTrader(username="asha", profit=Decimal("1250.5"))],
            crisis_timeline=[CrisisTimelineEntry(title="Oil spike", day=2, impact=0.15)],
        )

    quick = render_narrative(metrics(1.5))
    moderate = render_narrative(metrics(2.0))
    slow = render_narrative(metrics(12.0))

    assert "Traders showed quick reactions" in quick
    assert "Traders showed moderate reactions" in moderate
    assert "Traders showed slow reactions" in slow
    assert "- Energy: +3.46%" in quick
    assert "- FOMO buys: 2 (50.0%)" in quick
    assert "- Day 2: Oil spike (Impact: +15.0%)" in quick
    assert "- Average risk index change: +0.012" in quick
    assert "1. asha: ₹1250.50" in quick
    assert "Risk-seeking behavior was dominant this week." in quick
    assert quick.endswith("Top Performers:\n1. asha: ₹1250.50\n")
