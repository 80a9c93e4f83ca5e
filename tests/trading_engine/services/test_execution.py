from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from crisis_sim.models import BehaviorEvent, PortfolioHolding, Transaction
from crisis_sim.trading_engine.services.behavior import BehaviorClassifier, calculate_volatility
from crisis_sim.trading_engine.services.crisis import CrisisDefinition, CrisisService
from crisis_sim.trading_engine.services.execution import TradeExecutor
from crisis_sim.trading_engine.services.results import FailureReason
from tests.support import RUN_START


@pytest.fixture
def executor(market_clock, frozen_clock) -> TradeExecutor:
    return TradeExecutor(market_clock, now=frozen_clock)


def _add_crisis(session, market_clock, run, sector: str, impact: str, start_day: int, end_day: int):
    result = CrisisService(market_clock.generator).create_crisis(
        session,
        run.run_id,
        CrisisDefinition(
            title=f"{sector} shock",
            sector=sector,
            impact_strength=Decimal(impact),
            start_day=start_day,
            end_day=end_day,
        ),
    )
    assert result.success is True
    return result.crisis


def _advance_to(session, market_clock, day: int) -> None:
    run = market_clock.get_active_run(session)
    while run.current_day < day:
        assert market_clock.advance_day(session) is True


def _holding(session, user_id: int, stock_id: int) -> PortfolioHolding | None:
    return session.execute(
        select(PortfolioHolding)
        .where(PortfolioHolding.user_id == user_id)
        .where(PortfolioHolding.stock_id == stock_id)
    ).scalars().first()


def test_buy_then_sell_same_day_restores_balance(session, stocks, trader, market_clock, executor) -> None:
    market_clock.start_new_run(session)
    tcs = stocks["TCS"]

    bought = executor.buy(session, trader.user_id, tcs.stock_id, 10)

    assert bought.success is True
    assert bought.message == "Purchase successful"
    assert bought.price == Decimal("3650.75")
    assert Decimal(str(trader.balance)) == Decimal("100000") - Decimal("36507.50")
    assert _holding(session, trader.user_id, tcs.stock_id).quantity == 10

    sold = executor.sell(session, trader.user_id, tcs.stock_id, 10)

    assert sold.success is True
    assert sold.message == "Sale successful"
    assert Decimal(str(trader.balance)) == Decimal("100000")
    assert _holding(session, trader.user_id, tcs.stock_id) is None
    assert session.execute(select(func.count(Transaction.transaction_id))).scalar_one() == 2


def test_buys_blend_average_cost(session, make_stock, trader, market_clock, executor) -> None:
    widget = make_stock("WIDGET", "Manufacturing", "100")
    run = market_clock.start_new_run(session)
    _add_crisis(session, market_clock, run, "Manufacturing", "1.0", 1, 1)

    executor.buy(session, trader.user_id, widget.stock_id, 10)
    _advance_to(session, market_clock, 1)
    second = executor.buy(session, trader.user_id, widget.stock_id, 10)

    holding = _holding(session, trader.user_id, widget.stock_id)
    assert second.price == Decimal("200")
    assert holding.quantity == 20
    assert Decimal(str(holding.avg_buy_price)) == Decimal("150")
    assert Decimal(str(trader.balance)) == Decimal("97000")


def test_buy_rejects_when_balance_is_short(session, stocks, make_user, market_clock, executor) -> None:
    poor = make_user("poor", balance="1000")
    market_clock.start_new_run(session)

    result = executor.buy(session, poor.user_id, stocks["TCS"].stock_id, 1)

    assert result.success is False
    assert result.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert result.message == "Insufficient balance"
    assert Decimal(str(poor.balance)) == Decimal("1000")
    assert session.execute(select(func.count(Transaction.transaction_id))).scalar_one() == 0


@pytest.mark.parametrize("quantity", [0, -3, 1.5, True])
def test_rejects_non_positive_or_fractional_quantity(session, stocks, trader, market_clock, executor, quantity) -> None:
    market_clock.start_new_run(session)

    result = executor.buy(session, trader.user_id, stocks["TCS"].stock_id, quantity)

    assert result.success is False
    assert result.reason is FailureReason.VALIDATION


def test_rejects_unknown_user_and_stock(session, stocks, trader, market_clock, executor) -> None:
    market_clock.start_new_run(session)

    unknown_user = executor.buy(session, 999, stocks["TCS"].stock_id, 1)
    unknown_stock = executor.buy(session, trader.user_id, 999, 1)

    assert unknown_user.reason is FailureReason.NOT_FOUND
    assert unknown_stock.reason is FailureReason.NOT_FOUND


def test_rejects_trades_without_active_run(session, stocks, trader, executor) -> None:
    result = executor.buy(session, trader.user_id, stocks["TCS"].stock_id, 1)

    assert result.success is False
    assert result.reason is FailureReason.NO_ACTIVE_RUN


def test_sell_requires_enough_holdings(session, stocks, trader, market_clock, executor) -> None:
    market_clock.start_new_run(session)
    tcs = stocks["TCS"]

    nothing_held = executor.sell(session, trader.user_id, tcs.stock_id, 1)
    executor.buy(session, trader.user_id, tcs.stock_id, 2)
    too_many = executor.sell(session, trader.user_id, tcs.stock_id, 3)

    assert nothing_held.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert too_many.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert too_many.message == "Insufficient holdings"
    assert _holding(session, trader.user_id, tcs.stock_id).quantity == 2


def test_trade_outside_crisis_is_normal(session, stocks, trader, market_clock, executor) -> None:
    market_clock.start_new_run(session)

    result = executor.buy(session, trader.user_id, stocks["TCS"].stock_id, 1)

    event = session.execute(select(BehaviorEvent)).scalars().one()
    assert result.trade_type == "normal"
    assert event.transaction_id == result.transaction_id
    assert event.crisis_id is None
    assert event.reaction_time_ms is None


def test_quick_sell_in_crisis_is_panic_sell(session, stocks, trader, market_clock, frozen_clock, executor) -> None:
    hdfc = stocks["HDFCBANK"]
    run = market_clock.start_new_run(session)
    crisis = _add_crisis(session, market_clock, run, "Banking", "-0.10", 1, 3)
    executor.buy(session, trader.user_id, hdfc.stock_id, 5)

    _advance_to(session, market_clock, 2)
    frozen_clock.set(RUN_START + timedelta(days=1, hours=1))
    result = executor.sell(session, trader.user_id, hdfc.stock_id, 5)

    event = session.execute(
        select(BehaviorEvent).where(BehaviorEvent.transaction_id == result.transaction_id)
    ).scalars().one()
    assert result.trade_type == "panic_sell"
    assert result.price == Decimal("1280.01")
    assert event.crisis_id == crisis.crisis_id
    assert event.reaction_time_ms == 3_600_000


def test_late_sell_in_crisis_is_delayed_reaction(session, stocks, trader, market_clock, frozen_clock, executor) -> None:
    hdfc = stocks["HDFCBANK"]
    run = market_clock.start_new_run(session)
    _add_crisis(session, market_clock, run, "Banking", "-0.10", 1, 3)
    executor.buy(session, trader.user_id, hdfc.stock_id, 5)

    _advance_to(session, market_clock, 3)
    frozen_clock.set(RUN_START + timedelta(days=2, hours=1))
    late = executor.sell(session, trader.user_id, hdfc.stock_id, 2)
    frozen_clock.set(RUN_START + timedelta(days=1, hours=5))
    middling = executor.sell(session, trader.user_id, hdfc.stock_id, 2)

    assert late.trade_type == "delayed_reaction"
    assert middling.trade_type == "normal"


def test_buys_in_crisis_split_on_impact_sign(session, stocks, trader, market_clock, executor) -> None:
    run = market_clock.start_new_run(session)
    _add_crisis(session, market_clock, run, "Banking", "-0.10", 1, 3)
    _add_crisis(session, market_clock, run, "IT", "0.05", 1, 2)
    _advance_to(session, market_clock, 1)

    contrarian = executor.buy(session, trader.user_id, stocks["ICICIBANK"].stock_id, 1)
    chasing = executor.buy(session, trader.user_id, stocks["TCS"].stock_id, 1)

    assert contrarian.trade_type == "crisis_buy"
    assert chasing.trade_type == "fomo_buy"


def test_risk_index_accumulates_signed_volatility(session, make_stock, trader, market_clock, executor) -> None:
    widget = make_stock("WIDGET", "Manufacturing", "100")
    run = market_clock.start_new_run(session)
    _add_crisis(session, market_clock, run, "Manufacturing", "-0.10", 1, 2)
    _add_crisis(session, market_clock, run, "Manufacturing", "0.20", 2, 2)
    _advance_to(session, market_clock, 2)

    executor.buy(session, trader.user_id, widget.stock_id, 4)
    executor.sell(session, trader.user_id, widget.stock_id, 1)
    executor.buy(session, trader.user_id, widget.stock_id, 1)

    # week path is 100, 90, 99, 99, 99, 99
    volatility = 0.004 ** 0.5
    deltas = session.execute(select(BehaviorEvent.risk_delta).order_by(BehaviorEvent.event_id)).scalars().all()
    assert deltas == pytest.approx([volatility, -volatility, volatility])
    assert trader.risk_index == pytest.approx(sum(deltas))


def test_trades_use_injected_classifier_clock(session, stocks, trader, market_clock, frozen_clock) -> None:
    executor = TradeExecutor(
        market_clock,
        classifier=BehaviorClassifier(market_clock),
        now=frozen_clock,
    )
    market_clock.start_new_run(session)
    frozen_clock.advance(timedelta(minutes=15))

    result = executor.buy(session, trader.user_id, stocks["TCS"].stock_id, 1)

    transaction = session.get(Transaction, result.transaction_id)
    assert transaction.executed_at == RUN_START + timedelta(minutes=15)


def test_day_zero_trade_measures_the_whole_week(session, make_stock, trader, market_clock, executor) -> None:
    widget = make_stock("WIDGET", "Manufacturing", "100")
    run = market_clock.start_new_run(session)
    _add_crisis(session, market_clock, run, "Manufacturing", "-0.10", 1, 2)

    executor.buy(session, trader.user_id, widget.stock_id, 1)

    week = market_clock.price_history(session, stock_id=widget.stock_id, run_id=run.run_id)
    event = session.execute(select(BehaviorEvent)).scalars().one()
    assert [point.price for point in week] == [
        Decimal("100"),
        Decimal("90"),
        Decimal("81"),
        Decimal("81"),
        Decimal("81"),
        Decimal("81"),
    ]
    assert event.risk_delta == pytest.approx(calculate_volatility([point.price for point in week]))
    assert event.risk_delta == pytest.approx(0.0024 ** 0.5)
