from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable
import logging

from sqlalchemy.orm import Session

from crisis_sim.models.simulation_run import SimulationRun
from crisis_sim.models.stock import Stock
from crisis_sim.models.transaction import Transaction
from crisis_sim.models.users import Users
from crisis_sim.utils.helper import utc_now

from .actions import TradeAction
from .behavior import BehaviorClassifier
from .market_clock import MarketClock
from .portfolio import PortfolioService
from .results import FailureReason, OperationResult

logger = logging.getLogger("crisis_sim.trading_engine.execution")


@dataclass(frozen=True)
class TradeResult(OperationResult):
    transaction_id: int | None = None
    trade_type: str | None = None
    price: Decimal | None = None


@dataclass(frozen=True)
class TradeIntent:
    user: Users
    stock: Stock
    run: SimulationRun
    action: TradeAction
    quantity: int
    price: Decimal


def _rejected(reason: FailureReason, message: str) -> TradeResult:
    return TradeResult(success=False, message=message, reason=reason)


class TradeExecutor:
    """Validates and fills market orders at the active run's current-day price.

    Every check runs before the first write, so a rejected order leaves the
    session untouched. Accepted orders stage the transaction, balance,
    holding and behavior event in the caller's session; the caller commits.
    """

    def __init__(
        self,
        market_clock: MarketClock | None = None,
        classifier: BehaviorClassifier | None = None,
        portfolio: PortfolioService | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._clock = market_clock or MarketClock()
        self._classifier = classifier or BehaviorClassifier(self._clock)
        self._portfolio = portfolio or PortfolioService()
        self._now = now

    def buy(self, session: Session, user_id: int, stock_id: int, quantity: int) -> TradeResult:
        return self._execute(session, TradeAction.BUY, user_id, stock_id, quantity)

    def sell(self, session: Session, user_id: int, stock_id: int, quantity: int) -> TradeResult:
        return self._execute(session, TradeAction.SELL, user_id, stock_id, quantity)

    def _execute(
        self,
        session: Session,
        action: TradeAction,
        user_id: int,
        stock_id: int,
        quantity: int,
    ) -> TradeResult:
        intent_or_error = self._build_intent(session, action, user_id, stock_id, quantity)
        if isinstance(intent_or_error, TradeResult):
            logger.warning(
                "Rejected %s user_id=%s stock_id=%s quantity=%s: %s",
                action.value,
                user_id,
                stock_id,
                quantity,
                intent_or_error.message,
            )
            return intent_or_error

        intent = intent_or_error
        now = self._now()
        transaction = self._fill(session, intent, now)
        event = self._classifier.classify(
            session,
            user=intent.user,
            stock=intent.stock,
            transaction=transaction,
            run=intent.run,
            now=now,
        )
        session.flush()

        logger.info(
            "Executed %s of %d %s at %s for user_id=%s (run_id=%s)",
            action.value,
            intent.quantity,
            intent.stock.ticker,
            intent.price,
            user_id,
            intent.run.run_id,
        )
        return TradeResult(
            success=True,
            message="Purchase successful" if action is TradeAction.BUY else "Sale successful",
            transaction_id=int(transaction.transaction_id),
            trade_type=event.trade_type,
            price=intent.price,
        )

    def _build_intent(
        self,
        session: Session,
        action: TradeAction,
        user_id: int,
        stock_id: int,
        quantity: int,
    ) -> TradeIntent | TradeResult:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return _rejected(FailureReason.VALIDATION, "Quantity must be a positive whole number")

        user = session.get(Users, user_id)
        if user is None:
            return _rejected(FailureReason.NOT_FOUND, "User not found")

        stock = session.get(Stock, stock_id)
        if stock is None:
            return _rejected(FailureReason.NOT_FOUND, "Stock not found")

        if action is TradeAction.SELL:
            position = self._portfolio.get_position(session, user_id, stock_id)
            if position is None or position.quantity < quantity:
                return _rejected(FailureReason.INSUFFICIENT_RESOURCE, "Insufficient holdings")

        run = self._clock.get_active_run(session, for_update=True)
        if run is None:
            return _rejected(FailureReason.NO_ACTIVE_RUN, "No active simulation")

        price = self._clock.run_price(session, run, stock_id)
        if price is None:
            return _rejected(FailureReason.NOT_FOUND, "No price available for stock")

        if action is TradeAction.BUY:
            balance = Decimal(str(user.balance))
            if balance < price * quantity:
                return _rejected(FailureReason.INSUFFICIENT_RESOURCE, "Insufficient balance")

        return TradeIntent(
            user=user,
            stock=stock,
            run=run,
            action=action,
            quantity=quantity,
            price=price,
        )

    def _fill(self, session: Session, intent: TradeIntent, now: datetime) -> Transaction:
        trade_value = intent.price * intent.quantity
        balance = Decimal(str(intent.user.balance))
        if intent.action is TradeAction.BUY:
            intent.user.balance = balance - trade_value
        else:
            intent.user.balance = balance + trade_value

        transaction = Transaction(
            user_id=intent.user.user_id,
            stock_id=intent.stock.stock_id,
            run_id=intent.run.run_id,
            action=intent.action.value,
            quantity=intent.quantity,
            price=intent.price,
            executed_at=now,
        )
        session.add(transaction)
        session.flush()

        self._portfolio.apply_trade(
            session,
            user_id=int(intent.user.user_id),
            stock_id=int(intent.stock.stock_id),
            action=intent.action,
            quantity=intent.quantity,
            price=intent.price,
        )
        return transaction
