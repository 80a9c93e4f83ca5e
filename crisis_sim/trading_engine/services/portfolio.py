from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Protocol
from sqlalchemy import select
from sqlalchemy.orm import Session

from crisis_sim.models.portfolio_holding import PortfolioHolding
from crisis_sim.models.users import Users
from crisis_sim.utils.helper import utc_now

from .actions import TradeAction

AVG_PRICE_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class Position:
    """Holding for a single stock in a user's portfolio."""
    stock_id: int
    quantity: int
    average_cost: Decimal


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Point-in-time view of a portfolio."""
    user_id: int
    cash: Decimal
    positions: dict[int, Position]
    as_of: datetime


@dataclass(frozen=True)
class PortfolioPerformance:
    total_value: Decimal
    total_invested: Decimal
    profit_loss: Decimal
    profit_loss_pct: Decimal

    def to_dict(self) -> dict:
        return {
            "total_value": str(self.total_value),
            "total_invested": str(self.total_invested),
            "profit_loss": str(self.profit_loss),
            "profit_loss_pct": str(self.profit_loss_pct),
        }


def apply_fill(
    current: Position | None,
    stock_id: int,
    action: TradeAction,
    quantity: int,
    price: Decimal,
) -> Position | None:
    """Return the position after a fill, or None once it is fully sold.

    Buys blend the fill into a quantity-weighted average cost. Sells only
    reduce quantity and keep the existing average cost.
    """
    held = current.quantity if current is not None else 0
    average_cost = current.average_cost if current is not None else Decimal("0")

    if action is TradeAction.BUY:
        next_quantity = held + quantity
        gross_cost = average_cost * held + price * quantity
        return Position(
            stock_id=stock_id,
            quantity=next_quantity,
            average_cost=(gross_cost / next_quantity).quantize(AVG_PRICE_QUANTUM),
        )

    if quantity > held:
        raise ValueError(
            f"sell of {quantity} exceeds held quantity {held} for stock_id={stock_id}"
        )
    remaining = held - quantity
    if remaining == 0:
        return None
    return Position(stock_id=stock_id, quantity=remaining, average_cost=average_cost)


class PortfolioRepository(Protocol):
    """Persistence boundary for loading and storing user portfolio state."""

    def get_snapshot(self, session: Session, user_id: int) -> PortfolioSnapshot:
        raise NotImplementedError

    def save_position(
        self,
        session: Session,
        user_id: int,
        stock_id: int,
        position: Position | None,
    ) -> None:
        raise NotImplementedError


class SqlPortfolioRepository:
    """SQLAlchemy repository for user portfolio state."""

    def get_snapshot(self, session: Session, user_id: int) -> PortfolioSnapshot:
        user = self._load_user(session=session, user_id=user_id)
        return PortfolioSnapshot(
            user_id=int(user.user_id),
            cash=Decimal(str(user.balance)),
            positions=self._load_positions(session=session, user_id=user_id),
            as_of=utc_now(),
        )

    def save_position(
        self,
        session: Session,
        user_id: int,
        stock_id: int,
        position: Position | None,
    ) -> None:
        row = self._load_holding(session=session, user_id=user_id, stock_id=stock_id)
        if position is None:
            if row is not None:
                session.delete(row)
            return
        if row is None:
            session.add(
                PortfolioHolding(
                    user_id=user_id,
                    stock_id=stock_id,
                    quantity=position.quantity,
                    avg_buy_price=position.average_cost,
                )
            )
            return
        row.quantity = position.quantity
        row.avg_buy_price = position.average_cost

    def _load_user(self, session: Session, user_id: int) -> Users:
        user = session.get(Users, user_id)
        if user is None:
            raise ValueError(f"User not found for user_id={user_id}")
        return user

    def _load_holding(
        self,
        session: Session,
        user_id: int,
        stock_id: int,
    ) -> PortfolioHolding | None:
        stmt = (
            select(PortfolioHolding)
            .where(PortfolioHolding.user_id == user_id)
            .where(PortfolioHolding.stock_id == stock_id)
        )
        return session.execute(stmt).scalars().first()

    def _load_positions(
        self,
        session: Session,
        user_id: int,
    ) -> dict[int, Position]:
        stmt = (
            select(PortfolioHolding)
            .where(PortfolioHolding.user_id == user_id)
            .order_by(PortfolioHolding.holding_id)
        )
        rows = session.execute(stmt).scalars().all()
        return {
            int(row.stock_id): Position(
                stock_id=int(row.stock_id),
                quantity=int(row.quantity),
                average_cost=Decimal(str(row.avg_buy_price)),
            )
            for row in rows
        }


class PortfolioService:
    """Business logic for holdings and valuation."""

    def __init__(self, repo: PortfolioRepository | None = None) -> None:
        self._repo = repo or SqlPortfolioRepository()

    def load_portfolio(self, session: Session, user_id: int) -> PortfolioSnapshot:
        return self._repo.get_snapshot(session=session, user_id=user_id)

    def get_position(self, session: Session, user_id: int, stock_id: int) -> Position | None:
        return self.load_portfolio(session, user_id).positions.get(stock_id)

    def apply_trade(
        self,
        session: Session,
        user_id: int,
        stock_id: int,
        action: TradeAction,
        quantity: int,
        price: Decimal,
    ) -> Position | None:
        current = self.get_position(session, user_id, stock_id)
        updated = apply_fill(
            current=current,
            stock_id=stock_id,
            action=action,
            quantity=quantity,
            price=price,
        )
        self._repo.save_position(
            session=session,
            user_id=user_id,
            stock_id=stock_id,
            position=updated,
        )
        return updated

    def performance(
        self,
        session: Session,
        user_id: int,
        price_of: Callable[[int], Decimal | None],
    ) -> PortfolioPerformance:
        snapshot = self.load_portfolio(session, user_id)
        total_value = Decimal("0")
        total_invested = Decimal("0")
        for position in snapshot.positions.values():
            price = price_of(position.stock_id) or Decimal("0")
            total_value += price * position.quantity
            total_invested += position.average_cost * position.quantity

        profit_loss = total_value - total_invested
        profit_loss_pct = (
            profit_loss / total_invested * Decimal("100")
            if total_invested > 0
            else Decimal("0")
        )
        return PortfolioPerformance(
            total_value=total_value,
            total_invested=total_invested,
            profit_loss=profit_loss,
            profit_loss_pct=profit_loss_pct,
        )
