from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from crisis_sim.api.database.database import get_db
from crisis_sim.api.auth.auth import get_current_active_user
from crisis_sim.api.routes.market import get_market_clock, raise_for_result
from crisis_sim.models.users import Users
from crisis_sim.models.transaction import Transaction
from crisis_sim.models.schemas import (
    BehaviorStatsResponse,
    HoldingResponse,
    PortfolioResponse,
    TradeRequest,
    TradeResultResponse,
    TransactionResponse,
)
from crisis_sim.trading_engine.services.behavior import BehaviorClassifier
from crisis_sim.trading_engine.services.execution import TradeExecutor, TradeResult
from crisis_sim.trading_engine.services.market_clock import MarketClock
from crisis_sim.trading_engine.services.portfolio import PortfolioService


router = APIRouter(prefix="/api/trading", tags=["trading"])


def _to_response(result: TradeResult) -> TradeResultResponse:
    return TradeResultResponse(
        success=result.success,
        message=result.message,
        reason=result.reason.value if result.reason is not None else None,
        transaction_id=result.transaction_id,
        trade_type=result.trade_type,
        price=result.price,
    )


@router.post("/buy", response_model=TradeResultResponse)
def buy(
    payload: TradeRequest,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    result = TradeExecutor(clock).buy(
        db,
        user_id=current_user.user_id,
        stock_id=payload.stock_id,
        quantity=payload.quantity,
    )
    raise_for_result(result)
    db.commit()
    return _to_response(result)


@router.post("/sell", response_model=TradeResultResponse)
def sell(
    payload: TradeRequest,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    result = TradeExecutor(clock).sell(
        db,
        user_id=current_user.user_id,
        stock_id=payload.stock_id,
        quantity=payload.quantity,
    )
    raise_for_result(result)
    db.commit()
    return _to_response(result)


@router.get("/portfolio", response_model=PortfolioResponse)
def get_portfolio(
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    service = PortfolioService()
    snapshot = service.load_portfolio(db, current_user.user_id)
    performance = service.performance(
        db,
        user_id=current_user.user_id,
        price_of=lambda stock_id: clock.current_price(db, stock_id),
    )
    return PortfolioResponse(
        user_id=snapshot.user_id,
        cash=snapshot.cash,
        risk_index=current_user.risk_index,
        holdings=[
            HoldingResponse(
                stock_id=position.stock_id,
                quantity=position.quantity,
                average_cost=position.average_cost,
                current_price=clock.current_price(db, position.stock_id),
            )
            for position in snapshot.positions.values()
        ],
        total_value=performance.total_value,
        total_invested=performance.total_invested,
        profit_loss=performance.profit_loss,
        profit_loss_pct=performance.profit_loss_pct,
    )


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    run_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Users = Depends(get_current_active_user),
):
    query = db.query(Transaction).filter(Transaction.user_id == current_user.user_id)
    if run_id is not None:
        query = query.filter(Transaction.run_id == run_id)
    return query.order_by(Transaction.executed_at.desc(), Transaction.transaction_id.desc()).all()


@router.get("/behavior", response_model=BehaviorStatsResponse)
def get_behavior_stats(
    run_id: Optional[int] = None,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    stats = BehaviorClassifier(clock).user_behavior_stats(
        db,
        user_id=current_user.user_id,
        run_id=run_id,
    )
    return BehaviorStatsResponse(**stats.to_dict())
