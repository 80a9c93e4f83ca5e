from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from crisis_sim.api.database.database import get_db
from crisis_sim.api.auth.auth import get_current_active_user, get_current_admin_user
from crisis_sim.models.users import Users
from crisis_sim.models.simulation_run import SimulationRun
from crisis_sim.models.stock import Stock
from crisis_sim.models.schemas import (
    CrisisCreate,
    CrisisResponse,
    MessageResponse,
    PricePointResponse,
    SimulationRunResponse,
    StockResponse,
    WeeklySummaryResponse,
)
from crisis_sim.trading_engine.services.analytics import WeeklyAnalyticsService
from crisis_sim.trading_engine.services.crisis import CrisisDefinition, CrisisService
from crisis_sim.trading_engine.services.market_clock import MarketClock
from crisis_sim.trading_engine.services.pricing import import_prices
from crisis_sim.trading_engine.services.results import FailureReason, OperationResult


router = APIRouter(prefix="/api/market", tags=["market"])

STATUS_BY_REASON = {
    FailureReason.VALIDATION: 400,
    FailureReason.INSUFFICIENT_RESOURCE: 409,
    FailureReason.NO_ACTIVE_RUN: 409,
    FailureReason.NOT_FOUND: 404,
}


def raise_for_result(result: OperationResult) -> None:
    if result.success:
        return
    status_code = STATUS_BY_REASON.get(result.reason, 400)
    raise HTTPException(status_code=status_code, detail=result.message)


def get_market_clock() -> MarketClock:
    return MarketClock()


@router.get("/stocks", response_model=List[StockResponse])
def list_stocks(
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    stocks = db.query(Stock).order_by(Stock.stock_id).all()
    return [
        StockResponse(
            stock_id=stock.stock_id,
            ticker=stock.ticker,
            name=stock.name,
            sector=stock.sector,
            base_price=stock.base_price,
            current_price=clock.current_price(db, stock.stock_id),
        )
        for stock in stocks
    ]


@router.get("/stocks/{stock_id}/history", response_model=List[PricePointResponse])
def get_price_history(
    stock_id: int,
    run_id: Optional[int] = None,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    if db.get(Stock, stock_id) is None:
        raise HTTPException(status_code=404, detail="Stock not found")

    if run_id is None:
        run = clock.get_active_run(db)
        if run is None:
            raise HTTPException(status_code=409, detail="No active simulation")
        run_id = run.run_id

    return [
        PricePointResponse(
            stock_id=point.stock_id,
            day_index=point.day_index,
            price=point.price,
            priced_at=point.priced_at,
        )
        for point in clock.price_history(db, stock_id=stock_id, run_id=run_id)
    ]


@router.get("/runs/active", response_model=SimulationRunResponse)
def get_active_run(
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    run = clock.get_active_run(db)
    if run is None:
        raise HTTPException(status_code=404, detail="No active simulation")
    return SimulationRunResponse.model_validate(run)


@router.get("/crises/active", response_model=List[CrisisResponse])
def get_active_crises(
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    return [CrisisResponse.model_validate(crisis) for crisis in clock.active_crises(db)]


@router.post("/import-prices", response_model=MessageResponse)
def import_base_prices(
    db: Session = Depends(get_db),
    admin: Users = Depends(get_current_admin_user),
):
    updated = import_prices(db)
    db.commit()
    return MessageResponse(message=f"Imported prices for {updated} stocks")


@router.post("/runs", response_model=SimulationRunResponse)
def start_new_run(
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    admin: Users = Depends(get_current_admin_user),
):
    run = clock.start_new_run(db)
    db.commit()
    db.refresh(run)
    return SimulationRunResponse.model_validate(run)


@router.post("/runs/advance", response_model=SimulationRunResponse)
def advance_day(
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    admin: Users = Depends(get_current_admin_user),
):
    if not clock.advance_day(db):
        raise HTTPException(
            status_code=409,
            detail="Cannot advance day (already at day 5 or no active simulation)",
        )
    db.commit()
    run = clock.get_active_run(db)
    return SimulationRunResponse.model_validate(run)


@router.post("/runs/{run_id}/crises", response_model=CrisisResponse)
def create_crisis(
    run_id: int,
    payload: CrisisCreate,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    admin: Users = Depends(get_current_admin_user),
):
    result = CrisisService(clock.generator).create_crisis(
        db,
        run_id=run_id,
        definition=CrisisDefinition(
            title=payload.title,
            description=payload.description,
            sector=payload.sector,
            impact_strength=payload.impact_strength,
            start_day=payload.start_day,
            end_day=payload.end_day,
        ),
    )
    raise_for_result(result)
    db.commit()
    db.refresh(result.crisis)
    return CrisisResponse.model_validate(result.crisis)


@router.delete("/crises/{crisis_id}", response_model=MessageResponse)
def delete_crisis(
    crisis_id: int,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    admin: Users = Depends(get_current_admin_user),
):
    result = CrisisService(clock.generator).delete_crisis(db, crisis_id=crisis_id)
    raise_for_result(result)
    db.commit()
    return MessageResponse(message=result.message)


@router.post("/runs/{run_id}/summary", response_model=WeeklySummaryResponse)
def generate_weekly_summary(
    run_id: int,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    admin: Users = Depends(get_current_admin_user),
):
    result = WeeklyAnalyticsService(clock).generate_weekly_summary(db, run_id=run_id)
    raise_for_result(result)
    db.commit()
    db.refresh(result.summary)
    return WeeklySummaryResponse.model_validate(result.summary)


@router.get("/runs/{run_id}/summaries", response_model=List[WeeklySummaryResponse])
def list_weekly_summaries(
    run_id: int,
    db: Session = Depends(get_db),
    clock: MarketClock = Depends(get_market_clock),
    current_user: Users = Depends(get_current_active_user),
):
    if db.get(SimulationRun, run_id) is None:
        raise HTTPException(status_code=404, detail="Simulation run not found")
    summaries = WeeklyAnalyticsService(clock).list_summaries(db, run_id=run_id)
    return [WeeklySummaryResponse.model_validate(summary) for summary in summaries]
