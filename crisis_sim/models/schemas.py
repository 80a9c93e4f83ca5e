from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Literal

from pydantic import BaseModel

UserRole = Literal["user", "admin"]
TradeSide = Literal["buy", "sell"]


class UserCreate(BaseModel):
    username: str
    email: str
    password: str


class UserResponse(BaseModel):
    user_id: int
    username: str
    email: str
    role: UserRole
    balance: Decimal
    risk_index: float
    is_active: bool

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str


class StockResponse(BaseModel):
    stock_id: int
    ticker: str
    name: str
    sector: str
    base_price: Decimal
    current_price: Optional[Decimal] = None

    class Config:
        from_attributes = True


class SimulationRunResponse(BaseModel):
    run_id: int
    run_date: date
    current_day: int
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class PricePointResponse(BaseModel):
    stock_id: int
    day_index: int
    price: Decimal
    priced_at: datetime

    class Config:
        from_attributes = True


class CrisisCreate(BaseModel):
    title: str
    description: str = ""
    sector: str
    impact_strength: Decimal
    start_day: int
    end_day: int


class CrisisResponse(BaseModel):
    crisis_id: int
    run_id: int
    title: str
    description: str
    sector: str
    impact_strength: Decimal
    start_day: int
    end_day: int
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class TradeRequest(BaseModel):
    stock_id: int
    quantity: int


class TradeResultResponse(BaseModel):
    success: bool
    message: str
    reason: Optional[str] = None
    transaction_id: Optional[int] = None
    trade_type: Optional[str] = None
    price: Optional[Decimal] = None


class TransactionResponse(BaseModel):
    transaction_id: int
    user_id: int
    stock_id: int
    run_id: int
    action: TradeSide
    quantity: int
    price: Decimal
    executed_at: Optional[datetime]

    class Config:
        from_attributes = True


class HoldingResponse(BaseModel):
    stock_id: int
    quantity: int
    average_cost: Decimal
    current_price: Optional[Decimal] = None


class PortfolioResponse(BaseModel):
    user_id: int
    cash: Decimal
    risk_index: float
    holdings: List[HoldingResponse]
    total_value: Decimal
    total_invested: Decimal
    profit_loss: Decimal
    profit_loss_pct: Decimal


class BehaviorStatsResponse(BaseModel):
    total_trades: int
    trade_type_counts: Dict[str, int]
    avg_reaction_time_hours: float
    total_risk_delta: float


class WeeklySummaryResponse(BaseModel):
    summary_id: int
    run_id: int
    sector_impact: Dict[str, float]
    avg_reaction_time_hours: float
    total_trades: int
    panic_sells: int
    fomo_buys: int
    risk_index_change: float
    top_traders: List[dict]
    crisis_timeline: List[dict]
    narrative: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
