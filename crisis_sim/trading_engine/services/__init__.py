from .actions import TradeAction, TradeType
from .analytics import (
    CrisisTimelineEntry,
    SummaryResult,
    TopTrader,
    WeeklyAnalyticsService,
    WeeklyMetrics,
    render_narrative,
)
from .behavior import (
    BehaviorClassifier,
    BehaviorStats,
    calculate_volatility,
    classify_trade_type,
    reaction_time_ms,
)
from .crisis import CrisisDefinition, CrisisResult, CrisisService
from .execution import TradeExecutor, TradeIntent, TradeResult
from .market_clock import MarketClock
from .portfolio import PortfolioRepository, PortfolioService, PortfolioSnapshot, Position
from .portfolio import (
    PortfolioPerformance,
    SqlPortfolioRepository,
    apply_fill,
)
from .pricing import (
    CrisisShock,
    PricePathGenerator,
    PricePoint,
    PriceSeriesRepository,
    SqlPriceSeriesRepository,
    StockQuote,
    crisis_factor,
    import_prices,
)
from .results import FailureReason, OperationResult

__all__ = [
    "TradeAction",
    "TradeType",
    "CrisisTimelineEntry",
    "SummaryResult",
    "TopTrader",
    "WeeklyAnalyticsService",
    "WeeklyMetrics",
    "render_narrative",
    "BehaviorClassifier",
    "BehaviorStats",
    "calculate_volatility",
    "classify_trade_type",
    "reaction_time_ms",
    "CrisisDefinition",
    "CrisisResult",
    "CrisisService",
    "TradeExecutor",
    "TradeIntent",
    "TradeResult",
    "MarketClock",
    "PortfolioRepository",
    "PortfolioService",
    "PortfolioSnapshot",
    "Position",
    "PortfolioPerformance",
    "SqlPortfolioRepository",
    "apply_fill",
    "CrisisShock",
    "PricePathGenerator",
    "PricePoint",
    "PriceSeriesRepository",
    "SqlPriceSeriesRepository",
    "StockQuote",
    "crisis_factor",
    "import_prices",
    "FailureReason",
    "OperationResult",
]
