from .behavior_event import BehaviorEvent
from .crisis_event import CrisisEvent
from .portfolio_holding import PortfolioHolding
from .simulated_price import SimulatedPrice
from .simulation_run import FINAL_DAY, FIRST_DAY, SimulationRun
from .stock import Stock
from .transaction import Transaction
from .users import USER_ROLE_ADMIN, USER_ROLE_USER, Users
from .weekly_summary import WeeklySummary

__all__ = [
    "BehaviorEvent",
    "CrisisEvent",
    "PortfolioHolding",
    "SimulatedPrice",
    "SimulationRun",
    "FINAL_DAY",
    "FIRST_DAY",
    "Stock",
    "Transaction",
    "Users",
    "USER_ROLE_ADMIN",
    "USER_ROLE_USER",
    "WeeklySummary",
]
