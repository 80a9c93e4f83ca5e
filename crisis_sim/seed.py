from __future__ import annotations

from decimal import Decimal
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crisis_sim.api.auth.auth import get_password_hash
from crisis_sim.models.stock import Stock
from crisis_sim.models.users import USER_ROLE_ADMIN, Users
from crisis_sim.settings import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    ADMIN_STARTING_BALANCE,
    ADMIN_USERNAME,
)

logger = logging.getLogger("crisis_sim.seed")

# (ticker, name, sector, base price)
DEFAULT_STOCKS = [
    ("RELIANCE", "Reliance Industries Ltd", "Energy", "2450.50"),
    ("TCS", "Tata Consultancy Services", "IT", "3650.75"),
    ("HDFCBANK", "HDFC Bank Ltd", "Banking", "1580.25"),
    ("INFY", "Infosys Ltd", "IT", "1450.80"),
    ("ICICIBANK", "ICICI Bank Ltd", "Banking", "950.60"),
    ("HINDUNILVR", "Hindustan Unilever Ltd", "FMCG", "2380.90"),
    ("BHARTIARTL", "Bharti Airtel Ltd", "Telecom", "880.45"),
    ("ITC", "ITC Ltd", "FMCG", "420.35"),
    ("SBIN", "State Bank of India", "Banking", "580.70"),
    ("WIPRO", "Wipro Ltd", "IT", "425.15"),
    ("LT", "Larsen & Toubro Ltd", "Infrastructure", "3250.40"),
    ("MARUTI", "Maruti Suzuki India Ltd", "Automobile", "10500.25"),
]


def ensure_seed_data(session: Session) -> None:
    """Create the stock universe and admin account when the store is empty."""
    stock_count = session.execute(select(func.count(Stock.stock_id))).scalar_one()
    if stock_count == 0:
        session.add_all(
            Stock(ticker=ticker, name=name, sector=sector, base_price=Decimal(price))
            for ticker, name, sector, price in DEFAULT_STOCKS
        )
        logger.info("Seeded %d stocks", len(DEFAULT_STOCKS))

    user_count = session.execute(select(func.count(Users.user_id))).scalar_one()
    if user_count == 0:
        session.add(
            Users(
                username=ADMIN_USERNAME,
                email=ADMIN_EMAIL,
                password=get_password_hash(ADMIN_PASSWORD),
                role=USER_ROLE_ADMIN,
                balance=ADMIN_STARTING_BALANCE,
                risk_index=0.0,
                is_active=True,
            )
        )
        logger.info("Seeded admin user %s", ADMIN_EMAIL)

    session.flush()
