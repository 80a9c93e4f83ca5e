from crisis_sim.api.database.database import Base
from sqlalchemy import Column, Integer, Numeric, String, Index


class Stock(Base):
    # base_price is the day-0 seed for every generated price path.
    __tablename__ = "stocks"
    __table_args__ = (Index("ix_stocks_sector", "sector"),)

    stock_id = Column(Integer, primary_key=True, nullable=False)
    ticker = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    sector = Column(String, nullable=False)
    base_price = Column(Numeric(12, 2), nullable=False)
