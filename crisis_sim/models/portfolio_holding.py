from crisis_sim.api.database.database import Base
from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
    Index,
)


class PortfolioHolding(Base):
    __tablename__ = "portfolio_holdings"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "stock_id",
            name="uq_portfolio_holding_user_stock",
        ),
        Index("ix_portfolio_holding_user_id", "user_id"),
    )

    holding_id = Column(Integer, primary_key=True, nullable=False)
    user_id = Column(
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    stock_id = Column(
        Integer,
        ForeignKey("stocks.stock_id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False)
    avg_buy_price = Column(Numeric(14, 4), nullable=False)
