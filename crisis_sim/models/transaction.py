from crisis_sim.api.database.database import Base
from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, TIMESTAMP, func, Index


class Transaction(Base):
    # Transaction is an immutable log of buy/sell fills executed against a run's prices.
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_run_id", "run_id"),
        Index("ix_transactions_user_id", "user_id"),
    )

    transaction_id = Column(Integer, primary_key=True, nullable=False)
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
    run_id = Column(
        Integer,
        ForeignKey("simulation_runs.run_id", ondelete="CASCADE"),
        nullable=False,
    )
    action = Column(String, nullable=False)  # "buy" or "sell"
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    executed_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
