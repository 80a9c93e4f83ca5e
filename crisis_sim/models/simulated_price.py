from crisis_sim.api.database.database import Base
from sqlalchemy import Column, ForeignKey, Integer, Numeric, TIMESTAMP, UniqueConstraint, Index


class SimulatedPrice(Base):
    # One generated price per (run, stock, day); replaced wholesale on regeneration.
    __tablename__ = "simulated_prices"
    __table_args__ = (
        UniqueConstraint(
            "run_id",
            "stock_id",
            "day_index",
            name="uq_simulated_price_run_stock_day",
        ),
        Index("ix_simulated_price_run_stock", "run_id", "stock_id"),
    )

    price_id = Column(Integer, primary_key=True, nullable=False)
    run_id = Column(
        Integer,
        ForeignKey("simulation_runs.run_id", ondelete="CASCADE"),
        nullable=False,
    )
    stock_id = Column(
        Integer,
        ForeignKey("stocks.stock_id", ondelete="CASCADE"),
        nullable=False,
    )
    day_index = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    priced_at = Column(TIMESTAMP(timezone=True), nullable=False)
