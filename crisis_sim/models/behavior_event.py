from crisis_sim.api.database.database import Base
from sqlalchemy import BigInteger, Column, Float, ForeignKey, Integer, String, TIMESTAMP, func, Index


class BehaviorEvent(Base):
    # Classification of a single transaction; reaction_time_ms is null outside a crisis.
    __tablename__ = "behavior_events"
    __table_args__ = (Index("ix_behavior_events_user_id", "user_id"),)

    event_id = Column(Integer, primary_key=True, nullable=False)
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
    transaction_id = Column(
        Integer,
        ForeignKey("transactions.transaction_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    crisis_id = Column(
        Integer,
        ForeignKey("crisis_events.crisis_id", ondelete="SET NULL"),
        nullable=True,
    )
    reaction_time_ms = Column(BigInteger, nullable=True)
    trade_type = Column(String, nullable=False)
    risk_delta = Column(Float, nullable=False, server_default="0")
    recorded_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
