from crisis_sim.api.database.database import Base
from sqlalchemy import JSON, Column, Float, ForeignKey, Integer, Text, TIMESTAMP, func, Index


class WeeklySummary(Base):
    # Aggregate report for a finished run. Rows are never updated.
    __tablename__ = "weekly_summaries"
    __table_args__ = (Index("ix_weekly_summaries_run_id", "run_id"),)

    summary_id = Column(Integer, primary_key=True, nullable=False)
    run_id = Column(
        Integer,
        ForeignKey("simulation_runs.run_id", ondelete="CASCADE"),
        nullable=False,
    )
    sector_impact = Column(JSON, nullable=False)
    avg_reaction_time_hours = Column(Float, nullable=False)
    total_trades = Column(Integer, nullable=False)
    panic_sells = Column(Integer, nullable=False)
    fomo_buys = Column(Integer, nullable=False)
    risk_index_change = Column(Float, nullable=False)
    top_traders = Column(JSON, nullable=False)
    crisis_timeline = Column(JSON, nullable=False)
    narrative = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
