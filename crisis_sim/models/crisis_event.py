from crisis_sim.api.database.database import Base
from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text, TIMESTAMP, func, Index


class CrisisEvent(Base):
    # Sector-scoped daily drift applied to every day in [start_day, end_day].
    __tablename__ = "crisis_events"
    __table_args__ = (Index("ix_crisis_events_run_id", "run_id"),)

    crisis_id = Column(Integer, primary_key=True, nullable=False)
    run_id = Column(
        Integer,
        ForeignKey("simulation_runs.run_id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, server_default="")
    sector = Column(String, nullable=False)
    impact_strength = Column(Numeric(6, 4), nullable=False)
    start_day = Column(Integer, nullable=False)
    end_day = Column(Integer, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
