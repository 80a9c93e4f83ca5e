from crisis_sim.api.database.database import Base
from sqlalchemy import Boolean, Column, Date, Integer, TIMESTAMP, false, func, Index

FIRST_DAY = 0
FINAL_DAY = 5


class SimulationRun(Base):
    # One simulated trading week. At most one row has is_active set.
    __tablename__ = "simulation_runs"
    __table_args__ = (Index("ix_simulation_runs_is_active", "is_active"),)

    run_id = Column(Integer, primary_key=True, nullable=False)
    run_date = Column(Date, nullable=False)
    current_day = Column(Integer, nullable=False, server_default=str(FIRST_DAY))
    is_active = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
