from crisis_sim.api.database.database import Base
from sqlalchemy import Boolean, Column, Float, Integer, Numeric, String, TIMESTAMP, func, true

USER_ROLE_USER = "user"
USER_ROLE_ADMIN = "admin"


class Users(Base):
    # Trader account; balance and risk_index change only through executed trades.
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, nullable=False)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, server_default=USER_ROLE_USER)
    balance = Column(Numeric(14, 2), nullable=False)
    risk_index = Column(Float, nullable=False, server_default="0")
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
