import os
from decimal import Decimal

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return int(raw)


SIM_RANDOM_SEED = _optional_int("SIM_RANDOM_SEED")

USER_STARTING_BALANCE = Decimal(os.getenv("SIM_USER_STARTING_BALANCE", "100000"))
ADMIN_STARTING_BALANCE = Decimal(os.getenv("SIM_ADMIN_STARTING_BALANCE", "1000000"))

ADMIN_USERNAME = os.getenv("SIM_ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("SIM_ADMIN_EMAIL", "admin@market.com")
ADMIN_PASSWORD = os.getenv("SIM_ADMIN_PASSWORD", "admin123")
