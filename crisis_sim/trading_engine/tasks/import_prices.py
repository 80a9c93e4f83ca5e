from __future__ import annotations

from celery import shared_task

from crisis_sim.api.database.database import SessionLocal
from crisis_sim.trading_engine.services import pricing


@shared_task(name="market.import_prices")
def run_price_import() -> dict:
    return import_base_prices()


def import_base_prices() -> dict:
    session = SessionLocal()
    try:
        updated = pricing.import_prices(session)
        session.commit()
        return {"stocks_updated": updated}
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
