from __future__ import annotations

from celery import shared_task

from crisis_sim.api.database.database import SessionLocal
from crisis_sim.trading_engine.services.market_clock import MarketClock


@shared_task(name="market.advance_day")
def run_advance_day() -> dict:
    return advance_market_day()


def advance_market_day() -> dict:
    clock = MarketClock()
    session = SessionLocal()
    try:
        advanced = clock.advance_day(session)
        if not advanced:
            session.rollback()
            return {"advanced": False, "run_id": None, "current_day": None}

        run = clock.get_active_run(session)
        payload = {
            "advanced": True,
            "run_id": int(run.run_id),
            "current_day": int(run.current_day),
        }
        session.commit()
        return payload
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
