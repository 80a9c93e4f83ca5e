from __future__ import annotations

from celery import shared_task

from crisis_sim.api.database.database import SessionLocal
from crisis_sim.trading_engine.services.analytics import WeeklyAnalyticsService


@shared_task(name="market.generate_weekly_summary")
def run_weekly_summary(run_id: int) -> dict:
    return generate_weekly_summary(run_id=run_id)


def generate_weekly_summary(run_id: int) -> dict:
    service = WeeklyAnalyticsService()
    session = SessionLocal()
    try:
        result = service.generate_weekly_summary(session=session, run_id=run_id)
        if not result.success:
            session.rollback()
            return {"run_id": run_id, **result.to_dict(), "summary_id": None}

        session.commit()
        return {
            "run_id": run_id,
            **result.to_dict(),
            "summary_id": int(result.summary.summary_id),
        }
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
