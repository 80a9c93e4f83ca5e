from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging

from sqlalchemy.orm import Session

from crisis_sim.models.crisis_event import CrisisEvent
from crisis_sim.models.simulation_run import FINAL_DAY, FIRST_DAY, SimulationRun
from crisis_sim.utils.helper import utc_now

from .pricing import PricePathGenerator
from .results import FailureReason, OperationResult

logger = logging.getLogger("crisis_sim.trading_engine.crisis")


@dataclass(frozen=True)
class CrisisDefinition:
    title: str
    sector: str
    impact_strength: Decimal
    start_day: int
    end_day: int
    description: str = ""


@dataclass(frozen=True)
class CrisisResult(OperationResult):
    crisis: CrisisEvent | None = None


class CrisisService:
    """Creates and removes crisis events, regenerating the run's prices each time."""

    def __init__(self, generator: PricePathGenerator | None = None) -> None:
        self._generator = generator or PricePathGenerator()

    def create_crisis(
        self,
        session: Session,
        run_id: int,
        definition: CrisisDefinition,
    ) -> CrisisResult:
        run = session.get(SimulationRun, run_id)
        if run is None:
            return CrisisResult(
                success=False,
                message="Simulation run not found",
                reason=FailureReason.NOT_FOUND,
            )

        error = self._validate_definition(definition)
        if error:
            return CrisisResult(
                success=False,
                message=error,
                reason=FailureReason.VALIDATION,
            )

        crisis = CrisisEvent(
            run_id=run_id,
            title=definition.title.strip(),
            description=definition.description,
            sector=definition.sector.strip(),
            impact_strength=Decimal(str(definition.impact_strength)),
            start_day=definition.start_day,
            end_day=definition.end_day,
            created_at=utc_now(),
        )
        session.add(crisis)
        session.flush()

        self._generator.generate(session, run_id)
        logger.info(
            "Created crisis_id=%s on run_id=%s for sector=%s days %d-%d",
            crisis.crisis_id,
            run_id,
            crisis.sector,
            crisis.start_day,
            crisis.end_day,
        )
        return CrisisResult(success=True, message="Crisis event created", crisis=crisis)

    def delete_crisis(self, session: Session, crisis_id: int) -> CrisisResult:
        crisis = session.get(CrisisEvent, crisis_id)
        if crisis is None:
            return CrisisResult(
                success=False,
                message="Crisis event not found",
                reason=FailureReason.NOT_FOUND,
            )

        run_id = int(crisis.run_id)
        session.delete(crisis)
        session.flush()

        self._generator.generate(session, run_id)
        logger.info("Deleted crisis_id=%s from run_id=%s", crisis_id, run_id)
        return CrisisResult(success=True, message="Crisis event deleted")

    def _validate_definition(self, definition: CrisisDefinition) -> str | None:
        if not definition.title or not definition.title.strip():
            return "crisis title cannot be empty"
        if not definition.sector or not definition.sector.strip():
            return "crisis sector cannot be empty"
        for day in (definition.start_day, definition.end_day):
            if day < FIRST_DAY or day > FINAL_DAY:
                return f"crisis days must be within {FIRST_DAY}-{FINAL_DAY}"
        if definition.start_day > definition.end_day:
            return "crisis start_day must not be after end_day"
        return None
