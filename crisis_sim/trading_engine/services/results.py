from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureReason(str, Enum):
    VALIDATION = "validation_error"
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    NO_ACTIVE_RUN = "no_active_run"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an engine operation, reported instead of raising."""

    success: bool
    message: str
    reason: FailureReason | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "reason": self.reason.value if self.reason is not None else None,
        }
