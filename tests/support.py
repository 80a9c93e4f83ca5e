from __future__ import annotations

from datetime import datetime, timedelta, timezone

RUN_START = datetime(2026, 1, 5, 9, 15, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime = RUN_START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta

    def set(self, value: datetime) -> None:
        self.current = value


class FixedRandom:
    """Random source whose draws are all the same value (0.5 means zero noise)."""

    def __init__(self, value: float = 0.5) -> None:
        self.value = value

    def random(self) -> float:
        return self.value
