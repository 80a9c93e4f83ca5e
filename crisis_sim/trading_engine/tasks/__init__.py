from . import advance_day, generate_weekly_summary, import_prices

__all__ = [
    "advance_day",
    "generate_weekly_summary",
    "import_prices",
]
