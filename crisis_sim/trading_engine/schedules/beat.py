from celery.schedules import crontab

beat_schedule = {
    # Refresh base prices before the Monday open so a new run starts from them.
    "import_prices_weekly": {
        "task": "market.import_prices",
        "schedule": crontab(minute=0, hour=9, day_of_week="mon"),
        "args": (),
    },
}
