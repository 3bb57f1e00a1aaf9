"""Cron expression handling for scan schedules."""

from apscheduler.triggers.cron import CronTrigger


def parse_cron(expression: str, timezone=None) -> CronTrigger:
    """Build a trigger from a 5-field crontab or 6-field (leading seconds) expression.

    Raises ValueError for anything APScheduler cannot schedule.
    """
    fields = expression.split()
    if len(fields) == 5:
        return CronTrigger.from_crontab(expression, timezone=timezone)
    if len(fields) == 6:
        second, minute, hour, day, month, day_of_week = fields
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=day_of_week,
            timezone=timezone,
        )
    raise ValueError(f"Wrong number of fields in cron expression {expression!r}: {len(fields)}")


def is_valid_cron(expression: str) -> bool:
    try:
        parse_cron(expression)
    except ValueError:
        return False
    return True
