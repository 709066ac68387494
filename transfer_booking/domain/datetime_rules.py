"""
DateTime rules for pickups and return legs.

All instants are naive local wall-clock datetimes in the service's
timezone (``settings.timezone``); the schedule a visitor enters is local
time, so comparisons happen in that frame.

Rules
-----
* Earliest pickup = now + ``min_advance_minutes``, truncated to the minute.
  An earlier pickup is clamped up, not rejected.
* A return leg must start strictly after the pickup.  When it does not,
  it is moved to pickup + 1 day at the pickup's time of day.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from transfer_booking.config import settings

from .entities import BookingDraft, Schedule

ONE_DAY = timedelta(days=1)


def local_now(tz_name: str = settings.timezone) -> datetime:
    """Current wall-clock time in *tz_name*, without tzinfo."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def minimum_pickup_instant(
    now: datetime, advance_minutes: int = settings.min_advance_minutes
) -> datetime:
    earliest = now + timedelta(minutes=advance_minutes)
    return earliest.replace(second=0, microsecond=0)


def maximum_pickup_instant(
    now: datetime, advance_days: int = settings.max_advance_days
) -> datetime:
    """Upper bound of the selectable pickup range."""
    return (now + timedelta(days=advance_days)).replace(second=0, microsecond=0)


def minimum_return_date(pickup_date: date) -> date:
    """First calendar day a return leg may be picked for."""
    return pickup_date + ONE_DAY


def default_schedule(
    now: datetime, advance_minutes: int = settings.min_advance_minutes
) -> Schedule:
    earliest = minimum_pickup_instant(now, advance_minutes)
    return Schedule(date=earliest.date(), time=earliest.time())


def default_return(schedule: Schedule) -> Schedule:
    """Fill a missing return leg with pickup + 1 day."""
    back = schedule.pickup_at + ONE_DAY
    return replace(
        schedule,
        return_date=schedule.return_date or back.date(),
        return_time=schedule.return_time or back.time(),
    )


def normalize_pickup(
    draft: BookingDraft,
    now: datetime,
    advance_minutes: int = settings.min_advance_minutes,
) -> BookingDraft:
    """Clamp a too-early pickup up to the minimum bookable instant."""
    earliest = minimum_pickup_instant(now, advance_minutes)
    if draft.schedule.pickup_at >= earliest:
        return draft
    schedule = replace(draft.schedule, date=earliest.date(), time=earliest.time())
    return replace(draft, schedule=schedule)


def ensure_return_ordering(draft: BookingDraft) -> BookingDraft:
    """Push a return leg that does not follow the pickup to pickup + 1 day."""
    if not draft.is_return:
        return draft
    return_at = draft.schedule.return_at
    if return_at is None:
        return draft
    pickup_at = draft.schedule.pickup_at
    if return_at > pickup_at:
        return draft
    back = pickup_at + ONE_DAY
    schedule = replace(
        draft.schedule, return_date=back.date(), return_time=back.time()
    )
    return replace(draft, schedule=schedule)


def schedule_problems(
    draft: BookingDraft,
    now: datetime,
    advance_minutes: int = settings.min_advance_minutes,
) -> list[str]:
    """Reasons the draft's schedule is not bookable at *now*."""
    problems: list[str] = []
    if draft.schedule.pickup_at < minimum_pickup_instant(now, advance_minutes):
        problems.append("pickup is earlier than the minimum advance window")
    if draft.is_return:
        return_at = draft.schedule.return_at
        if return_at is None:
            problems.append("return date and time are required")
        elif return_at <= draft.schedule.pickup_at:
            problems.append("return must be after pickup")
    return problems
