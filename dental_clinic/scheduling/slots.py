"""
Availability slot generation.

Turns a doctor's weekly availability rules and existing bookings into the
bookable HH:MM start times for one calendar date. Everything here is pure:
callers fetch rules and bookings for the doctor and pass them in.

Rules and bookings are read by attribute, so ORM rows, pydantic models and
plain namespaces all work:

    rule:    day_of_week, start_time, end_time, slot_duration, is_active
    booking: date, time, status
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

CANCELLED_STATUS = 'cancelled'


def day_of_week(target_date: date) -> int:
    """Weekday index with Sunday=0 ... Saturday=6."""
    return target_date.isoweekday() % 7


def time_str_to_minutes(value: str | time) -> int:
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.strip().split(':')[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time_str(total_minutes: int) -> str:
    return f'{total_minutes // 60:02d}:{total_minutes % 60:02d}'


def _as_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _as_time_str(value: str | time) -> str:
    return minutes_to_time_str(time_str_to_minutes(value))


def validate_rule_window(start_time: str | time, end_time: str | time, slot_duration: int) -> None:
    """Raise ValueError for a rule that could never produce a slot."""
    if slot_duration is None or slot_duration <= 0:
        raise ValueError('Slot duration must be a positive number of minutes.')
    if time_str_to_minutes(start_time) >= time_str_to_minutes(end_time):
        raise ValueError('Start time must be before end time.')


def iterate_rule_slots(rule: Any) -> list[str]:
    """Slot start times cut from a single rule's window."""
    duration = rule.slot_duration or 0
    if duration <= 0:
        return []

    start_minutes = time_str_to_minutes(rule.start_time)
    window_minutes = time_str_to_minutes(rule.end_time) - start_minutes

    slots: list[str] = []
    offset = 0
    while offset + duration <= window_minutes:
        slots.append(minutes_to_time_str(start_minutes + offset))
        offset += duration

    return slots


def occupied_times(target_date: date | str, bookings: Iterable[Any]) -> set[str]:
    target_date = _as_date(target_date)
    return {
        _as_time_str(booking.time)
        for booking in bookings
        if _as_date(booking.date) == target_date and booking.status != CANCELLED_STATUS
    }


def compute_available_slots(
    target_date: date | str,
    rules: Iterable[Any],
    bookings: Iterable[Any],
) -> list[str]:
    """
    Compute the free slot start times for a date.

    Args:
        target_date: the calendar date being booked
        rules: every availability rule of the doctor, active or not
        bookings: the doctor's bookings on any date

    Returns:
        Sorted, de-duplicated "HH:MM" strings. Empty when no active rule
        covers the weekday.
    """
    target_date = _as_date(target_date)
    weekday = day_of_week(target_date)

    day_rules = [rule for rule in rules if rule.day_of_week == weekday and rule.is_active]
    if not day_rules:
        return []

    taken = occupied_times(target_date, bookings)

    available: set[str] = set()
    for rule in day_rules:
        available.update(slot for slot in iterate_rule_slots(rule) if slot not in taken)

    return sorted(available)


def drop_elapsed_slots(slots: Iterable[str], target_date: date | str, now: datetime) -> list[str]:
    """Remove slots that already started when the date is today."""
    if _as_date(target_date) != now.date():
        return list(slots)

    current_minutes = now.hour * 60 + now.minute
    return [slot for slot in slots if time_str_to_minutes(slot) > current_minutes]


def is_date_available(target_date: date, rules: Iterable[Any], today: date) -> bool:
    if target_date < today:
        return False
    weekday = day_of_week(target_date)
    return any(rule.day_of_week == weekday and rule.is_active for rule in rules)


def available_days(rules: Iterable[Any], start: date, horizon_days: int) -> list[date]:
    rules = list(rules)
    return [
        start + timedelta(days=offset)
        for offset in range(horizon_days)
        if is_date_available(start + timedelta(days=offset), rules, start)
    ]
