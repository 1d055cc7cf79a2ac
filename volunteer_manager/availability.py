"""
Availability of volunteers during an event.

Two views are derived from the same registration data: the hourly expectations shown
to the volunteer, and the avoid/unavailable markers shown on the admin schedule.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from .config import (
    DEFAULT_TIMEZONE,
    SCHEDULE_DAY_VIEW_START_TIME,
    SCHEDULE_EVENT_VIEW_END_HOURS,
    SCHEDULE_EVENT_VIEW_START_HOURS,
)
from .constants import EXPECTATION_AVAILABLE, EXPECTATION_AVOID, EXPECTATION_UNAVAILABLE
from .shared.dates import as_utc
from .shared.validators import validate_time

logger = logging.getLogger(__name__)

EXCEPTION_STATES = (EXPECTATION_AVAILABLE, EXPECTATION_AVOID, EXPECTATION_UNAVAILABLE)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 string, naive values are considered to be UTC"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_availability_exceptions(exceptions: Optional[str]) -> list[dict]:
    """Parse the stored JSON exceptions, skipping malformed entries"""
    if not exceptions or len(exceptions) <= 2:
        return []

    try:
        entries = json.loads(exceptions)
    except ValueError as e:
        logger.warning(f"⚠️ Invalid availability exceptions seen: {e}")
        return []

    if not isinstance(entries, list):
        return []

    parsed = []
    for entry in entries:
        if not isinstance(entry, dict) or not {"start", "end", "state"} <= entry.keys():
            continue
        if entry["state"] not in EXCEPTION_STATES:
            continue
        try:
            parsed.append(
                {
                    "start": parse_datetime(entry["start"]),
                    "end": parse_datetime(entry["end"]),
                    "state": entry["state"],
                }
            )
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Invalid availability exception seen: {entry}")
    return parsed


def parse_timeslot_ids(timeslots: Optional[str]) -> list[int]:
    if not timeslots:
        return []
    return [int(value) for value in timeslots.split(",") if value.strip().isdigit()]


def _add_hours(moment: datetime, hours: int) -> datetime:
    """Add exact hours to an aware datetime, independent of DST transitions"""
    return (moment.astimezone(timezone.utc) + timedelta(hours=hours)).astimezone(moment.tzinfo)


def _hours_until(origin: datetime, target: datetime) -> int:
    """Whole hours from `origin` until `target`, truncated towards zero"""
    return int((target - origin).total_seconds() / 3600)


def _is_same_day(one: datetime, two: datetime) -> bool:
    return one.date() == two.date()


def determine_expectations(
    event_start: datetime,
    event_end: datetime,
    event_timezone: Optional[str],
    timing_start: Optional[int] = None,
    timing_end: Optional[int] = None,
    exceptions: Optional[str] = None,
    selected_timeslots: Optional[list[tuple[datetime, datetime]]] = None,
) -> list[dict]:
    """
    Determine for each hour of the event whether the volunteer is expected to be
    available, should preferably not be scheduled ("avoid"), or is unavailable.

    Args:
        event_start: Time at which the event opens
        event_end: Time at which the event closes
        event_timezone: Timezone in which the event takes place
        timing_start: Hour at which the volunteer prefers to start their shifts
        timing_end: Hour at which the volunteer prefers to end their shifts
        exceptions: JSON encoded exceptions approved by the volunteering leads
        selected_timeslots: Program timeslots the volunteer would like to attend

    Returns:
        List of {"date", "expectations"} dicts, with 24 hourly expectations each
    """
    tz = ZoneInfo(event_timezone or DEFAULT_TIMEZONE)

    start_event = as_utc(event_start).astimezone(tz)
    end_event = as_utc(event_end).astimezone(tz)
    start_date = start_event.replace(hour=0, minute=0, second=0, microsecond=0)
    end_date = end_event.replace(hour=23, minute=59, second=59, microsecond=0)

    hourly_exceptions: dict[str, str] = {}
    for exception in parse_availability_exceptions(exceptions):
        time = exception["start"].astimezone(tz).replace(minute=0, second=0, microsecond=0)
        end = exception["end"].astimezone(tz)
        while time < end:
            hourly_exceptions[f"{time.date().isoformat()}T{time.hour}"] = exception["state"]
            time = _add_hours(time, 1)

    timeslots = [
        (as_utc(start), as_utc(end)) for start, end in (selected_timeslots or []) if start and end
    ]

    days = []
    date = start_date
    while date < end_date:
        expectations = []
        for hour in range(24):
            expectations.append(
                _determine_hourly_expectation(
                    date,
                    hour,
                    start_date,
                    end_date,
                    start_event,
                    end_event,
                    timing_start,
                    timing_end,
                    hourly_exceptions,
                    timeslots,
                )
            )

        days.append({"date": date.date().isoformat(), "expectations": expectations})
        date = (date + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)

    return days


def _determine_hourly_expectation(
    date: datetime,
    hour: int,
    start_date: datetime,
    end_date: datetime,
    start_event: datetime,
    end_event: datetime,
    timing_start: Optional[int],
    timing_end: Optional[int],
    hourly_exceptions: dict[str, str],
    timeslots: list[tuple[datetime, datetime]],
) -> str:
    # Exceptions approved by the volunteering leads override everything else
    exception = hourly_exceptions.get(f"{date.date().isoformat()}T{hour}")
    if exception:
        return exception

    hourly = _add_hours(date, hour)
    status = EXPECTATION_AVAILABLE

    if timing_start is not None and timing_end is not None:
        hours_until_start = timing_start - hour

        if timing_end > timing_start:
            hours_until_end = timing_end - hour

            if hours_until_start > 1:
                status = EXPECTATION_UNAVAILABLE
            elif hours_until_start > 0:
                status = EXPECTATION_AVOID

            if hours_until_end == 0:
                status = EXPECTATION_AVOID
            elif hours_until_end < 0:
                status = EXPECTATION_UNAVAILABLE
        else:
            # Shifts continue past midnight
            if not _is_same_day(date, start_date):
                if hour == timing_end:
                    status = EXPECTATION_AVOID
                elif hour > timing_end and hours_until_start > 2:
                    status = EXPECTATION_UNAVAILABLE

            if hour > timing_end:
                if hours_until_start > 1:
                    status = EXPECTATION_UNAVAILABLE
                elif hours_until_start > 0:
                    status = EXPECTATION_AVOID

    # Timeslots can only reduce availability
    if status != EXPECTATION_UNAVAILABLE and timeslots:
        next_hourly = _add_hours(hourly, 1)
        for timeslot_start, timeslot_end in timeslots:
            if timeslot_start < next_hourly and timeslot_end > hourly:
                status = EXPECTATION_AVOID

    if _is_same_day(date, start_date):
        hours_until_opening = _hours_until(hourly, start_event)
        if hours_until_opening > 3:
            return EXPECTATION_UNAVAILABLE
        if hours_until_opening > 1:
            return EXPECTATION_AVOID

    if _is_same_day(date, end_date):
        if _hours_until(hourly, end_event) <= 0:
            return EXPECTATION_UNAVAILABLE

    return status


def adjust_for_available_periods(entry: dict, available: list[dict]) -> list[dict]:
    """Subtract the `available` periods from `entry`, which may split it in multiple parts"""
    parts = [entry]
    for period in available:
        remaining = []
        for part in parts:
            if period["end"] <= part["start"] or period["start"] >= part["end"]:
                remaining.append(part)
                continue

            if period["start"] > part["start"]:
                remaining.append({"start": part["start"], "end": period["start"]})
            if period["end"] < part["end"]:
                remaining.append({"start": period["end"], "end": part["end"]})
        parts = remaining

    return [part for part in parts if part["start"] < part["end"]]


def determine_availability(
    event_start: datetime,
    event_end: datetime,
    event_timezone: Optional[str],
    timing_start: Optional[int],
    timing_end: Optional[int],
    exceptions: Optional[str],
    timeslot_ids: Optional[str],
    timeslots: dict[int, tuple[datetime, datetime]],
    settings: Optional[dict] = None,
) -> dict:
    """
    Determine the periods during which a volunteer should not be scheduled, for
    display on the admin schedule.

    Returns:
        Dict with "avoid" and "unavailable" lists of {"start", "end"} periods
    """
    settings = settings or {}
    tz = ZoneInfo(event_timezone or DEFAULT_TIMEZONE)

    available: list[dict] = []
    availability: dict[str, list[dict]] = {EXPECTATION_AVOID: [], EXPECTATION_UNAVAILABLE: []}

    # (1) Exceptions take precedence over the other blocks
    for exception in parse_availability_exceptions(exceptions):
        period = {"start": exception["start"], "end": exception["end"]}
        if exception["state"] == EXPECTATION_AVAILABLE:
            available.append(period)
        else:
            availability[exception["state"]].append(period)

    # (2) Timeslots the volunteer wants to attend are to be avoided
    for timeslot_id in parse_timeslot_ids(timeslot_ids):
        timeslot = timeslots.get(timeslot_id)
        if timeslot is None:
            continue

        period = {"start": as_utc(timeslot[0]), "end": as_utc(timeslot[1])}
        availability[EXPECTATION_AVOID].extend(adjust_for_available_periods(period, available))

    # (3) Outside of the volunteer's preferred timing they are unavailable
    if timing_start is not None and timing_end is not None:
        start_event = as_utc(event_start).astimezone(tz)
        end_event = as_utc(event_end).astimezone(tz)

        first_day = start_event.replace(hour=0, minute=0, second=0, microsecond=0)
        last_day = end_event.replace(hour=0, minute=0, second=0, microsecond=0)

        view_start_hours = settings.get("schedule-event-view-start-hours", SCHEDULE_EVENT_VIEW_START_HOURS)
        view_end_hours = settings.get("schedule-event-view-end-hours", SCHEDULE_EVENT_VIEW_END_HOURS)
        event_start_schedule_hour = start_event.hour - view_start_hours

        daily_start_time = validate_time(
            settings.get("schedule-day-view-start-time", SCHEDULE_DAY_VIEW_START_TIME), "08:00"
        )
        daily_start_hour = int(daily_start_time.split(":")[0])

        current_day = first_day
        while current_day <= last_day:
            if current_day == first_day:
                start_hour = 0  # midnight, the event hasn't started yet
                end_hour = max(event_start_schedule_hour, timing_start)
            else:
                start_hour = timing_end - 24 if timing_end > daily_start_hour else timing_end
                end_hour = timing_start

            period = {"start": _add_hours(current_day, start_hour), "end": _add_hours(current_day, end_hour)}
            availability[EXPECTATION_UNAVAILABLE].extend(adjust_for_available_periods(period, available))

            current_day = (current_day + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)

        # Close the timeline after the event has finished, until the end of the last day
        closing = {
            "start": _add_hours(end_event, view_end_hours),
            "end": last_day.replace(hour=23, minute=59, second=59),
        }
        availability[EXPECTATION_UNAVAILABLE].extend(adjust_for_available_periods(closing, available))

    return {
        kind: [
            {
                "start": period["start"].astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
                "end": period["end"].astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
            }
            for period in periods
            if period["start"] < period["end"]
        ]
        for kind, periods in availability.items()
    }
