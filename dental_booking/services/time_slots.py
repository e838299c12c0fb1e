"""Candidate appointment times offered by the booking wizard."""

from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from dental_booking.core import config
from dental_booking.core.errors import ValidationError
from dental_booking.services.availability import list_availability


def parse_time(value: str | time, field: str = 'appointment_time') -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        parsed = datetime.strptime(value.strip(), '%H:%M').time()
    except (AttributeError, ValueError) as exc:
        raise ValidationError('Times must use the HH:MM format.', field=field) from exc
    return parsed


def format_time(value: time) -> str:
    return value.strftime('%H:%M')


def iterate_slot_starts(on_date: date, start_time: time, end_time: time, step_minutes: int) -> list[time]:
    current = datetime.combine(on_date, start_time).replace(second=0, microsecond=0)
    end = datetime.combine(on_date, end_time)

    if current.minute % step_minutes != 0:
        current += timedelta(minutes=step_minutes - (current.minute % step_minutes))

    slots: list[time] = []
    while current < end:
        slots.append(current.time())
        current += timedelta(minutes=step_minutes)
    return slots


class TimeSlotProvider:
    def slots_for(self, dentist_id: str, on_date: date) -> list[time]:
        raise NotImplementedError


class FixedTimeSlotProvider(TimeSlotProvider):
    """The same configured list of times for every dentist and date."""

    def __init__(self, slots: list[str] | None = None):
        raw_slots = slots if slots is not None else config.BOOKING_TIME_SLOTS
        self.slots = sorted(parse_time(slot, field='BOOKING_TIME_SLOTS') for slot in raw_slots)

    def slots_for(self, dentist_id: str, on_date: date) -> list[time]:
        return list(self.slots)


class AvailabilityTimeSlotProvider(TimeSlotProvider):
    """Slot starts derived from the dentist's availability windows for the day."""

    def __init__(self, db: Session, step_minutes: int | None = None):
        self.db = db
        self.step_minutes = step_minutes or config.AVAILABILITY_SLOT_MINUTES

    def slots_for(self, dentist_id: str, on_date: date) -> list[time]:
        starts: set[time] = set()
        for window in list_availability(self.db, dentist_id, on_date):
            if not window.is_available:
                continue
            starts.update(iterate_slot_starts(on_date, window.start_time, window.end_time, self.step_minutes))
        return sorted(starts)


def get_time_slot_provider(db: Session) -> TimeSlotProvider:
    if config.TIME_SLOT_PROVIDER == 'availability':
        return AvailabilityTimeSlotProvider(db)
    return FixedTimeSlotProvider()
