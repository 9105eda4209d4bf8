# services/slot_service.py

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models.timeSlot import TimeSlot
from models.booking import Booking
from db.extensions import db
from services.exceptions import ValidationError, ConflictError, NotFoundError, IntegrityGuardError
from services.utils import parse_int


class SlotService:
    """
    Hourly slot catalog.

    Callers outside the admin screens address slots by their 1-based position
    in the hour-ordered list, never by the row id.
    """

    @staticmethod
    def hour_bounds():
        return (
            current_app.config.get('SLOT_MIN_HOUR', 7),
            current_app.config.get('SLOT_MAX_HOUR', 22)
        )

    @staticmethod
    def validate_hour(hour):
        hour = parse_int(hour, 'hour')
        min_hour, max_hour = SlotService.hour_bounds()
        if hour < min_hour or hour > max_hour:
            raise ValidationError(f"Hour must be between {min_hour} and {max_hour}")
        return hour

    @staticmethod
    def list_slots():
        return TimeSlot.query.order_by(TimeSlot.hour.asc()).all()

    @staticmethod
    def create_slot(hour):
        hour = SlotService.validate_hour(hour)

        if TimeSlot.query.filter_by(hour=hour).first():
            raise ConflictError(f"Time slot already exists for hour {hour}")

        slot = TimeSlot(hour=hour)
        db.session.add(slot)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"Time slot already exists for hour {hour}")

        current_app.logger.info(f"Created time slot for hour {hour}")
        return slot

    @staticmethod
    def update_slot(slot_id, hour):
        hour = SlotService.validate_hour(hour)

        slot = db.session.get(TimeSlot, slot_id)
        if not slot:
            raise NotFoundError("Time slot not found")

        clash = TimeSlot.query.filter(TimeSlot.hour == hour, TimeSlot.id != slot_id).first()
        if clash:
            raise ConflictError(f"Another time slot already exists for hour {hour}")

        slot.hour = hour
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Time slot already exists for this hour")

        current_app.logger.info(f"Updated time slot {slot_id} to hour {hour}")
        return slot

    @staticmethod
    def delete_slot(slot_id):
        slot = db.session.get(TimeSlot, slot_id)
        if not slot:
            raise NotFoundError("Time slot not found")

        booking_count = Booking.query.filter_by(time_slot_id=slot_id).count()
        if booking_count > 0:
            raise IntegrityGuardError(
                f"Cannot delete time slot. {booking_count} booking(s) exist for this slot.",
                booking_count
            )

        hour = slot.hour
        db.session.delete(slot)
        db.session.commit()
        current_app.logger.info(f"Deleted time slot {slot_id} (hour {hour})")
        return hour

    @staticmethod
    def bulk_create(start_hour, end_hour):
        """
        Create every hour in ``[start_hour, end_hour]``.

        Hours that already exist are skipped, not fatal. Returns
        ``(created_slots, skipped_hours)``.
        """
        start_hour = parse_int(start_hour, 'startHour')
        end_hour = parse_int(end_hour, 'endHour')
        if start_hour >= end_hour:
            raise ValidationError("Please provide valid startHour and endHour (startHour < endHour)")

        min_hour, max_hour = SlotService.hour_bounds()
        if start_hour < min_hour or end_hour > max_hour:
            raise ValidationError(f"Hours must be between {min_hour} and {max_hour}")

        return SlotService._insert_hours(range(start_hour, end_hour + 1))

    @staticmethod
    def ensure_default_slots():
        """Seed the full configured hour range; existing hours are left alone."""
        min_hour, max_hour = SlotService.hour_bounds()
        return SlotService._insert_hours(range(min_hour, max_hour + 1))

    @staticmethod
    def _insert_hours(hours):
        existing = {hour for (hour,) in db.session.query(TimeSlot.hour).all()}
        created, skipped = [], []

        for hour in hours:
            if hour in existing:
                skipped.append(hour)
                continue

            # One commit per hour so a concurrent duplicate only skips that hour
            slot = TimeSlot(hour=hour)
            db.session.add(slot)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                skipped.append(hour)
                continue
            existing.add(hour)
            created.append(slot)

        current_app.logger.info(
            f"Bulk insert completed: {len(created)} created, {len(skipped)} duplicates skipped"
        )
        return created, skipped

    @staticmethod
    def resolve_position(position):
        """Map a 1-based slot position to its TimeSlot."""
        position = parse_int(position, 'timeSlotId')
        slots = SlotService.list_slots()
        if position < 1 or position > len(slots):
            raise ValidationError("Invalid time slot ID")
        return slots[position - 1]

    @staticmethod
    def positions(slots=None):
        """``{time_slot.id: position}`` for the hour-ordered slot list."""
        slots = slots if slots is not None else SlotService.list_slots()
        return {slot.id: index + 1 for index, slot in enumerate(slots)}
