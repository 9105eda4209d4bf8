# services/court_status_service.py

from flask import current_app

from models.sport import Sport
from models.court import Court
from models.booking import Booking, BookingStatus
from db.extensions import db
from services.exceptions import ValidationError, NotFoundError
from services.slot_service import SlotService
from services.utils import normalize_booking_date, facility_now


class CourtStatusService:
    """Read-only (court x slot) grid for one sport and day."""

    @staticmethod
    def default_cell(position, time_slot):
        return {
            'id': str(position),
            'time': time_slot.formatted_slot,
            'status': BookingStatus.available.value,
            'booking_by': None,
            'approval_photo': None
        }

    @staticmethod
    def project(sport_id=None, booking_date=None):
        booking_date = normalize_booking_date(booking_date)

        sports = Sport.query.order_by(Sport.name.asc()).all()
        if not sports:
            raise NotFoundError('No sports available')

        if sport_id:
            sport = next((s for s in sports if s.id == sport_id), None)
            if sport is None:
                raise NotFoundError(f"Sport '{sport_id}' not found")
        else:
            sport = sports[0]

        time_slots = SlotService.list_slots()
        if not time_slots:
            raise ValidationError('No time slots available. Please create time slots first.')

        courts = Court.query.filter_by(sport_id=sport.id).order_by(Court.number.asc()).all()
        if not courts:
            raise ValidationError(
                f"No courts found for sport {sport.id}. Please create courts for this sport."
            )

        bookings = (
            db.session.query(Booking)
            .join(Court, Booking.court_id == Court.id)
            .filter(Court.sport_id == sport.id, Booking.date == booking_date)
            .all()
        )

        positions = SlotService.positions(time_slots)

        grid = {}
        court_data = []
        for court in courts:
            slots = {
                str(position): CourtStatusService.default_cell(position, time_slot)
                for position, time_slot in enumerate(time_slots, start=1)
            }
            grid[court.id] = slots
            court_data.append({'id': str(court.id), 'name': court.name, 'slots': slots})

        for booking in bookings:
            position = positions.get(booking.time_slot_id)
            cells = grid.get(booking.court_id)
            if position is None or cells is None:
                continue
            cell = cells[str(position)]
            cell['status'] = booking.status.value
            cell['booking_by'] = booking.booking_by or None
            cell['approval_photo'] = booking.approval_photo()

        current_app.logger.debug(
            f"Court status for {sport.id} on {booking_date}: {len(courts)} courts, "
            f"{len(time_slots)} slots, {len(bookings)} bookings"
        )

        return {
            'date': booking_date.isoformat(),
            'current_time': facility_now().strftime('%I:%M %p'),
            'sports': [{'id': s.id, 'name': s.name} for s in sports],
            'selected_sport': sport.id,
            'time_slots': [
                {'id': positions[time_slot.id], 'formatted_slot': time_slot.formatted_slot}
                for time_slot in time_slots
            ],
            'courts': court_data
        }
