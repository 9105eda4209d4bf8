# services/sport_service.py

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
import re

from models.sport import Sport
from models.court import Court
from models.booking import Booking
from db.extensions import db
from services.exceptions import ValidationError, ConflictError, NotFoundError, IntegrityGuardError
from services.utils import parse_int, clean_str

SPORT_ID_PATTERN = re.compile(r'^[a-z0-9-]+$')

DEFAULT_COURT_COUNT = 4
MIN_COURT_COUNT = 1
MAX_COURT_COUNT = 20


def court_name_for(sport_name, number):
    """Cricket has pitches; every other sport has courts."""
    if sport_name == 'Cricket':
        return f"Pitch-{number}"
    return f"{sport_name} Court {number}"


class SportService:

    @staticmethod
    def get_sport(sport_id):
        sport = db.session.get(Sport, sport_id)
        if not sport:
            raise NotFoundError('Sport not found')
        return sport

    @staticmethod
    def list_sports():
        return Sport.query.order_by(Sport.name.asc()).all()

    @staticmethod
    def list_sports_with_court_counts():
        rows = (
            db.session.query(Sport, func.count(Court.id))
            .outerjoin(Court, Court.sport_id == Sport.id)
            .group_by(Sport.id)
            .order_by(Sport.name.asc())
            .all()
        )
        return [dict(sport.to_dict(), court_count=count) for sport, count in rows]

    @staticmethod
    def get_sport_with_courts(sport_id):
        sport = SportService.get_sport(sport_id)
        courts = Court.query.filter_by(sport_id=sport_id).order_by(Court.number.asc()).all()
        return sport, courts

    @staticmethod
    def create_sport(sport_id, name):
        """Create the sport and provision its first four courts in one commit."""
        sport_id = clean_str(sport_id, 'Sport ID', required=False)
        name = clean_str(name, 'Sport name', required=False)

        if not sport_id or not name:
            raise ValidationError('Sport ID and name are required')

        if not SPORT_ID_PATTERN.match(sport_id):
            raise ValidationError('Sport ID must be lowercase letters, numbers, and hyphens only')

        if db.session.get(Sport, sport_id):
            raise ConflictError('Sport with this ID already exists')

        if Sport.query.filter_by(name=name).first():
            raise ConflictError('Sport with this name already exists')

        sport = Sport(id=sport_id, name=name)
        db.session.add(sport)

        courts = [
            Court(sport_id=sport_id, number=number, name=court_name_for(name, number))
            for number in range(1, DEFAULT_COURT_COUNT + 1)
        ]
        db.session.add_all(courts)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Sport with this ID or name already exists')

        current_app.logger.info(f"Sport '{name}' created with {len(courts)} courts")
        return sport, courts

    @staticmethod
    def update_court_count(sport_id, court_count):
        """
        Grow or shrink the sport's courts to ``court_count``.

        Shrinking removes the highest-numbered courts and is refused outright
        when any of them still has bookings.
        Returns ``(sport, added_courts, removed_count)``.
        """
        court_count = parse_int(court_count, 'courtCount')
        if court_count < MIN_COURT_COUNT or court_count > MAX_COURT_COUNT:
            raise ValidationError(f'Court count must be between {MIN_COURT_COUNT} and {MAX_COURT_COUNT}')

        sport = SportService.get_sport(sport_id)
        current_courts = Court.query.filter_by(sport_id=sport_id).order_by(Court.number.asc()).all()
        current_count = len(current_courts)

        current_app.logger.info(f"Updating {sport.name} from {current_count} to {court_count} courts")

        if court_count > current_count:
            next_number = current_courts[-1].number + 1 if current_courts else 1
            added = [
                Court(sport_id=sport_id, number=number, name=court_name_for(sport.name, number))
                for number in range(next_number, next_number + court_count - current_count)
            ]
            db.session.add_all(added)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                raise ConflictError(f'Court names for {sport.name} are already taken')
            current_app.logger.info(f"Added {len(added)} new courts to {sport.name}")
            return sport, added, 0

        if court_count < current_count:
            to_remove = current_courts[court_count:]
            court_ids = [court.id for court in to_remove]
            booking_count = Booking.query.filter(Booking.court_id.in_(court_ids)).count()
            if booking_count > 0:
                raise IntegrityGuardError(
                    f"Cannot remove courts. {booking_count} booking(s) exist for the courts to be removed. "
                    f"Please clear bookings first.",
                    booking_count
                )

            Court.query.filter(Court.id.in_(court_ids)).delete(synchronize_session=False)
            db.session.commit()
            current_app.logger.info(f"Removed {len(court_ids)} courts from {sport.name}")
            return sport, [], len(court_ids)

        return sport, [], 0

    @staticmethod
    def delete_sport(sport_id):
        sport = SportService.get_sport(sport_id)

        court_count = Court.query.filter_by(sport_id=sport_id).count()
        if court_count > 0:
            raise IntegrityGuardError(
                f"Cannot delete sport. {court_count} court(s) exist for this sport. Delete courts first.",
                court_count
            )

        sport_name = sport.name
        db.session.delete(sport)
        db.session.commit()
        current_app.logger.info(f"Sport '{sport_name}' deleted")
        return sport_name
