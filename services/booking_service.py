# services/booking_service.py
"""
Booking reconciliation.

Given a (court, slot, date) cell and a desired status, work out the single row
mutation that gets the cell there and the photo-store cleanup that goes with
it.

* available -> delete the row (no row means available)
* booked    -> insert or update with booking_by and the approval photo
* closed    -> insert or update without booking_by or photo

Photo deletes are not transactional with the row write. They run after the
commit, are best-effort, and their failures are reported instead of raised. A
dangling photo with no booking pointing at it is the accepted failure mode; the
admin photo listing flags those as orphans.
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.booking import Booking, BookingStatus
from models.court import Court
from db.extensions import db
from services.cloudinary_services import get_photo_store
from services.exceptions import (
    BookingTrackerError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AuthError,
    AttachmentStoreError,
)
from services.slot_service import SlotService
from services.utils import normalize_booking_date, parse_int, clean_str

CREATED = 'created'
UPDATED = 'updated'
DELETED = 'deleted'
DELETE_FAILED = 'delete_failed'
ALREADY_AVAILABLE = 'already_available'


class CleanupPlan:
    """
    Photo keys to delete once the booking mutation has committed.

    ``scheduled`` is the set of keys already queued. Bulk requests share one
    plan across slots so each key is deleted at most once.
    """

    def __init__(self):
        self.scheduled = set()
        self.keys = []

    def schedule(self, key):
        if key and key not in self.scheduled:
            self.scheduled.add(key)
            self.keys.append(key)

    def run(self, store):
        failures = []
        for key in self.keys:
            # Bulk bookings share one photo across rows
            references = Booking.query.filter_by(photo_key=key).count()
            if references:
                current_app.logger.info(f"Keeping photo {key}: still referenced by {references} booking(s)")
                continue
            try:
                store.delete(key)
            except AttachmentStoreError as e:
                current_app.logger.warning(f"⚠️  Could not delete photo {key}: {e.message}")
                failures.append({'key': key, 'error': e.message})
        return failures


class ReconcileResult:

    def __init__(self, action, court, time_slot, slot_position, booking_date, status, actor,
                 booking_by=None, approval_photo=None):
        self.action = action
        self.court = court
        self.time_slot = time_slot
        self.slot_position = slot_position
        self.booking_date = booking_date
        self.status = status
        self.actor = actor
        self.booking_by = booking_by
        self.approval_photo = approval_photo
        self.cleanup_failures = []

    @property
    def message(self):
        return (
            f"Court {self.court.name} slot {self.time_slot.formatted_slot} "
            f"{self.action} - status: {self.status.value}"
        )

    def to_dict(self):
        return {
            'court': self.court.name,
            'court_id': self.court.id,
            'time_slot': self.time_slot.formatted_slot,
            'time_slot_id': self.slot_position,
            'date': self.booking_date.isoformat(),
            'status': self.status.value,
            'user': self.actor.username,
            'booking_by': self.booking_by,
            'approval_photo': self.approval_photo,
            'action': self.action
        }


class BulkReconcileResult:

    def __init__(self, status, results, errors, cleanup_failures):
        self.status = status
        self.results = results
        self.errors = errors
        self.cleanup_failures = cleanup_failures

    @property
    def successful(self):
        return len(self.results)

    @property
    def failed(self):
        return len(self.errors)

    @property
    def partial(self):
        return bool(self.results) and bool(self.errors)

    def to_dict(self):
        return {
            'success': not self.errors,
            'partial': self.partial,
            'status': self.status.value,
            'successful': self.successful,
            'failed': self.failed,
            'results': [result.to_dict() for result in self.results],
            'errors': self.errors,
            'cleanup_failures': self.cleanup_failures
        }


class BookingService:

    @staticmethod
    def validate_request(status, booking_by=None, attachment=None):
        """Check status and booked-only fields. Returns ``(BookingStatus, booking_by)``."""
        parsed = BookingStatus.parse(status)
        if parsed is None:
            valid = ', '.join(member.value for member in BookingStatus)
            raise ValidationError(f"Invalid status. Valid options: {valid}")

        if parsed != BookingStatus.booked:
            return parsed, None

        booking_by = clean_str(booking_by, 'booking_by', required=False)
        if not booking_by:
            raise ValidationError('booking_by field is required when status is booked')

        if attachment is None and current_app.config.get('REQUIRE_APPROVAL_PHOTO', True):
            raise ValidationError('Approval photo is required when status is booked')

        return parsed, booking_by

    @staticmethod
    def resolve_court(court_id):
        court = db.session.get(Court, parse_int(court_id, 'courtId'))
        if not court:
            raise NotFoundError('Court not found')
        return court

    @staticmethod
    def find_existing(court, time_slot, booking_date):
        return Booking.query.filter_by(
            court_id=court.id,
            time_slot_id=time_slot.id,
            date=booking_date
        ).first()

    @staticmethod
    def reconcile(court_id, slot_position, booking_date, status, actor,
                  booking_by=None, attachment=None, store=None):
        """
        Bring one (court, slot, date) cell to ``status``.

        ``attachment`` is a photo already stored by the caller. When the
        request fails it is discarded so nothing is left behind.
        """
        store = store or get_photo_store()

        try:
            if court_id in (None, '') or slot_position in (None, '') or not status:
                raise ValidationError('Missing required fields: courtId, timeSlotId, status')
            BookingService._require_actor(actor)
            status, booking_by = BookingService.validate_request(status, booking_by, attachment)
            booking_date = normalize_booking_date(booking_date)
            slot_position = parse_int(slot_position, 'timeSlotId')
            time_slot = SlotService.resolve_position(slot_position)
            court = BookingService.resolve_court(court_id)
        except Exception:
            BookingService._discard_upload(attachment, store)
            raise

        plan = CleanupPlan()
        try:
            result = BookingService._apply(
                court, time_slot, slot_position, booking_date, status, actor,
                booking_by, attachment, plan
            )
        except Exception:
            BookingService._discard_upload(attachment, store)
            raise

        result.cleanup_failures = plan.run(store)
        current_app.logger.info(result.message)
        return result

    @staticmethod
    def reconcile_bulk(court_id, slot_positions, booking_date, status, actor,
                       booking_by=None, attachment=None, store=None):
        """
        Reconcile several slots of one court and date to the same status.

        Each slot commits on its own; a failing slot is recorded and the rest
        carry on. A booked request shares one photo across all its rows.
        """
        store = store or get_photo_store()

        try:
            if court_id in (None, '') or not status:
                raise ValidationError('Missing required fields: courtId, timeSlotIds, status')
            if not isinstance(slot_positions, (list, tuple)) or not slot_positions:
                raise ValidationError('timeSlotIds must be a non-empty list')
            BookingService._require_actor(actor)
            status, booking_by = BookingService.validate_request(status, booking_by, attachment)
            booking_date = normalize_booking_date(booking_date)
            court = BookingService.resolve_court(court_id)
        except Exception:
            BookingService._discard_upload(attachment, store)
            raise

        plan = CleanupPlan()
        results, errors = [], []
        seen = set()

        for raw_position in slot_positions:
            try:
                position = parse_int(raw_position, 'timeSlotId')
                if position in seen:
                    raise ValidationError(f"Duplicate time slot {position} in request")
                seen.add(position)
                time_slot = SlotService.resolve_position(position)
                result = BookingService._apply(
                    court, time_slot, position, booking_date, status, actor,
                    booking_by, attachment, plan
                )
            except BookingTrackerError as e:
                db.session.rollback()
                current_app.logger.warning(f"Bulk update failed for slot {raw_position}: {e.message}")
                errors.append({'time_slot_id': raw_position, 'error': e.message})
                continue
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"❌ Bulk update database error for slot {raw_position}: {str(e)}")
                errors.append({'time_slot_id': raw_position, 'error': 'Failed to update booking'})
                continue
            results.append(result)

        retained = status == BookingStatus.booked and bool(results)
        if attachment is not None and not retained:
            plan.schedule(attachment.key)

        bulk_result = BulkReconcileResult(status, results, errors, plan.run(store))
        current_app.logger.info(
            f"Bulk update on court {court.name} for {booking_date}: "
            f"{bulk_result.successful} succeeded, {bulk_result.failed} failed"
        )
        return bulk_result

    @staticmethod
    def _apply(court, time_slot, slot_position, booking_date, status, actor,
               booking_by, attachment, plan):
        existing = BookingService.find_existing(court, time_slot, booking_date)

        if status == BookingStatus.available:
            if attachment is not None:
                plan.schedule(attachment.key)

            if not existing:
                return ReconcileResult(
                    ALREADY_AVAILABLE, court, time_slot, slot_position, booking_date, status, actor
                )

            plan.schedule(existing.photo_key)
            deleted = Booking.query.filter_by(id=existing.id).delete()
            db.session.commit()
            action = DELETED if deleted else DELETE_FAILED
            return ReconcileResult(action, court, time_slot, slot_position, booking_date, status, actor)

        if status == BookingStatus.closed and attachment is not None:
            plan.schedule(attachment.key)

        if existing:
            booking = existing
            action = UPDATED
        else:
            booking = Booking(court_id=court.id, time_slot_id=time_slot.id, date=booking_date)
            db.session.add(booking)
            action = CREATED

        booking.status = status
        booking.user_id = actor.id

        if status == BookingStatus.booked:
            booking.booking_by = booking_by
            if attachment is not None:
                if booking.photo_key != attachment.key:
                    plan.schedule(booking.photo_key)
                booking.photo_key = attachment.key
                booking.photo_url = attachment.url
                booking.photo_filename = attachment.filename
        else:
            plan.schedule(booking.photo_key)
            booking.booking_by = None
            booking.photo_key = None
            booking.photo_url = None
            booking.photo_filename = None

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning(
                f"Duplicate booking for court {court.id}, slot {time_slot.id}, date {booking_date}"
            )
            raise ConflictError('Booking already exists for this court, time slot, and date')

        return ReconcileResult(
            action, court, time_slot, slot_position, booking_date, status, actor,
            booking_by=booking.booking_by,
            approval_photo=booking.approval_photo()
        )

    @staticmethod
    def _require_actor(actor):
        if actor is None or getattr(actor, 'id', None) is None:
            raise AuthError('User not authenticated')

    @staticmethod
    def _discard_upload(attachment, store):
        if attachment is None:
            return
        try:
            store.delete(attachment.key)
            current_app.logger.info(f"Discarded unused upload {attachment.key}")
        except AttachmentStoreError as e:
            current_app.logger.warning(f"⚠️  Could not discard upload {attachment.key}: {e.message}")
