# controllers/booking_controller.py

from flask import Blueprint, request, jsonify, current_app, g, redirect
import json

from models.booking import Booking
from services.auth_service import login_required, admin_required
from services.booking_service import BookingService
from services.cloudinary_services import get_photo_store
from services.court_status_service import CourtStatusService
from services.exceptions import ValidationError, NotFoundError
from services.utils import validate_photo_upload, parse_int

booking_bp = Blueprint('booking', __name__)


def request_payload():
    """Form fields for multipart uploads, JSON body otherwise."""
    if request.content_type and request.content_type.startswith('multipart/form-data'):
        return request.form
    return request.get_json(silent=True) or {}


def slot_positions_from(payload):
    """Accept a JSON list, a JSON-encoded list, a comma-separated string or repeated form fields."""
    if hasattr(payload, 'getlist'):
        values = payload.getlist('timeSlotIds')
        if len(values) != 1:
            return values
        raw = values[0]
    else:
        raw = payload.get('timeSlotIds')

    if isinstance(raw, str):
        raw = raw.strip()
        if raw.startswith('['):
            try:
                return json.loads(raw)
            except json.JSONDecodeError:
                raise ValidationError('timeSlotIds must be a list')
        return [part.strip() for part in raw.split(',') if part.strip()]
    return raw


def store_uploaded_photo(store):
    """Validate and upload ``approval_photo`` if the request carries one."""
    photo = request.files.get('approval_photo')
    if photo is None or photo.filename == '':
        return None
    validate_photo_upload(photo)
    return store.put(photo.stream, photo.filename)


def photo_key_from(filename, store):
    return filename if filename.startswith(f"{store.folder}/") else f"{store.folder}/{filename}"


@booking_bp.route('/bookings/court-status', methods=['GET'])
def get_court_status():
    data = CourtStatusService.project(
        sport_id=request.args.get('sport') or None,
        booking_date=request.args.get('date') or None
    )
    return jsonify(data), 200


@booking_bp.route('/bookings/update', methods=['POST'])
@login_required
def update_booking():
    payload = request_payload()
    store = get_photo_store()
    attachment = store_uploaded_photo(store)

    current_app.logger.debug(
        f"Booking update: court={payload.get('courtId')}, slot={payload.get('timeSlotId')}, "
        f"status={payload.get('status')}, user={g.current_user.username}"
    )

    result = BookingService.reconcile(
        court_id=payload.get('courtId'),
        slot_position=payload.get('timeSlotId'),
        booking_date=payload.get('date'),
        status=payload.get('status'),
        actor=g.current_user,
        booking_by=payload.get('booking_by'),
        attachment=attachment,
        store=store
    )

    return jsonify({
        'success': True,
        'message': result.message,
        'booking': result.to_dict(),
        'cleanup_failures': result.cleanup_failures
    }), 200


@booking_bp.route('/bookings/bulk-update', methods=['POST'])
@login_required
def bulk_update_bookings():
    payload = request_payload()
    store = get_photo_store()
    slot_positions = slot_positions_from(payload)
    attachment = store_uploaded_photo(store)

    result = BookingService.reconcile_bulk(
        court_id=payload.get('courtId'),
        slot_positions=slot_positions,
        booking_date=payload.get('date'),
        status=payload.get('status'),
        actor=g.current_user,
        booking_by=payload.get('booking_by'),
        attachment=attachment,
        store=store
    )

    response_payload = result.to_dict()
    response_payload['message'] = (
        f"{result.successful} slot(s) updated, {result.failed} failed - status: {result.status.value}"
    )

    if not result.errors:
        status_code = 200
    elif result.results:
        status_code = 207  # 207: Multi-Status indicates partial success
    else:
        status_code = 400
    return jsonify(response_payload), status_code


@booking_bp.route('/bookings/approval-photo/<path:filename>', methods=['GET'])
def get_approval_photo(filename):
    store = get_photo_store()
    key = photo_key_from(filename, store)
    if not store.exists(key):
        raise NotFoundError('Approval photo not found')

    return jsonify({
        'success': True,
        'key': key,
        'url': store.url_for(key)
    }), 200


@booking_bp.route('/bookings/approval-photo-direct/<path:filename>', methods=['GET'])
def get_approval_photo_redirect(filename):
    store = get_photo_store()
    key = photo_key_from(filename, store)
    if not store.exists(key):
        raise NotFoundError('Approval photo not found')
    return redirect(store.url_for(key), code=302)


@booking_bp.route('/bookings/admin/approval-photos', methods=['GET'])
@admin_required
def list_approval_photos():
    """Stored photos, each flagged as orphaned when no booking references it."""
    store = get_photo_store()
    limit = parse_int(request.args.get('limit', 500), 'limit')
    photos = store.list(prefix=request.args.get('prefix') or None, limit=limit)

    keys = [photo['key'] for photo in photos]
    referenced = set()
    if keys:
        referenced = {
            key for (key,) in Booking.query.with_entities(Booking.photo_key)
            .filter(Booking.photo_key.in_(keys)).distinct()
        }

    for photo in photos:
        photo['orphaned'] = photo['key'] not in referenced

    return jsonify({
        'success': True,
        'count': len(photos),
        'orphan_count': sum(1 for photo in photos if photo['orphaned']),
        'data': photos
    }), 200
