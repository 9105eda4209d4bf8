# services/utils.py

from flask import current_app
from datetime import datetime, date
from pytz import timezone
from werkzeug.utils import secure_filename

from services.exceptions import ValidationError

ALLOWED_IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp', 'heic'}


def facility_timezone():
    return timezone(current_app.config.get('FACILITY_TIMEZONE', 'UTC'))


def facility_now():
    return datetime.now(facility_timezone())


def normalize_booking_date(value=None):
    """
    Reduce ``value`` to the calendar day used as the booking key.

    Accepts a ``date``, a ``datetime`` or an ISO string. Aware datetimes are
    converted to the facility time zone first; None means today there.
    """
    if value is None or value == '':
        return facility_now().date()

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str):
        raw = value.strip()
        try:
            if len(raw) == 10:
                return datetime.strptime(raw, "%Y-%m-%d").date()
            parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError(f"Invalid date '{value}'. Expected YYYY-MM-DD")
    else:
        raise ValidationError(f"Invalid date '{value}'. Expected YYYY-MM-DD")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(facility_timezone())
    return parsed.date()


def parse_int(value, field_name):
    """Coerce form/JSON input to int or raise ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def clean_str(value, field_name, required=True):
    """Trimmed text of a form/JSON field; non-strings are a ValidationError."""
    if value is None:
        value = ''
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field_name} is required")
    return value


def allowed_image(file_storage):
    """Check that the upload looks like an image by MIME type and extension."""
    filename = secure_filename(file_storage.filename or '')
    if '.' not in filename or filename.rsplit('.', 1)[1].lower() not in ALLOWED_IMAGE_EXTENSIONS:
        return False
    mimetype = file_storage.mimetype or ''
    return mimetype.startswith('image/')


def validate_photo_upload(file_storage):
    """Reject empty, non-image or oversized approval photos before they hit the store."""
    if not file_storage or file_storage.filename == '':
        raise ValidationError("Approval photo file is required")

    if not allowed_image(file_storage):
        raise ValidationError("Only image files are allowed for the approval photo")

    file_storage.stream.seek(0, 2)  # Seek to end
    file_size = file_storage.stream.tell()
    file_storage.stream.seek(0)

    max_bytes = current_app.config.get('MAX_PHOTO_BYTES', 5 * 1024 * 1024)
    if file_size > max_bytes:
        raise ValidationError(f"Approval photo too large (max {max_bytes // (1024 * 1024)}MB)")
    return file_size
