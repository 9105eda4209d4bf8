# models/booking.py
from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import relationship, validates
from db.extensions import db
from datetime import datetime
import enum


class BookingStatus(enum.Enum):
    available = 'available'
    booked = 'booked'
    closed = 'closed'

    @classmethod
    def parse(cls, value):
        """Return the member for ``value`` or None when it is not a known status."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class Booking(db.Model):
    """
    A non-available (court, slot, date) cell.

    There is never a row with status ``available``: releasing a slot deletes
    its row.
    """
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True)
    court_id = Column(Integer, ForeignKey('courts.id'), nullable=False, index=True)
    time_slot_id = Column(Integer, ForeignKey('time_slots.id'), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    status = Column(Enum(BookingStatus, name='booking_status_enum'), nullable=False)
    booking_by = Column(String(255), nullable=True)

    # Approval photo in the object store
    photo_key = Column(String(500), nullable=True, index=True)
    photo_url = Column(String(1000), nullable=True)
    photo_filename = Column(String(255), nullable=True)

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    court = relationship('Court', back_populates='bookings')
    time_slot = relationship('TimeSlot', back_populates='bookings')
    user = relationship('User')

    __table_args__ = (
        UniqueConstraint('court_id', 'time_slot_id', 'date', name='uq_booking_court_slot_date'),
    )

    @validates('status')
    def validate_status(self, key, value):
        if value == BookingStatus.available:
            raise ValueError("Available slots are not stored as bookings")
        return value

    def approval_photo(self):
        if not self.photo_key:
            return None
        return {
            'key': self.photo_key,
            'url': self.photo_url,
            'filename': self.photo_filename
        }

    def __repr__(self):
        return f"<Booking court_id={self.court_id} time_slot_id={self.time_slot_id} date={self.date} status={self.status}>"
