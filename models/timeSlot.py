# models/timeSlot.py
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime


def format_hour(hour):
    """12-hour clock label for an hour of day, e.g. 13 -> '1:00 PM'."""
    hour = hour % 24
    period = 'PM' if hour >= 12 else 'AM'
    display_hour = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display_hour}:00 {period}"


class TimeSlot(db.Model):
    __tablename__ = 'time_slots'

    id = Column(Integer, primary_key=True)
    hour = Column(Integer, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship('Booking', back_populates='time_slot')

    @property
    def formatted_slot(self):
        return f"{format_hour(self.hour)} - {format_hour(self.hour + 1)}"

    def __repr__(self):
        return f"<TimeSlot hour={self.hour}>"

    def to_dict(self):
        return {
            'id': self.id,
            'hour': self.hour,
            'formatted_slot': self.formatted_slot
        }
