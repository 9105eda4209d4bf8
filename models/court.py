# models/court.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime


class Court(db.Model):
    __tablename__ = 'courts'

    id = Column(Integer, primary_key=True)
    sport_id = Column(String(64), ForeignKey('sports.id'), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    number = Column(Integer, nullable=False)  # 1-based ordinal within the sport
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sport = relationship('Sport', back_populates='courts')
    bookings = relationship('Booking', back_populates='court')

    __table_args__ = (
        UniqueConstraint('sport_id', 'name', name='uq_court_sport_name'),
        UniqueConstraint('sport_id', 'number', name='uq_court_sport_number'),
    )

    def __repr__(self):
        return f"<Court sport_id={self.sport_id} name={self.name}>"

    def to_dict(self):
        return {
            'id': self.id,
            'sport_id': self.sport_id,
            'name': self.name,
            'number': self.number
        }
