# models/sport.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime


class Sport(db.Model):
    __tablename__ = 'sports'

    # Human-chosen slug, e.g. "padel"
    id = Column(String(64), primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    courts = relationship('Court', back_populates='sport', order_by='Court.number')

    def __repr__(self):
        return f"<Sport id={self.id} name={self.name}>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
