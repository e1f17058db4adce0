"""
Lawyer directory models.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from lawhelp.models.base import Base, utcnow


class Lawyer(Base):
    """Professional profile attached to a user account."""
    __tablename__ = "lawyers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    license_number = Column(String(100), nullable=False, unique=True)
    specialization = Column(JSON, nullable=False)
    experience_years = Column(Integer, nullable=False, default=0)
    location = Column(String(255), nullable=False)
    languages = Column(JSON, nullable=False)
    hourly_rate = Column(Integer, nullable=True)  # CFA francs
    bio = Column(Text, nullable=True)
    education = Column(JSON, nullable=True)
    certifications = Column(JSON, nullable=True)
    availability_schedule = Column(JSON, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="lawyer_profile")
    ratings = relationship("LawyerRating", back_populates="lawyer", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Lawyer(id={self.id}, license='{self.license_number}', rating={self.rating})>"


class LawyerRating(Base):
    """A user's 1-5 star review of a lawyer."""
    __tablename__ = "lawyer_ratings"

    id = Column(Integer, primary_key=True, index=True)
    lawyer_id = Column(Integer, ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    lawyer = relationship("Lawyer", back_populates="ratings")
