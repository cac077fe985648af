"""
UserProfile model with per-window generation metering.
The id is the auth provider's user id (Firebase uid).
"""
from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint

from ideaboard.models.base import Base, utcnow


class UserProfile(Base):
    """User profile holding the generation counter for the current billing window."""

    __tablename__ = "profiles"

    id = Column(String(128), primary_key=True)  # Auth provider user id
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)

    # Usage counter for the current calendar-month window
    generation_count = Column(Integer, nullable=False, default=0)
    last_generation_reset = Column(DateTime, nullable=True)

    fcm_token = Column(String(512), nullable=True)  # Firebase Cloud Messaging token

    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("generation_count >= 0", name="ck_profile_generation_count_non_negative"),
    )

    def __repr__(self):
        return (
            f"<UserProfile(id={self.id}, generation_count={self.generation_count}, "
            f"last_generation_reset={self.last_generation_reset})>"
        )
