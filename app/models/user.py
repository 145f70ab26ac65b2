from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # Stored lower-cased
    hashed_password = Column(String, nullable=False, default="")  # Empty for Google/Apple-only accounts
    google_id = Column(String, unique=True, index=True, nullable=True)
    apple_id = Column(String, unique=True, index=True, nullable=True)

    # Profile (set during onboarding)
    full_name = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)
    relationship_status = Column(String, nullable=True)
    profession = Column(String, nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    # Credits & premium
    credits = Column(Integer, default=0, nullable=False)
    is_premium = Column(Boolean, default=False, nullable=False)
    premium_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    fortunes = relationship("Fortune", back_populates="user", passive_deletes=True)
    subscriptions = relationship("Subscription", back_populates="user", passive_deletes=True)
