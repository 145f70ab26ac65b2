"""
A generated coffee-cup reading. Rows are written once by the fortune workflow
together with the credit debit and never updated afterwards.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.db.base import Base


class Fortune(Base):
    __tablename__ = "fortunes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    photos = Column(JSON, nullable=False, default=list)  # Encoded photos, at most 5, in upload order
    for_self = Column(Boolean, nullable=False, default=True)

    # Snapshot of the guest the reading was for (empty when for_self)
    guest_name = Column(String, nullable=True)
    guest_gender = Column(String, nullable=True)
    guest_birth_date = Column(String, nullable=True)
    guest_relationship_status = Column(String, nullable=True)
    guest_profession = Column(String, nullable=True)

    interpretation = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="fortunes")

    def __repr__(self):
        subject = "self" if self.for_self else (self.guest_name or "guest")
        return f"<Fortune(id={self.id}, user_id={self.user_id}, for={subject})>"
