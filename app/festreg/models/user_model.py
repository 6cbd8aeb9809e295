from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from festreg.database import Base, utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # ID issued by the identity provider, sent by clients in the x-clerk-id header
    clerk_id = Column(String, nullable=False, unique=True, index=True)

    email = Column(String, nullable=False, unique=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    college = Column(String, nullable=False, default="")
    year = Column(String, nullable=False, default="")
    branch = Column(String, nullable=False, default="")
    phone_number = Column(String, nullable=False, default="")
    is_admin = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="leader")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
