from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from servit.database import Base
from servit.models.base import TimestampMixin, new_id

ROLES = ("ADMIN", "CORPORATE", "CULINARY", "SERVER")


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False)
    location_id = Column(String(36), ForeignKey('locations.id'))
    server_code = Column(String(50))
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    organization = relationship("Organization", back_populates="users")
    location = relationship("Location", foreign_keys=[location_id])
