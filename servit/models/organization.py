from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from servit.database import Base
from servit.models.base import TimestampMixin, new_id


class Organization(Base, TimestampMixin):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    default_currency = Column(String(3), nullable=False, default="CAD")

    # Relationships
    users = relationship("User", back_populates="organization")
    locations = relationship("Location", back_populates="organization")
