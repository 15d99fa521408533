from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Integer, Float, UniqueConstraint

from servit.database import Base
from servit.models.base import new_id
from servit.utils.timezone import utcnow


class ServerSale(Base):
    __tablename__ = "server_sales"

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    server_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    server_name = Column(String(255))
    server_code = Column(String(50))
    location_id = Column(String(36), index=True)
    menu_item_id = Column(String(64), nullable=False, index=True)
    # Snapshot of the menu item at punch time
    menu_item_name = Column(String(255))
    type = Column(String(50))
    station = Column(String(50))
    table_no = Column(String(32))
    qty = Column(Integer, nullable=False, default=1)
    price_per_unit = Column(Float, nullable=False)
    line_total = Column(Float, nullable=False)
    service_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class TableClosing(Base):
    __tablename__ = "table_closings"
    __table_args__ = (
        UniqueConstraint("server_id", "service_date", "table_no", name="uq_table_closing"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    server_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    server_name = Column(String(255))
    location_id = Column(String(36))
    table_no = Column(String(32), nullable=False)
    service_date = Column(Date, nullable=False)
    subtotal = Column(Float, nullable=False)
    tip_percent = Column(Float, nullable=False)
    tip_amount = Column(Float, nullable=False)
    grand_total = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
