from sqlalchemy import Column, String, Boolean, Integer, Float, ForeignKey, Index
from sqlalchemy.orm import relationship

from servit.database import Base
from servit.models.base import TimestampMixin, new_id
from servit.models.price import PriceRecordMixin

MENU_ITEM_TYPES = ("Prep", "Purchased", "Expo", "Line Station")


class MenuItem(Base, TimestampMixin):
    __tablename__ = "menu_items"

    id = Column(String(64), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    brand = Column(String(100))
    type = Column(String(50), nullable=False, default="Line Station")
    station = Column(String(50))
    # Weak reference, may dangle
    recipe_id = Column(String(64), index=True)
    active = Column(Boolean, nullable=False, default=True)
    image_url = Column(String)
    price_version = Column(Integer, nullable=False, default=0)

    # Relationships
    prices = relationship(
        "MenuItemPrice",
        back_populates="menu_item",
        cascade="all, delete-orphan",
    )


class MenuItemPrice(Base, PriceRecordMixin):
    __tablename__ = "menu_item_prices"
    __value_field__ = "sell_price"
    __table_args__ = (
        Index("ix_menu_item_prices_open", "menu_item_id", "effective_to"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    menu_item_id = Column(String(64), ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False)
    sell_price = Column(Float)

    # Relationships
    menu_item = relationship("MenuItem", back_populates="prices")
