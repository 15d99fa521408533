from sqlalchemy import Column, String, Integer, Float, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from servit.database import Base
from servit.models.base import TimestampMixin, new_id
from servit.models.price import PriceRecordMixin


class Ingredient(Base, TimestampMixin):
    __tablename__ = "ingredients"

    id = Column(String(64), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    unit = Column(String(32), nullable=False, default="")
    category = Column(String(100))
    allergens = Column(JSON, nullable=False, default=list)
    price_version = Column(Integer, nullable=False, default=0)

    # Relationships
    prices = relationship(
        "IngredientPrice",
        back_populates="ingredient",
        cascade="all, delete-orphan",
    )


class IngredientPrice(Base, PriceRecordMixin):
    __tablename__ = "ingredient_prices"
    __value_field__ = "unit_cost"
    __table_args__ = (
        Index("ix_ingredient_prices_open", "ingredient_id", "effective_to"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    ingredient_id = Column(String(64), ForeignKey('ingredients.id', ondelete='CASCADE'), nullable=False)
    unit_cost = Column(Float)

    # Relationships
    ingredient = relationship("Ingredient", back_populates="prices")
