from sqlalchemy import Column, String, Integer, Float, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship

from servit.database import Base
from servit.models.base import TimestampMixin, new_id


class Recipe(Base, TimestampMixin):
    __tablename__ = "recipes"

    id = Column(String(64), primary_key=True, default=new_id)
    organization_id = Column(String(36), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    yield_qty = Column("yield", Float, nullable=False, default=1)
    yield_unit = Column(String(32), nullable=False, default="portion")
    shelf_life_days = Column(Integer, nullable=False, default=0)
    tools = Column(Text)
    method = Column(Text)
    image_url = Column(String)
    components = Column(JSON, nullable=False, default=list)  # ids of sub-recipes

    # Relationships
    lines = relationship(
        "RecipeLine",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeLine.position",
    )


class RecipeLine(Base):
    __tablename__ = "recipe_lines"

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(64), ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    # Weak reference: the ingredient may have been deleted since
    ingredient_id = Column(String(64), nullable=False, index=True)
    qty = Column(Float, nullable=False, default=0)
    unit = Column(String(32), nullable=False, default="")

    # Relationships
    recipe = relationship("Recipe", back_populates="lines")
