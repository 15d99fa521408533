from servit.models.base import TimestampMixin
from servit.models.price import PriceRecordMixin
from servit.models.organization import Organization
from servit.models.location import Location
from servit.models.user import User, ROLES
from servit.models.ingredient import Ingredient, IngredientPrice
from servit.models.recipe import Recipe, RecipeLine
from servit.models.menu import MenuItem, MenuItemPrice, MENU_ITEM_TYPES
from servit.models.sales import ServerSale, TableClosing
from servit.models.preference import UserPreference

__all__ = [
    "TimestampMixin",
    "PriceRecordMixin",
    "Organization",
    "Location",
    "User",
    "ROLES",
    "Ingredient",
    "IngredientPrice",
    "Recipe",
    "RecipeLine",
    "MenuItem",
    "MenuItemPrice",
    "MENU_ITEM_TYPES",
    "ServerSale",
    "TableClosing",
    "UserPreference",
]
