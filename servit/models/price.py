from sqlalchemy import Column, String, DateTime

from servit.config import settings


class PriceRecordMixin:
    """
    Columns shared by every effective-dated price table.

    A record with effective_to IS NULL is the open ("current") price for its
    entity and dimension scope. Concrete tables name their value column
    through __value_field__ (unit_cost for ingredients, sell_price for menu items).
    """

    __value_field__ = None

    currency = Column(String(3), nullable=False, default=settings.DEFAULT_CURRENCY)
    effective_from = Column(DateTime(timezone=True))
    effective_to = Column(DateTime(timezone=True))
    vendor_id = Column(String(64))
    location_id = Column(String(36))
    created_by = Column(String(36))

    @property
    def value(self):
        return getattr(self, self.__value_field__)

    @property
    def is_current(self) -> bool:
        return self.effective_to is None
