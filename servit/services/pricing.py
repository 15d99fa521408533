"""
Effective-dated price store.

Ingredients (unit cost) and menu items (sell price) each own a history of
price records. Within one entity and (vendor, location) scope at most one
record is open (effective_to IS NULL). Adding a price closes every open
record in the scope and opens a new one inside a single transaction.

Writes are serialized per entity with a compare-and-swap on the parent's
price_version column, so two concurrent add_price calls cannot both leave
an open record behind; the loser gets PriceConflict and may retry.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servit.config import settings
from servit.models import Ingredient, IngredientPrice, MenuItem, MenuItemPrice
from servit.services.exceptions import (
    EntityNotFound,
    InvalidPrice,
    PriceConflict,
    PriceLookupError,
    PriceWriteError,
)
from servit.services.logging_utils import get_service_logger, log_operation
from servit.utils.timezone import EPOCH, as_utc, utcnow

logger = get_service_logger(__name__)


@dataclass(frozen=True)
class PriceScope:
    vendor_id: Optional[str] = None
    location_id: Optional[str] = None

    def matches(self, record) -> bool:
        return record.vendor_id == self.vendor_id and record.location_id == self.location_id


def effective_from_key(record) -> datetime:
    """Sort key for a price record; missing or unparseable dates rank as epoch."""
    value = getattr(record, "effective_from", None)
    if not isinstance(value, datetime):
        return EPOCH
    return as_utc(value)


def pick_current_price(records: Iterable):
    """
    Select the price to use right now.

    The open record wins; when several are open (or none is) the one with
    the newest effective_from is taken. Returns None for an empty history.
    """
    records = list(records)
    if not records:
        return None
    open_records = [r for r in records if r.is_current]
    candidates = open_records or records
    return max(candidates, key=effective_from_key)


def validate_price_value(value) -> float:
    if isinstance(value, bool):
        raise InvalidPrice(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidPrice(value)
    if not math.isfinite(number) or number < 0:
        raise InvalidPrice(value)
    return number


class EffectiveDatedPriceStore:
    """Price history for one kind of entity (ingredient or menu item)."""

    def __init__(self, entity_model, price_model, entity_key: str, kind: str):
        self.entity_model = entity_model
        self.price_model = price_model
        self.entity_key = entity_key
        self.kind = kind

    @property
    def value_field(self) -> str:
        return self.price_model.__value_field__

    def _records_stmt(self, entity_id: str, organization_id: Optional[str] = None):
        query = select(self.price_model).where(getattr(self.price_model, self.entity_key) == entity_id)
        if organization_id is not None:
            # Records of another tenant's entity never match
            query = query.join(
                self.entity_model,
                self.entity_model.id == getattr(self.price_model, self.entity_key),
            ).where(self.entity_model.organization_id == organization_id)
        return query

    def history(
        self,
        db: Session,
        entity_id: str,
        scope: Optional[PriceScope] = None,
        organization_id: Optional[str] = None,
    ) -> List:
        """
        All price records for the entity, newest effective_from first.

        With an organization_id only records of that tenant's entity are
        returned, so a foreign or unknown id has an empty history.
        """
        records = db.execute(self._records_stmt(entity_id, organization_id)).scalars().all()
        if scope is not None:
            records = [r for r in records if scope.matches(r)]
        return sorted(records, key=effective_from_key, reverse=True)

    def get_current_price(
        self,
        db: Session,
        entity_id: str,
        scope: Optional[PriceScope] = None,
        organization_id: Optional[str] = None,
    ):
        try:
            records = self.history(db, entity_id, scope, organization_id)
        except SQLAlchemyError as exc:
            db.rollback()
            log_operation(
                logger,
                operation="get_current_price",
                outcome="error",
                level=logging.WARNING,
                kind=self.kind,
                entity_id=entity_id,
                error=str(exc),
            )
            raise PriceLookupError(entity_id, exc) from exc
        return pick_current_price(records)

    def lookup(self, db: Session, organization_id: str, scope: Optional[PriceScope] = None) -> Callable:
        """Bind the store to a session and tenant as an ``entity_id -> record`` callable."""

        def _lookup(entity_id):
            return self.get_current_price(db, entity_id, scope, organization_id)

        return _lookup

    def _read_version(self, db: Session, entity_id: str, organization_id: Optional[str]):
        query = select(self.entity_model.price_version).where(self.entity_model.id == entity_id)
        if organization_id is not None:
            query = query.where(self.entity_model.organization_id == organization_id)
        return db.execute(query).scalar_one_or_none()

    def add_price(
        self,
        db: Session,
        entity_id: str,
        value,
        organization_id: Optional[str] = None,
        currency: Optional[str] = None,
        scope: Optional[PriceScope] = None,
        created_by: Optional[str] = None,
    ) -> str:
        """
        Close every open record in the scope and open a new one, atomically.

        Returns the id of the new record. Raises EntityNotFound, InvalidPrice,
        PriceConflict (lost a concurrent race) or PriceWriteError (the
        transaction was rejected; nothing was committed).
        """
        value = validate_price_value(value)
        scope = scope or PriceScope()
        model = self.entity_model

        try:
            seen_version = self._read_version(db, entity_id, organization_id)
            if seen_version is None:
                db.rollback()
                raise EntityNotFound(self.kind, entity_id)

            records = db.execute(self._records_stmt(entity_id, organization_id)).scalars().all()
            open_records = [r for r in records if r.is_current and scope.matches(r)]

            # effective_from never moves backwards, even if the clock does
            newest = max((effective_from_key(r) for r in records), default=EPOCH)
            stamp = max(utcnow(), newest)

            bumped = db.execute(
                update(model)
                .where(model.id == entity_id, model.price_version == seen_version)
                .values(price_version=seen_version + 1)
                .execution_options(synchronize_session=False)
            )
            if bumped.rowcount != 1:
                db.rollback()
                log_operation(
                    logger,
                    operation="add_price",
                    outcome="conflict",
                    level=logging.WARNING,
                    kind=self.kind,
                    entity_id=entity_id,
                )
                raise PriceConflict(entity_id)

            for record in open_records:
                record.effective_to = stamp

            new_record = self.price_model(
                **{
                    self.entity_key: entity_id,
                    self.value_field: value,
                    "currency": currency or settings.DEFAULT_CURRENCY,
                    "effective_from": stamp,
                    "effective_to": None,
                    "vendor_id": scope.vendor_id,
                    "location_id": scope.location_id,
                    "created_by": created_by,
                }
            )
            db.add(new_record)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            log_operation(
                logger,
                operation="add_price",
                outcome="error",
                level=logging.ERROR,
                kind=self.kind,
                entity_id=entity_id,
                error=str(exc),
            )
            raise PriceWriteError(entity_id, exc) from exc

        log_operation(
            logger,
            operation="add_price",
            outcome="success",
            kind=self.kind,
            entity_id=entity_id,
            value=value,
            closed=len(open_records),
        )
        return new_record.id


ingredient_prices = EffectiveDatedPriceStore(Ingredient, IngredientPrice, "ingredient_id", "Ingredient")
menu_item_prices = EffectiveDatedPriceStore(MenuItem, MenuItemPrice, "menu_item_id", "Menu item")
