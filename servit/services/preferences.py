"""
Per-user client preferences: role view, favorite menu items, recently viewed
items and label print quantity.

The store is independent of where preferences live; pass an
InMemoryPreferencesBackend in tests and a DatabasePreferencesBackend in the API.
"""

import logging
from typing import Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from servit.config import settings
from servit.models import UserPreference
from servit.schemas.preferences import Preferences, PreferencesUpdate, RecentEntry
from servit.services.logging_utils import get_service_logger, log_operation
from servit.utils.timezone import utcnow

logger = get_service_logger(__name__)


class InMemoryPreferencesBackend:
    def __init__(self):
        self._data: Dict[str, dict] = {}

    def load(self, user_id: str) -> Optional[dict]:
        return self._data.get(user_id)

    def save(self, user_id: str, data: dict) -> None:
        self._data[user_id] = data


class DatabasePreferencesBackend:
    def __init__(self, db: Session):
        self.db = db

    def load(self, user_id: str) -> Optional[dict]:
        row = self.db.get(UserPreference, user_id)
        return row.data if row else None

    def save(self, user_id: str, data: dict) -> None:
        row = self.db.get(UserPreference, user_id)
        if row is None:
            row = UserPreference(user_id=user_id, data=data)
            self.db.add(row)
        else:
            row.data = data
        self.db.commit()


class PreferencesStore:
    def __init__(self, backend, recent_limit: int = settings.RECENT_ITEMS_LIMIT):
        self.backend = backend
        self.recent_limit = recent_limit

    def get(self, user_id: str) -> Preferences:
        data = self.backend.load(user_id)
        if not data:
            return Preferences()
        try:
            return Preferences.model_validate(data)
        except ValidationError as exc:
            # Stored blob predates the current schema
            log_operation(
                logger,
                operation="load_preferences",
                outcome="reset",
                level=logging.WARNING,
                user_id=user_id,
                error=exc.error_count(),
            )
            return Preferences()

    def _save(self, user_id: str, prefs: Preferences) -> Preferences:
        self.backend.save(user_id, prefs.model_dump(mode="json"))
        return prefs

    def update(self, user_id: str, changes: PreferencesUpdate) -> Preferences:
        prefs = self.get(user_id)
        fields = changes.model_dump(exclude_unset=True)
        for key in ("favorites", "print_quantity"):
            if key in fields and fields[key] is None:
                fields.pop(key)
        if "favorites" in fields:
            fields["favorites"] = list(dict.fromkeys(fields["favorites"]))
        return self._save(user_id, prefs.model_copy(update=fields))

    def toggle_favorite(self, user_id: str, menu_item_id: str) -> Preferences:
        prefs = self.get(user_id)
        if menu_item_id in prefs.favorites:
            prefs.favorites = [f for f in prefs.favorites if f != menu_item_id]
        else:
            prefs.favorites = prefs.favorites + [menu_item_id]
        return self._save(user_id, prefs)

    def push_recent(self, user_id: str, item_id: str, name: Optional[str] = None) -> Preferences:
        prefs = self.get(user_id)
        entry = RecentEntry(id=item_id, name=name, viewed_at=utcnow())
        rest = [r for r in prefs.recent if r.id != item_id]
        prefs.recent = ([entry] + rest)[: self.recent_limit]
        return self._save(user_id, prefs)
