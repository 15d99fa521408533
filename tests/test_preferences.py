import pytest

from servit.schemas.preferences import PreferencesUpdate
from servit.services.preferences import (
    DatabasePreferencesBackend,
    InMemoryPreferencesBackend,
    PreferencesStore,
)


@pytest.fixture
def store():
    return PreferencesStore(InMemoryPreferencesBackend(), recent_limit=3)


def test_defaults(store):
    prefs = store.get("u1")
    assert prefs.role_view is None
    assert prefs.favorites == []
    assert prefs.recent == []
    assert prefs.print_quantity == 1


def test_toggle_favorite(store):
    store.toggle_favorite("u1", "margherita")
    store.toggle_favorite("u1", "calzone")
    assert store.get("u1").favorites == ["margherita", "calzone"]

    store.toggle_favorite("u1", "margherita")
    assert store.get("u1").favorites == ["calzone"]


def test_recent_is_most_recent_first_unique_and_capped(store):
    for item_id in ("a", "b", "c", "a", "d"):
        store.push_recent("u1", item_id, name=item_id.upper())
    assert [r.id for r in store.get("u1").recent] == ["d", "a", "c"]


def test_update_keeps_unsent_fields(store):
    store.toggle_favorite("u1", "margherita")
    store.update("u1", PreferencesUpdate(role_view="CULINARY", print_quantity=3))

    prefs = store.get("u1")
    assert prefs.role_view == "CULINARY"
    assert prefs.print_quantity == 3
    assert prefs.favorites == ["margherita"]


def test_update_dedupes_favorites(store):
    store.update("u1", PreferencesUpdate(favorites=["a", "b", "a"]))
    assert store.get("u1").favorites == ["a", "b"]


def test_null_favorites_keeps_other_changes(store):
    store.toggle_favorite("u1", "margherita")
    store.update("u1", PreferencesUpdate(favorites=None, print_quantity=3))

    prefs = store.get("u1")
    assert prefs.print_quantity == 3
    assert prefs.favorites == ["margherita"]


def test_users_are_isolated(store):
    store.toggle_favorite("u1", "margherita")
    assert store.get("u2").favorites == []


@pytest.mark.parametrize("changes", [{"role_view": "CHEF"}, {"print_quantity": 0}])
def test_invalid_updates_rejected(changes):
    with pytest.raises(ValueError):
        PreferencesUpdate(**changes)


def test_invalid_stored_blob_resets_to_defaults():
    backend = InMemoryPreferencesBackend()
    backend.save("u1", {"print_quantity": -5, "favorites": "oops"})
    prefs = PreferencesStore(backend).get("u1")
    assert prefs.print_quantity == 1
    assert prefs.favorites == []


def test_database_backend_round_trip(tenants):
    store = PreferencesStore(DatabasePreferencesBackend(tenants))
    store.toggle_favorite("u-server", "margherita")
    store.push_recent("u-server", "margherita", "Margherita")

    reloaded = PreferencesStore(DatabasePreferencesBackend(tenants)).get("u-server")
    assert reloaded.favorites == ["margherita"]
    assert reloaded.recent[0].name == "Margherita"
