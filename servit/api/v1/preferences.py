from fastapi import APIRouter, Depends

from servit.dependencies import get_current_user, get_preferences_store
from servit.schemas.preferences import Preferences, PreferencesUpdate, RecentPush
from servit.services.preferences import PreferencesStore

router = APIRouter()


@router.get("/", response_model=Preferences)
def get_preferences(
    store: PreferencesStore = Depends(get_preferences_store),
    current_user: dict = Depends(get_current_user)
):
    """Preferences of the current user (defaults when none are saved)"""
    return store.get(current_user["user_id"])


@router.put("/", response_model=Preferences)
def update_preferences(
    data: PreferencesUpdate,
    store: PreferencesStore = Depends(get_preferences_store),
    current_user: dict = Depends(get_current_user)
):
    return store.update(current_user["user_id"], data)


@router.post("/favorites/{menu_item_id}", response_model=Preferences)
def toggle_favorite(
    menu_item_id: str,
    store: PreferencesStore = Depends(get_preferences_store),
    current_user: dict = Depends(get_current_user)
):
    """Add the menu item to favorites, or remove it if already there"""
    return store.toggle_favorite(current_user["user_id"], menu_item_id)


@router.post("/recent", response_model=Preferences)
def push_recent(
    data: RecentPush,
    store: PreferencesStore = Depends(get_preferences_store),
    current_user: dict = Depends(get_current_user)
):
    return store.push_recent(current_user["user_id"], data.id, data.name)
