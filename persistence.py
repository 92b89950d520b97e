"""
Persistence layer for favorites and session preferences
Saves to the same key/value storage as the data cache, under keys outside
the cache prefix so cache sweeps and clears leave them alone
"""
import json
import logging
from typing import List, Optional

from config import STORAGE_KEYS
from models import Favorite, FavoriteValidator
from opendata.storage import KeyValueStorage, WriteResult

logger = logging.getLogger(__name__)


def load_favorites(storage: KeyValueStorage) -> List[Favorite]:
    """Load saved favorites, oldest first. Unreadable data yields an empty list."""
    raw = storage.get_item(STORAGE_KEYS["favorites"])
    if raw is None:
        return []
    try:
        return [Favorite.from_dict(item) for item in json.loads(raw)]
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not load favorites: {e}")
        return []


def save_favorites(storage: KeyValueStorage, favorites: List[Favorite]) -> bool:
    """Save the full favorites list. Returns False if storage refused the write."""
    payload = json.dumps([f.to_dict() for f in favorites], default=str)
    result = storage.set_item(STORAGE_KEYS["favorites"], payload)
    if result is not WriteResult.OK:
        logger.error(f"Could not save favorites: {result.value}")
        return False
    return True


def add_favorite(storage: KeyValueStorage, favorite: Favorite) -> tuple[bool, str]:
    """Add a favorite unless one with the same id is already saved"""
    ok, message = FavoriteValidator.validate(favorite)
    if not ok:
        return False, message

    favorites = load_favorites(storage)
    if any(f.id == favorite.id for f in favorites):
        return True, "Already in favorites"

    favorites.append(favorite)
    if not save_favorites(storage, favorites):
        return False, "Storage is full, favorite not saved"
    return True, "OK"


def remove_favorite(storage: KeyValueStorage, favorite_id: str) -> bool:
    """Remove a favorite by id. Returns True if one was removed."""
    favorites = load_favorites(storage)
    remaining = [f for f in favorites if f.id != favorite_id]
    if len(remaining) == len(favorites):
        return False
    return save_favorites(storage, remaining)


def is_favorite(storage: KeyValueStorage, favorite_id: str) -> bool:
    return any(f.id == favorite_id for f in load_favorites(storage))


def get_favorites_by_type(storage: KeyValueStorage, favorite_type: str) -> List[Favorite]:
    return [f for f in load_favorites(storage) if f.type == favorite_type]


def get_last_country(storage: KeyValueStorage) -> Optional[str]:
    """cca3 code of the last country opened in the explorer"""
    return storage.get_item(STORAGE_KEYS["last_country"])


def save_last_country(storage: KeyValueStorage, code: str) -> None:
    result = storage.set_item(STORAGE_KEYS["last_country"], code)
    if result is not WriteResult.OK:
        logger.warning(f"Could not save last country: {result.value}")
