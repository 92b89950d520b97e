"""
Data models and validation for saved favorites
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Literal

from config import FAVORITE_TYPES


@dataclass
class Favorite:
    """A country, article, coin or match the user pinned"""
    id: str
    type: Literal["country", "news", "crypto", "sports"]
    title: str
    data: Any
    added_at: str  # ISO timestamp

    @classmethod
    def create(cls, id: str, type: str, title: str, data: Any) -> "Favorite":
        return cls(id=id, type=type, title=title, data=data, added_at=datetime.now().isoformat())

    @classmethod
    def from_dict(cls, data: dict) -> "Favorite":
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)


class FavoriteValidator:
    """Validates favorites before they are saved"""

    @staticmethod
    def validate(favorite: Favorite) -> tuple[bool, str]:
        if not favorite.id or not str(favorite.id).strip():
            return False, "Favorite id is required"
        if favorite.type not in FAVORITE_TYPES:
            return False, f"Unknown favorite type '{favorite.type}' (expected one of {', '.join(FAVORITE_TYPES)})"
        if not favorite.title:
            return False, "Favorite title is required"
        return True, "OK"
