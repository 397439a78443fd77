"""
Models package for the TruthSpot application.

Records live in PocketBase; these classes wrap the JSON records it returns:
- spot: Spot (geotagged point of interest)
- taxonomy: Category, Tag, CategoryTag (read-only classification data)
- user: User (PocketBase auth record) and Identity (per-request auth context)
"""

from .spot import Spot
from .taxonomy import Category, CategoryTag, Tag
from .user import Identity, User

__all__ = [
    "Spot",
    "Category",
    "Tag",
    "CategoryTag",
    "User",
    "Identity",
]
