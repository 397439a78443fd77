"""
Classification models: categories form a shallow tree, tags hang off
categories through the spot_category_tags join collection.
"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_CATEGORY_ICON = "📍"
DEFAULT_TAG_ICON = "🏷️"


@dataclass
class Category:
    id: str
    name: str
    icon: str = DEFAULT_CATEGORY_ICON
    parent_id: Optional[str] = None

    @classmethod
    def from_record(cls, record):
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            icon=record.get("icon") or DEFAULT_CATEGORY_ICON,
            # PocketBase sends "" for an empty relation
            parent_id=record.get("parent_spot_category") or None,
        )

    @property
    def is_root(self):
        return self.parent_id is None

    def get_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "parent_spot_category": self.parent_id,
        }


@dataclass
class Tag:
    id: str
    name: str
    icon: str = DEFAULT_TAG_ICON

    @classmethod
    def from_record(cls, record):
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            icon=record.get("icon") or DEFAULT_TAG_ICON,
        )

    def get_dict(self):
        return {"id": self.id, "name": self.name, "icon": self.icon}


@dataclass
class CategoryTag:
    id: str
    category_id: str
    tag_id: str

    @classmethod
    def from_record(cls, record):
        return cls(
            id=record["id"],
            category_id=record.get("spot_category_id") or "",
            tag_id=record.get("spot_tag_id") or "",
        )

    def get_dict(self):
        return {
            "id": self.id,
            "spot_category_id": self.category_id,
            "spot_tag_id": self.tag_id,
        }
