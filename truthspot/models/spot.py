"""
Spot model.

A spot is a user-submitted, geotagged point of interest stored in the
PocketBase "spots" collection.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import dateutil.parser

from .taxonomy import Category


@dataclass
class Spot:
    id: str
    name: str
    description: str
    lat: float
    lng: float
    category: str = ""
    user: str = ""
    is_public: bool = True
    created: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)
    expanded_category: Optional[Category] = None

    @classmethod
    def from_record(cls, record):
        created = record.get("created")
        expanded = (record.get("expand") or {}).get("category")
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            description=record.get("description") or "",
            lat=float(record["lat"]),
            lng=float(record["lng"]),
            category=record.get("category") or "",
            user=record.get("user") or "",
            is_public=bool(record.get("isPublic", False)),
            created=dateutil.parser.isoparse(created) if created else None,
            tags=list(record.get("tags") or []),
            expanded_category=Category.from_record(expanded) if expanded else None,
        )

    def visible_to(self, identity):
        """Client-side re-check of the visibility rule PocketBase enforces."""
        return self.is_public or identity.is_admin or (
            identity.is_authenticated and identity.user_id == self.user
        )

    def to_record(self):
        """Writable fields, in PocketBase field names."""
        return {
            "name": self.name,
            "description": self.description,
            "lat": self.lat,
            "lng": self.lng,
            "category": self.category,
            "user": self.user,
            "isPublic": self.is_public,
            "tags": list(self.tags),
        }

    def get_dict(self):
        data = self.to_record()
        data["id"] = self.id
        data["created"] = self.created.isoformat() if self.created else None
        if self.expanded_category:
            data["expand"] = {"category": self.expanded_category.get_dict()}
        return data
