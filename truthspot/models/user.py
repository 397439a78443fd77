"""
User-related models.

- User: PocketBase auth record for an account
- Identity: the auth context passed explicitly to services (anonymous, user or admin)
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class User:
    id: str
    email: str = ""
    name: str = ""
    username: str = ""
    avatar_url: str = ""
    is_admin: bool = False

    @classmethod
    def from_record(cls, record):
        return cls(
            id=record["id"],
            email=record.get("email") or "",
            name=record.get("name") or "",
            username=record.get("username") or "",
            avatar_url=record.get("avatarUrl") or record.get("avatar") or "",
            is_admin=bool(record.get("isAdmin", False)),
        )

    def get_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "username": self.username,
            "avatarUrl": self.avatar_url,
            "isAdmin": self.is_admin,
        }


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str] = None
    is_admin: bool = False
    token: Optional[str] = None

    @classmethod
    def anonymous(cls):
        return cls()

    @property
    def is_authenticated(self):
        return self.user_id is not None

    def can_modify(self, owner_id):
        """Owners and admins may toggle visibility or delete a spot."""
        return self.is_admin or (self.is_authenticated and self.user_id == owner_id)

    def get_dict(self):
        return {
            "id": self.user_id,
            "isAuthenticated": self.is_authenticated,
            "isAdmin": self.is_admin,
        }
