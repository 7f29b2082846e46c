from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Identity:
    username: str
    is_admin: bool = False

    def can_act_for(self, username: str) -> bool:
        return self.is_admin or self.username == username

    def to_claims(self) -> dict[str, Any]:
        return {"username": self.username, "isAdmin": self.is_admin}


def identity_from_claims(claims: dict[str, Any]) -> Identity | None:
    username = claims.get("username")
    if not isinstance(username, str) or not username:
        return None
    return Identity(username=username, is_admin=claims.get("isAdmin") is True)
