from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Profile:
    """Display snapshot of a marketplace user."""

    id: str
    name: str | None = None
    avatar: str | None = None
    role: str | None = None

    def snapshot(self) -> dict[str, str | None]:
        return {"id": self.id, "name": self.name, "avatar": self.avatar}
