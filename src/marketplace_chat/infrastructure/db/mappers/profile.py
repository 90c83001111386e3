from __future__ import annotations

from marketplace_chat.domain.entities.profile import Profile
from marketplace_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> Profile:
    return Profile(
        id=model.id,
        name=model.name,
        avatar=model.profile_image,
        role=model.role,
    )
