from __future__ import annotations

import jwt

from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.exceptions import AuthenticationError
from marketplace_chat.infrastructure.auth.claims import principal_from_claims


class HS256Verifier:
    """Verify JWTs signed with the marketplace's shared secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        if not token:
            raise AuthenticationError("No token provided")
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            raise AuthenticationError(f"Invalid token: {exc}") from exc
        return principal_from_claims(payload)
