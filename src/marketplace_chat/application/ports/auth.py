from __future__ import annotations

from typing import Protocol

from marketplace_chat.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns a bearer credential into the caller's identity.

    Used for both the socket handshake and HTTP requests; raises
    AuthenticationError for missing, expired or malformed tokens.
    """

    async def verify(self, token: str) -> Principal: ...
