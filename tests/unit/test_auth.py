from __future__ import annotations

import jwt
import pytest

from marketplace_chat.application.exceptions import AuthenticationError
from marketplace_chat.domain.value_objects.enums import PartyRole
from marketplace_chat.infrastructure.auth.claims import principal_from_claims
from marketplace_chat.infrastructure.auth.hs256_verifier import HS256Verifier

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


def test_marketplace_claims():
    principal = principal_from_claims({"id": "v-1", "role": "vendor"})
    assert principal.id == "v-1"
    assert principal.role is PartyRole.VENDOR


def test_sub_claim_is_accepted():
    principal = principal_from_claims({"sub": 42, "role": "client"})
    assert principal.id == "42"
    assert principal.room == "42"


@pytest.mark.parametrize(
    "claims",
    [{"role": "vendor"}, {"id": "", "role": "vendor"}, {"id": "x", "role": "admin"}, {"id": "x"}],
)
def test_incomplete_claims_are_rejected(claims):
    with pytest.raises(AuthenticationError):
        principal_from_claims(claims)


@pytest.mark.asyncio
async def test_hs256_round_trip():
    token = jwt.encode({"id": "c-1", "role": "client"}, SECRET, algorithm="HS256")
    principal = await HS256Verifier(SECRET).verify(token)
    assert principal.id == "c-1"


@pytest.mark.asyncio
async def test_hs256_rejects_wrong_secret():
    token = jwt.encode({"id": "c-1", "role": "client"}, SECRET + "x", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        await HS256Verifier(SECRET).verify(token)


@pytest.mark.asyncio
async def test_hs256_rejects_missing_token():
    with pytest.raises(AuthenticationError):
        await HS256Verifier(SECRET).verify("")
