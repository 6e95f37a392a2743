"""Unit tests for bearer-token verification and the caller dependency."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.ck_common.enums import UserTier
from src.ck_common.errors import InvalidCredentialsError
from src.ck_identity.auth.dependencies import get_current_caller
from src.ck_identity.auth.jwt_handler import create_access_token, decode_access_token


def _raw_token(secret: str | None = None, **claims: object) -> str:
    now = datetime.now(UTC)
    payload = {"sub": "user-1", "type": "access", "iat": now, "exp": now + timedelta(minutes=5)}
    payload.update(claims)
    return str(jwt.encode(payload, secret or settings.JWT_SECRET, algorithm="HS256"))


def test_token_carries_tier_claim() -> None:
    token = create_access_token("user-123", UserTier.ENTREPRENEUR)
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["tier"] == "ENTREPRENEUR"
    assert payload["type"] == "access"


def test_decode_round_trip() -> None:
    assert decode_access_token(create_access_token("user-abc"))["sub"] == "user-abc"


def test_expired_token_rejected() -> None:
    token = create_access_token("user-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_foreign_secret_rejected() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(_raw_token(secret="not-our-secret"))


def test_non_access_token_rejected() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(_raw_token(type="refresh"))


def test_missing_subject_rejected() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(_raw_token(sub=""))


class TestCurrentCaller:
    async def test_builds_caller_from_claims(self) -> None:
        caller = await get_current_caller(
            create_access_token("user-1", UserTier.TRAINEE_ENTREPRENEUR)
        )
        assert caller.user_id == "user-1"
        assert caller.tier is UserTier.TRAINEE_ENTREPRENEUR

    async def test_tier_claim_is_case_insensitive(self) -> None:
        caller = await get_current_caller(_raw_token(tier=" entrepreneur "))
        assert caller.tier is UserTier.ENTREPRENEUR

    @pytest.mark.parametrize("tier", ["GOLD", "", None])
    async def test_unknown_tier_falls_back_to_standard(self, tier: object) -> None:
        caller = await get_current_caller(_raw_token(tier=tier))
        assert caller.tier is UserTier.STANDARD

    async def test_invalid_token_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_caller("garbage")
        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
