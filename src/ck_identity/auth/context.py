"""Explicit caller identity handed to every checkout operation."""

from dataclasses import dataclass

from src.ck_common.enums import UserTier


@dataclass(frozen=True)
class CallerContext:
    user_id: str
    tier: UserTier = UserTier.STANDARD
