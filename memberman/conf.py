"""
Memberman configuration.

Usage in settings.py:
    MEMBERMAN = {
        "PLUS_SPENDING_THRESHOLD": Decimal("500.00"),
        "REWARD_EXPIRY_DAYS": 90,
    }
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings


@dataclass
class MembermanSettings:
    """Memberman configuration settings."""

    # Tier thresholds (annual spending)
    PLUS_SPENDING_THRESHOLD: Decimal = Decimal("500.00")
    PREMIER_SPENDING_THRESHOLD: Decimal = Decimal("1000.00")

    # Rewards
    REWARD_EXPIRY_DAYS: int = 90
    BIRTHDAY_GIFT_AMOUNT: Decimal = Decimal("10.00")

    # Accrual rate for purchases
    POINTS_PER_CURRENCY_UNIT: int = 1

    # Listing endpoints
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    # Reverse proxies in front of the app; 0 ignores X-Forwarded-For
    TRUSTED_PROXY_COUNT: int = 0


def get_memberman_settings() -> MembermanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "MEMBERMAN", {})
    return MembermanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_memberman_settings(), name)


memberman_settings = _LazySettings()
