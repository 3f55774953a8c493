"""Memberman services.

- membership: enrollment, tier recompute, points ledger
- rewards: redemption, birthday gifts, reward status transitions
- reconciliation: linking guest orders to signed-in users
- audit: back-office audit log
"""

from memberman.services import audit
from memberman.services import membership
from memberman.services import rewards
from memberman.services import reconciliation

__all__ = ["audit", "membership", "rewards", "reconciliation"]
