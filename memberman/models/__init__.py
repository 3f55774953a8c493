"""Memberman models."""

from memberman.models.member import Member, MemberTier
from memberman.models.reward import Reward, RewardStatus, RewardType
from memberman.models.ledger import LedgerEntry, EntryType
from memberman.models.order import Order, OrderItem, OrderStatus
from memberman.models.audit_log import AuditLog

__all__ = [
    # Membership
    "Member",
    "MemberTier",
    # Rewards
    "Reward",
    "RewardStatus",
    "RewardType",
    "LedgerEntry",
    "EntryType",
    # Orders
    "Order",
    "OrderItem",
    "OrderStatus",
    # Back-office
    "AuditLog",
]
