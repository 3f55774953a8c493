"""
Django Memberman - Loyalty membership, rewards and guest-order reconciliation.

Usage:
    from memberman.services import membership, rewards, reconciliation
    from memberman import AuthenticatedPrincipal, MembermanError

    member = membership.enroll("user-123", birthday_month=5, birthday_day=17)
    reward = rewards.redeem(member.pk, "discount", points_cost=100, amount_off="10.00")
    rewards.transition(reward.pk, "used")

    result = reconciliation.link_guest_orders(principal)
    result.linked_count
"""


def __getattr__(name):
    if name == "AuthenticatedPrincipal":
        from memberman.principal import AuthenticatedPrincipal

        return AuthenticatedPrincipal
    if name == "MembermanError":
        from memberman.exceptions import MembermanError

        return MembermanError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["AuthenticatedPrincipal", "MembermanError"]
__version__ = "0.1.0"
