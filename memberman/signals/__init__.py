"""
Memberman signals - public event API.

Emitted signals:
- member_enrolled: Emitted by services.membership.enroll()
- tier_changed: Emitted whenever a member's tier is recomputed to a new value
- reward_status_changed: Emitted by services.rewards.transition()
- guest_orders_linked: Emitted by services.reconciliation.link_guest_orders()
"""

from django.dispatch import Signal

# Membership signals
member_enrolled = Signal()  # sender=Member, member=Member
tier_changed = Signal()  # sender=Member, member=Member, old_tier=str, new_tier=str

# Reward signals
reward_status_changed = Signal()  # sender=Reward, reward=Reward, old_status=str

# Order signals
guest_orders_linked = Signal()  # sender=Order, user_ref=str, linked_count=int
