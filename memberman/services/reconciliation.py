"""Guest-order reconciliation - attach guest orders to a signed-in user.

Safe to call on every login: linked orders no longer match the guest
filter, so a repeated run finds nothing to do.
"""

import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction
from django.utils import timezone

from memberman.exceptions import MembermanError
from memberman.models import Order
from memberman.principal import AuthenticatedPrincipal
from memberman.signals import guest_orders_linked

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of a reconciliation run."""

    linked_count: int
    candidate_count: int

    @property
    def failed_count(self) -> int:
        return self.candidate_count - self.linked_count

    @property
    def message(self) -> str:
        if self.candidate_count == 0:
            return "No guest orders found to link"
        return f"Successfully linked {self.linked_count} order(s) to your account"


def find_guest_orders(email: str) -> list[Order]:
    """Orders placed with ``email`` that have no owner yet."""
    return list(
        Order.objects.filter(
            email__iexact=email.strip(),
            user_ref__isnull=True,
        ).order_by("created_at", "pk")
    )


def link_guest_orders(principal: AuthenticatedPrincipal) -> ReconciliationResult:
    """
    Link every guest order placed with the principal's email to the principal.

    Each order is linked on its own; a failure on one order is logged and
    skipped without retry and does not stop the others. The update is
    conditional on the order still being unowned, so an order is linked at
    most once even when two requests reconcile the same email concurrently.

    Raises:
        MembermanError: MISSING_EMAIL
    """
    if not principal.email:
        raise MembermanError("MISSING_EMAIL", user_ref=principal.user_ref)

    candidates = find_guest_orders(principal.email)
    if not candidates:
        return ReconciliationResult(linked_count=0, candidate_count=0)

    linked = 0
    for order in candidates:
        try:
            if _link_order(order.pk, principal.user_ref):
                linked += 1
        except DatabaseError:
            logger.exception("Error linking order %s to user %s", order.order_number, principal.user_ref)

    result = ReconciliationResult(linked_count=linked, candidate_count=len(candidates))
    logger.info(
        "Reconciled guest orders for %s: %d/%d linked",
        principal.user_ref,
        result.linked_count,
        result.candidate_count,
    )
    if linked:
        guest_orders_linked.send(sender=Order, user_ref=principal.user_ref, linked_count=linked)
    return result


def _link_order(order_pk: int, user_ref: str) -> bool:
    """Set the owner of one order if it is still a guest order. Own savepoint."""
    with transaction.atomic():
        updated = Order.objects.filter(pk=order_pk, user_ref__isnull=True).update(
            user_ref=user_ref,
            linked_at=timezone.now(),
            updated_at=timezone.now(),
        )
    return updated == 1
