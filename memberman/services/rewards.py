"""Reward service - redemption, birthday gifts and the status state machine.

transition() is the only place where used_at is stamped; the stamp is a
conditional update, so it is written once even under concurrent requests.
"""

import logging
from datetime import date, timedelta

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from memberman.conf import memberman_settings
from memberman.exceptions import MembermanError
from memberman.models import EntryType, LedgerEntry, Member, Reward, RewardStatus, RewardType
from memberman.principal import AuthenticatedPrincipal
from memberman.signals import reward_status_changed
from memberman.utils import parse_decimal, parse_int

logger = logging.getLogger(__name__)

# Birthday gifts are granted by grant_birthday_gift() only.
REDEEMABLE_TYPES = (RewardType.DISCOUNT, RewardType.FREE_SHIPPING)


def get(reward_id) -> Reward | None:
    """Get reward by primary key."""
    try:
        return Reward.objects.select_related("member").get(pk=reward_id)
    except (Reward.DoesNotExist, ValueError, TypeError):
        return None


# ======================================================================
# State machine
# ======================================================================


def transition(
    reward_id,
    new_status: str,
    principal: AuthenticatedPrincipal | None = None,
) -> Reward:
    """
    Move a reward to ``new_status``.

    Moving into "used" stamps used_at on the first time only; any later
    transition leaves used_at as it is. Other transitions are accepted as
    requested and never touch used_at.

    Args:
        reward_id: Reward primary key
        new_status: One of active, used, expired
        principal: Caller; non-admins may only change their own rewards

    Returns:
        The updated Reward

    Raises:
        MembermanError: INVALID_STATUS, REWARD_NOT_FOUND, FORBIDDEN or
            STORAGE_FAILURE
    """
    if new_status not in RewardStatus.values:
        raise MembermanError("INVALID_STATUS", status=new_status)

    try:
        reward = Reward.objects.select_related("member").get(pk=reward_id)
    except (Reward.DoesNotExist, ValueError, TypeError):
        raise MembermanError("REWARD_NOT_FOUND", reward_id=reward_id)

    if principal is not None and not principal.can_access(reward.member.user_ref):
        raise MembermanError("FORBIDDEN", reward_id=reward_id)

    old_status = reward.status
    reward.status = new_status

    try:
        with transaction.atomic():
            reward.save(update_fields=["status"])
            if new_status == RewardStatus.USED:
                reward.used_at = _stamp_used_at(reward.pk)
    except DatabaseError as exc:
        logger.exception("Failed to update reward %s to %s", reward_id, new_status)
        raise MembermanError("STORAGE_FAILURE", reward_id=reward_id) from exc

    reward_status_changed.send(sender=Reward, reward=reward, old_status=old_status)
    return reward


# ======================================================================
# Redemption
# ======================================================================


def redeem(member_id, reward_type: str, points_cost, amount_off) -> Reward:
    """
    Exchange points for a reward.

    Points are deducted under a row lock, so the balance never goes
    negative. The reward expires REWARD_EXPIRY_DAYS after redemption.

    Raises:
        MembermanError: INVALID_REWARD_TYPE, INVALID_POINTS_COST,
            INVALID_AMOUNT_OFF, MEMBER_NOT_FOUND or INSUFFICIENT_POINTS
    """
    if reward_type not in REDEEMABLE_TYPES:
        raise MembermanError("INVALID_REWARD_TYPE", reward_type=reward_type)

    cost = parse_int(points_cost)
    if cost is None or cost < 1:
        raise MembermanError("INVALID_POINTS_COST", points_cost=points_cost)

    amount = parse_decimal(amount_off)
    if amount is None or amount < 0:
        raise MembermanError("INVALID_AMOUNT_OFF", amount_off=str(amount_off))

    with transaction.atomic():
        member = _get_member_for_update(member_id)

        if member.points_balance < cost:
            raise MembermanError(
                "INSUFFICIENT_POINTS",
                available=member.points_balance,
                requested=cost,
            )

        member.points_balance -= cost
        member.save(update_fields=["points_balance", "updated_at"])

        reward = _create_reward(member, reward_type, cost, amount)

        LedgerEntry.objects.create(
            member=member,
            entry_type=EntryType.REDEEM,
            amount=amount,
            points=-cost,
            description=f"Redeemed {reward.get_reward_type_display()}",
            order_ref=None,
        )

    logger.info("Member %s redeemed %s for %d points", member.user_ref, reward_type, cost)
    return reward


def grant_birthday_gift(member_id, today: date | None = None) -> Reward:
    """
    Grant the yearly birthday gift.

    Only during the member's birthday month, at most once per calendar year.

    Raises:
        MembermanError: MEMBER_NOT_FOUND, BIRTHDAY_NOT_SET,
            NOT_BIRTHDAY_MONTH or BIRTHDAY_GIFT_ALREADY_GRANTED
    """
    today = today or timezone.localdate()
    amount = parse_decimal(memberman_settings.BIRTHDAY_GIFT_AMOUNT)

    with transaction.atomic():
        member = _get_member_for_update(member_id)

        if not member.has_birthday:
            raise MembermanError("BIRTHDAY_NOT_SET", member_id=member.pk)
        if member.birthday_month != today.month:
            raise MembermanError("NOT_BIRTHDAY_MONTH", member_id=member.pk)

        already_granted = member.rewards.filter(
            reward_type=RewardType.BIRTHDAY_GIFT,
            redeemed_at__year=today.year,
        ).exists()
        if already_granted:
            raise MembermanError("BIRTHDAY_GIFT_ALREADY_GRANTED", year=today.year)

        reward = _create_reward(member, RewardType.BIRTHDAY_GIFT, 0, amount)

        LedgerEntry.objects.create(
            member=member,
            entry_type=EntryType.BIRTHDAY_REWARD,
            amount=amount,
            points=0,
            description=f"Birthday gift {today.year}",
        )

    logger.info("Birthday gift granted to %s", member.user_ref)
    return reward


# ======================================================================
# Queries and maintenance
# ======================================================================


def list_for_member(
    member_id,
    status: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Reward]:
    """
    Rewards of a member, newest first.

    The status filter applies lazy expiry: "active" excludes rewards past
    expires_at and "expired" includes them.

    Raises:
        MembermanError: INVALID_STATUS
    """
    if limit is None:
        limit = memberman_settings.DEFAULT_PAGE_SIZE
    limit = min(limit, memberman_settings.MAX_PAGE_SIZE)

    qs = Reward.objects.filter(member_id=member_id)
    if status:
        qs = qs.filter(_status_filter(status))
    return list(qs.order_by("-redeemed_at", "-id")[offset : offset + limit])


def expire_overdue(now=None) -> int:
    """Write back lazily expired rewards. Returns the number updated."""
    now = now or timezone.now()
    count = Reward.objects.filter(
        status=RewardStatus.ACTIVE,
        expires_at__lte=now,
    ).update(status=RewardStatus.EXPIRED)
    if count:
        logger.info("Expired %d overdue rewards", count)
    return count


# ======================================================================
# Internals
# ======================================================================


def _status_filter(status: str) -> Q:
    now = timezone.now()
    if status == RewardStatus.ACTIVE:
        return Q(status=RewardStatus.ACTIVE, expires_at__gt=now)
    if status == RewardStatus.EXPIRED:
        return Q(status=RewardStatus.EXPIRED) | Q(status=RewardStatus.ACTIVE, expires_at__lte=now)
    if status == RewardStatus.USED:
        return Q(status=RewardStatus.USED)
    raise MembermanError("INVALID_STATUS", status=status)


def _stamp_used_at(reward_pk: int):
    """Set used_at unless already set. Returns the stored value."""
    now = timezone.now()
    stamped = Reward.objects.filter(pk=reward_pk, used_at__isnull=True).update(used_at=now)
    if stamped:
        return now
    return Reward.objects.values_list("used_at", flat=True).get(pk=reward_pk)


def _create_reward(member: Member, reward_type: str, cost: int, amount) -> Reward:
    now = timezone.now()
    return Reward.objects.create(
        member=member,
        reward_type=reward_type,
        points_cost=cost,
        amount_off=amount,
        status=RewardStatus.ACTIVE,
        redeemed_at=now,
        used_at=None,
        expires_at=now + timedelta(days=memberman_settings.REWARD_EXPIRY_DAYS),
    )


def _get_member_for_update(member_id) -> Member:
    try:
        return Member.objects.select_for_update().get(pk=member_id)
    except (Member.DoesNotExist, ValueError, TypeError):
        raise MembermanError("MEMBER_NOT_FOUND", member_id=member_id)
