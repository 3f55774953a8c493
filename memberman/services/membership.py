"""Membership service - enrollment, tier recompute and points ledger.

All point mutations run inside transaction.atomic() with a row lock on the
member (select_for_update), so concurrent accruals cannot lose updates.
"""

import logging
from decimal import ROUND_FLOOR, Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from memberman.conf import memberman_settings
from memberman.exceptions import MembermanError
from memberman.models import EntryType, LedgerEntry, Member, MemberTier
from memberman.principal import AuthenticatedPrincipal
from memberman.services import audit
from memberman.signals import member_enrolled, tier_changed
from memberman.utils import is_amount_string, parse_decimal, parse_int

logger = logging.getLogger(__name__)

AUDIT_POINTS_SPENDING_UPDATE = "membership_points_spending_update"

UPDATABLE_FIELDS = {
    "points",
    "annual_spending",
    "tier",
    "birthday_month",
    "birthday_day",
}


# ======================================================================
# Lookups
# ======================================================================


def get(member_id: int) -> Member | None:
    """Get member by primary key."""
    try:
        return Member.objects.get(pk=member_id)
    except (Member.DoesNotExist, ValueError, TypeError):
        return None


def get_by_user(user_ref: str) -> Member | None:
    """Get the membership owned by a user identity."""
    try:
        return Member.objects.get(user_ref=user_ref)
    except Member.DoesNotExist:
        return None


def tier_for_spending(amount: Decimal) -> str:
    """Tier earned by an annual spending amount."""
    amount = Decimal(amount)
    if amount < Decimal(str(memberman_settings.PLUS_SPENDING_THRESHOLD)):
        return MemberTier.MEMBER
    if amount < Decimal(str(memberman_settings.PREMIER_SPENDING_THRESHOLD)):
        return MemberTier.PLUS
    return MemberTier.PREMIER


# ======================================================================
# Enrollment and updates
# ======================================================================


def enroll(
    user_ref: str,
    birthday_month=None,
    birthday_day=None,
) -> Member:
    """
    Create the membership for a user identity.

    Raises:
        MembermanError: INVALID_USER_REF, INVALID_BIRTHDAY_MONTH,
            INVALID_BIRTHDAY_DAY or DUPLICATE_MEMBER
    """
    if not isinstance(user_ref, str) or not user_ref.strip():
        raise MembermanError("INVALID_USER_REF")
    user_ref = user_ref.strip()

    month = _validate_birthday_month(birthday_month) if birthday_month is not None else None
    day = _validate_birthday_day(birthday_day) if birthday_day is not None else None

    if Member.objects.filter(user_ref=user_ref).exists():
        raise MembermanError("DUPLICATE_MEMBER", user_ref=user_ref)

    now = timezone.now()
    try:
        with transaction.atomic():
            member = Member.objects.create(
                user_ref=user_ref,
                tier=MemberTier.MEMBER,
                points_balance=0,
                annual_spending=Decimal("0.00"),
                birthday_month=month,
                birthday_day=day,
                joined_at=now,
                last_tier_update=now,
            )
    except IntegrityError:
        # Lost a race against a concurrent enrollment for the same identity
        raise MembermanError("DUPLICATE_MEMBER", user_ref=user_ref)

    logger.info("Member enrolled: %s", user_ref)
    member_enrolled.send(sender=Member, member=member)
    return member


def update(member_id: int, **fields) -> Member:
    """
    Update member fields (only whitelisted fields are accepted).

    annual_spending recomputes the tier and takes precedence over an
    explicit tier. last_tier_update only moves when the tier changes.

    Raises:
        MembermanError: MEMBER_NOT_FOUND, NO_UPDATE_FIELDS or a validation code
    """
    fields = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}

    with transaction.atomic():
        member = _get_member_for_update(member_id)
        update_fields: list[str] = []
        old_tier = None

        if "points" in fields:
            member.points_balance = _validate_points(fields["points"])
            update_fields.append("points_balance")

        if "birthday_month" in fields:
            member.birthday_month = _validate_birthday_month(fields["birthday_month"])
            update_fields.append("birthday_month")

        if "birthday_day" in fields:
            member.birthday_day = _validate_birthday_day(fields["birthday_day"])
            update_fields.append("birthday_day")

        if "annual_spending" in fields:
            spending = _validate_spending(fields["annual_spending"])
            member.annual_spending = spending
            update_fields.append("annual_spending")
            old_tier = _apply_tier(member, tier_for_spending(spending), update_fields)
        elif "tier" in fields:
            tier = fields["tier"]
            if tier not in MemberTier.values:
                raise MembermanError("INVALID_TIER", tier=tier)
            old_tier = _apply_tier(member, tier, update_fields)

        if not update_fields:
            raise MembermanError("NO_UPDATE_FIELDS")

        member.save(update_fields=[*update_fields, "updated_at"])

    if old_tier is not None:
        _announce_tier_change(member, old_tier)
    return member


def set_points_and_spending(
    user_ref: str,
    principal: AuthenticatedPrincipal,
    points=None,
    annual_spending=None,
    ip_address: str = "",
    user_agent: str = "",
) -> tuple[Member, bool]:
    """
    Administrative override of a user's points and spending.

    Creates the membership when the user has none. Every call is written
    to the audit log; a failing audit write is logged and does not undo
    the update.

    Returns:
        Tuple of (Member, created: bool)

    Raises:
        MembermanError: FORBIDDEN, USER_NOT_FOUND, INVALID_POINTS,
            INVALID_ANNUAL_SPENDING or NO_UPDATE_FIELDS
    """
    if not principal.is_admin:
        raise MembermanError("FORBIDDEN", message="Only administrators can access this endpoint")

    user = _get_user(user_ref)
    if user is None:
        raise MembermanError("USER_NOT_FOUND", user_ref=user_ref)

    if points is None and annual_spending is None:
        raise MembermanError("NO_UPDATE_FIELDS")

    new_points = _validate_points(points) if points is not None else None
    new_spending = _validate_spending(annual_spending) if annual_spending is not None else None

    with transaction.atomic():
        member = Member.objects.select_for_update().filter(user_ref=user_ref).first()
        created = member is None
        if created:
            now = timezone.now()
            member = Member(user_ref=user_ref, joined_at=now, last_tier_update=now)

        old_points = member.points_balance
        old_spending = member.annual_spending
        update_fields: list[str] = []
        old_tier = None

        if new_points is not None:
            member.points_balance = new_points
            update_fields.append("points_balance")

        if new_spending is not None:
            member.annual_spending = new_spending
            update_fields.append("annual_spending")
            old_tier = _apply_tier(member, tier_for_spending(new_spending), update_fields)

        if created:
            member.save()
        else:
            member.save(update_fields=[*update_fields, "updated_at"])

    details = {
        "targetUserEmail": getattr(user, "email", ""),
        "created": created,
    }
    if new_points is not None and new_points != old_points:
        details["oldPoints"] = old_points
        details["newPoints"] = new_points
    if new_spending is not None and new_spending != old_spending:
        details["oldSpending"] = str(old_spending)
        details["newSpending"] = str(new_spending)

    try:
        with transaction.atomic():
            audit.record(
                AUDIT_POINTS_SPENDING_UPDATE,
                performed_by=principal.user_ref,
                target_user_ref=user_ref,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
            )
    except DatabaseError:
        logger.exception("Failed to write audit log for membership update of %s", user_ref)

    if created:
        member_enrolled.send(sender=Member, member=member)
    if old_tier is not None and not created:
        _announce_tier_change(member, old_tier)
    return member, created


# ======================================================================
# Ledger
# ======================================================================


def earn_from_purchase(
    member_id: int,
    amount,
    order_ref: str = "",
    description: str = "",
) -> LedgerEntry:
    """
    Accrue points and spending for a purchase.

    Points earned are floor(amount * POINTS_PER_CURRENCY_UNIT). The tier is
    recomputed from the new annual spending.

    Raises:
        MembermanError: INVALID_AMOUNT or MEMBER_NOT_FOUND
    """
    value = parse_decimal(amount)
    if value is None or value <= 0:
        raise MembermanError("INVALID_AMOUNT", amount=str(amount))

    rate = Decimal(str(memberman_settings.POINTS_PER_CURRENCY_UNIT))
    points = int((value * rate).to_integral_value(rounding=ROUND_FLOOR))

    with transaction.atomic():
        member = _get_member_for_update(member_id)

        member.points_balance += points
        member.annual_spending += value
        update_fields = ["points_balance", "annual_spending"]
        old_tier = _apply_tier(member, tier_for_spending(member.annual_spending), update_fields)
        member.save(update_fields=[*update_fields, "updated_at"])

        entry = LedgerEntry.objects.create(
            member=member,
            entry_type=EntryType.PURCHASE,
            amount=value,
            points=points,
            description=description or f"Purchase {order_ref}".strip(),
            order_ref=order_ref or None,
        )

    if old_tier is not None:
        _announce_tier_change(member, old_tier)
    return entry


def record_entry(
    member_id,
    entry_type: str,
    amount,
    points,
    description: str,
    order_ref: str | None = None,
) -> LedgerEntry:
    """
    Append a raw ledger entry without touching the balance.

    Raises:
        MembermanError: INVALID_ENTRY_TYPE, INVALID_AMOUNT, INVALID_POINTS,
            MISSING_DESCRIPTION or MEMBER_NOT_FOUND
    """
    if entry_type not in EntryType.values:
        raise MembermanError("INVALID_ENTRY_TYPE", entry_type=entry_type)
    if amount is None or not is_amount_string(amount):
        raise MembermanError("INVALID_AMOUNT", amount=str(amount))
    parsed_points = parse_int(points)
    if parsed_points is None:
        raise MembermanError("INVALID_POINTS", message="Points must be a valid integer")
    if not isinstance(description, str) or not description.strip():
        raise MembermanError("MISSING_DESCRIPTION")

    member = get(member_id)
    if member is None:
        raise MembermanError("MEMBER_NOT_FOUND", member_id=member_id)

    return LedgerEntry.objects.create(
        member=member,
        entry_type=entry_type,
        amount=Decimal(str(amount).strip()),
        points=parsed_points,
        description=description.strip(),
        order_ref=str(order_ref).strip() if order_ref else None,
    )


def get_entries(member_id: int, limit: int = 50, offset: int = 0) -> list[LedgerEntry]:
    """Ledger history for a member, newest first."""
    qs = LedgerEntry.objects.filter(member_id=member_id)
    return list(qs[offset : offset + limit])


# ======================================================================
# Internals
# ======================================================================


def _get_member_for_update(member_id) -> Member:
    """
    Get member with row-level lock for mutation.

    MUST be called inside transaction.atomic().
    """
    try:
        return Member.objects.select_for_update().get(pk=member_id)
    except (Member.DoesNotExist, ValueError, TypeError):
        raise MembermanError("MEMBER_NOT_FOUND", member_id=member_id)


def _get_user(user_ref: str):
    User = get_user_model()
    try:
        return User.objects.filter(pk=user_ref).first()
    except (ValueError, ValidationError):
        return None


def _apply_tier(member: Member, tier: str, update_fields: list[str]) -> str | None:
    """Set tier, bumping last_tier_update on change. Returns the old tier if changed."""
    if member.tier == tier:
        return None
    old_tier = member.tier
    member.tier = tier
    member.last_tier_update = timezone.now()
    update_fields.extend(["tier", "last_tier_update"])
    return old_tier


def _announce_tier_change(member: Member, old_tier: str) -> None:
    logger.info("Member %s tier changed: %s -> %s", member.user_ref, old_tier, member.tier)
    tier_changed.send(sender=Member, member=member, old_tier=old_tier, new_tier=member.tier)


def _validate_points(value) -> int:
    points = parse_int(value)
    if points is None or points < 0:
        raise MembermanError("INVALID_POINTS", points=value)
    return points


def _validate_spending(value) -> Decimal:
    spending = parse_decimal(value)
    if spending is None or spending < 0:
        raise MembermanError("INVALID_ANNUAL_SPENDING", annual_spending=str(value))
    return spending


def _validate_birthday_month(value) -> int:
    month = parse_int(value)
    if month is None or not 1 <= month <= 12:
        raise MembermanError("INVALID_BIRTHDAY_MONTH", birthday_month=value)
    return month


def _validate_birthday_day(value) -> int:
    day = parse_int(value)
    if day is None or not 1 <= day <= 31:
        raise MembermanError("INVALID_BIRTHDAY_DAY", birthday_day=value)
    return day
