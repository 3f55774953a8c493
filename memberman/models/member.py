"""Member model - one loyalty membership per external user identity."""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class MemberTier(models.TextChoices):
    """Membership tiers, ordered from lowest to highest."""

    MEMBER = "member", _("Member")
    PLUS = "plus", _("Plus")
    PREMIER = "premier", _("Premier")

    @classmethod
    def rank(cls, tier: str) -> int:
        """Position of ``tier`` in the tier ladder (member=0)."""
        return cls.values.index(tier)


class Member(models.Model):
    """
    Loyalty program participant.

    user_ref points at the host project's user identity (opaque string,
    usually the user's primary key). Tier must be consistent with
    annual_spending at the last recompute; see services.membership.
    """

    user_ref = models.CharField(
        _("user reference"),
        max_length=255,
        unique=True,
        help_text=_("Identifier of the authenticated user owning this membership"),
    )

    tier = models.CharField(
        _("tier"),
        max_length=20,
        choices=MemberTier.choices,
        default=MemberTier.MEMBER,
    )
    points_balance = models.IntegerField(
        _("points balance"),
        default=0,
        help_text=_("Points available for redemption"),
    )
    annual_spending = models.DecimalField(
        _("annual spending"),
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    # Anniversary rewards
    birthday_month = models.PositiveSmallIntegerField(_("birthday month"), null=True, blank=True)
    birthday_day = models.PositiveSmallIntegerField(_("birthday day"), null=True, blank=True)

    joined_at = models.DateTimeField(_("joined at"), default=timezone.now)
    last_tier_update = models.DateTimeField(_("last tier update"), default=timezone.now)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        db_table = "memberman_member"
        verbose_name = _("member")
        verbose_name_plural = _("members")
        ordering = ["-joined_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(points_balance__gte=0),
                name="memberman_member_points_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(annual_spending__gte=0),
                name="memberman_member_spending_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.user_ref}: {self.points_balance}pts | {self.tier}"

    @property
    def has_birthday(self) -> bool:
        return self.birthday_month is not None and self.birthday_day is not None
