"""Reward model - redeemable benefits owned by a member."""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class RewardType(models.TextChoices):
    DISCOUNT = "discount", _("Discount")
    FREE_SHIPPING = "free_shipping", _("Free shipping")
    BIRTHDAY_GIFT = "birthday_gift", _("Birthday gift")


class RewardStatus(models.TextChoices):
    """
    Reward lifecycle.

    active -> used (one-way), active -> expired (one-way, time-driven).
    """

    ACTIVE = "active", _("Active")
    USED = "used", _("Used")
    EXPIRED = "expired", _("Expired")


class Reward(models.Model):
    """
    Reward granted to a member.

    Status changes go through services.rewards.transition(), which owns the
    one-time used_at stamp. An active reward past expires_at is logically
    expired even before the status is written back (lazy expiry).
    """

    member = models.ForeignKey(
        "memberman.Member",
        on_delete=models.CASCADE,
        related_name="rewards",
        verbose_name=_("member"),
    )

    reward_type = models.CharField(
        _("type"),
        max_length=20,
        choices=RewardType.choices,
    )
    points_cost = models.PositiveIntegerField(
        _("points cost"),
        default=0,
        help_text=_("Zero for gifts"),
    )
    amount_off = models.DecimalField(_("amount off"), max_digits=10, decimal_places=2)

    status = models.CharField(
        _("status"),
        max_length=20,
        choices=RewardStatus.choices,
        default=RewardStatus.ACTIVE,
        db_index=True,
    )

    redeemed_at = models.DateTimeField(_("redeemed at"), default=timezone.now, db_index=True)
    used_at = models.DateTimeField(_("used at"), null=True, blank=True)
    expires_at = models.DateTimeField(_("expires at"))

    class Meta:
        db_table = "memberman_reward"
        verbose_name = _("reward")
        verbose_name_plural = _("rewards")
        ordering = ["-redeemed_at"]
        indexes = [
            models.Index(fields=["member", "-redeemed_at"], name="memberman_reward_member_idx"),
            models.Index(fields=["status", "expires_at"], name="memberman_reward_status_idx"),
        ]

    def __str__(self):
        return f"{self.get_reward_type_display()} -{self.amount_off} ({self.effective_status})"

    @property
    def is_expired(self) -> bool:
        if self.status == RewardStatus.EXPIRED:
            return True
        return self.status == RewardStatus.ACTIVE and self.expires_at <= timezone.now()

    @property
    def effective_status(self) -> str:
        """Status with lazy expiry applied."""
        if self.is_expired:
            return RewardStatus.EXPIRED.value
        return str(self.status)
