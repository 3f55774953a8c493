"""Points ledger - append-only history of accruals and redemptions."""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class EntryType(models.TextChoices):
    PURCHASE = "purchase", _("Purchase")
    REDEEM = "redeem", _("Redemption")
    BIRTHDAY_REWARD = "birthday_reward", _("Birthday reward")


class LedgerEntry(models.Model):
    """
    Immutable record of a points movement.

    Entries are append-only and never modified or deleted.
    """

    member = models.ForeignKey(
        "memberman.Member",
        on_delete=models.CASCADE,
        related_name="ledger_entries",
        verbose_name=_("member"),
    )

    entry_type = models.CharField(_("type"), max_length=20, choices=EntryType.choices)
    amount = models.DecimalField(_("amount"), max_digits=12, decimal_places=2)
    points = models.IntegerField(
        _("points"),
        help_text=_("Positive for accruals, negative for redemptions"),
    )
    description = models.CharField(_("description"), max_length=255)
    order_ref = models.CharField(_("order reference"), max_length=100, null=True, blank=True)

    created_at = models.DateTimeField(_("created at"), default=timezone.now, db_index=True)

    class Meta:
        db_table = "memberman_ledger_entry"
        verbose_name = _("ledger entry")
        verbose_name_plural = _("ledger entries")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["member", "-created_at"], name="memberman_ledger_member_idx"),
        ]

    def __str__(self):
        sign = "+" if self.points > 0 else ""
        return f"{sign}{self.points}pts - {self.description}"
