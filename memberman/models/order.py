"""Order models (created by the checkout flow).

Data architecture:
    Order.email
        Contact email captured at checkout, normalized to lowercase on save.
        Always present, for guests and signed-in shoppers alike.

    Order.user_ref
        Identity of the owning user. Null for guest orders. Set at checkout
        for signed-in shoppers, or exactly once by reconciliation when the
        guest later authenticates with the same email. Never re-linked.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class OrderStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    PROCESSING = "processing", _("Processing")
    SHIPPED = "shipped", _("Shipped")
    DELIVERED = "delivered", _("Delivered")
    CANCELLED = "cancelled", _("Cancelled")


class Order(models.Model):
    """Purchase record."""

    order_number = models.CharField(_("order number"), max_length=50, unique=True)
    user_ref = models.CharField(
        _("user reference"),
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
    )
    email = models.EmailField(_("email"), db_index=True)

    status = models.CharField(
        _("status"),
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    # Totals
    subtotal = models.DecimalField(_("subtotal"), max_digits=12, decimal_places=2)
    shipping = models.DecimalField(_("shipping"), max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(_("tax"), max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(_("discount"), max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(_("total"), max_digits=12, decimal_places=2)

    linked_at = models.DateTimeField(
        _("linked at"),
        null=True,
        blank=True,
        help_text=_("When a guest order was attached to a user account"),
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        db_table = "memberman_order"
        verbose_name = _("order")
        verbose_name_plural = _("orders")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["email", "user_ref"], name="memberman_order_email_idx"),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.email})"

    @property
    def is_guest(self) -> bool:
        return bool(self.email) and self.user_ref is None

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower().strip()
        super().save(*args, **kwargs)


class OrderItem(models.Model):
    """Line item of an order (price snapshot at checkout)."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("order"),
    )
    product_ref = models.CharField(_("product reference"), max_length=100)
    product_name = models.CharField(_("product name"), max_length=255)
    price = models.DecimalField(_("price"), max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(_("quantity"), default=1)
    size = models.CharField(_("size"), max_length=20, blank=True)
    color = models.CharField(_("color"), max_length=50, blank=True)
    sku = models.CharField(_("SKU"), max_length=100, blank=True)

    class Meta:
        db_table = "memberman_order_item"
        verbose_name = _("order item")
        verbose_name_plural = _("order items")

    def __str__(self):
        return f"{self.quantity}x {self.product_name}"

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
