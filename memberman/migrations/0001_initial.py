# Initial migration for Memberman

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "user_ref",
                    models.CharField(
                        help_text="Identifier of the authenticated user owning this membership",
                        max_length=255,
                        unique=True,
                        verbose_name="user reference",
                    ),
                ),
                (
                    "tier",
                    models.CharField(
                        choices=[("member", "Member"), ("plus", "Plus"), ("premier", "Premier")],
                        default="member",
                        max_length=20,
                        verbose_name="tier",
                    ),
                ),
                (
                    "points_balance",
                    models.IntegerField(
                        default=0,
                        help_text="Points available for redemption",
                        verbose_name="points balance",
                    ),
                ),
                (
                    "annual_spending",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        verbose_name="annual spending",
                    ),
                ),
                ("birthday_month", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="birthday month")),
                ("birthday_day", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="birthday day")),
                ("joined_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="joined at")),
                (
                    "last_tier_update",
                    models.DateTimeField(default=django.utils.timezone.now, verbose_name="last tier update"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "member",
                "verbose_name_plural": "members",
                "db_table": "memberman_member",
                "ordering": ["-joined_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("points_balance__gte", 0)),
                        name="memberman_member_points_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("annual_spending__gte", 0)),
                        name="memberman_member_spending_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "reward_type",
                    models.CharField(
                        choices=[
                            ("discount", "Discount"),
                            ("free_shipping", "Free shipping"),
                            ("birthday_gift", "Birthday gift"),
                        ],
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                (
                    "points_cost",
                    models.PositiveIntegerField(default=0, help_text="Zero for gifts", verbose_name="points cost"),
                ),
                ("amount_off", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="amount off")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("used", "Used"), ("expired", "Expired")],
                        db_index=True,
                        default="active",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "redeemed_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="redeemed at"),
                ),
                ("used_at", models.DateTimeField(blank=True, null=True, verbose_name="used at")),
                ("expires_at", models.DateTimeField(verbose_name="expires at")),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rewards",
                        to="memberman.member",
                        verbose_name="member",
                    ),
                ),
            ],
            options={
                "verbose_name": "reward",
                "verbose_name_plural": "rewards",
                "db_table": "memberman_reward",
                "ordering": ["-redeemed_at"],
                "indexes": [
                    models.Index(fields=["member", "-redeemed_at"], name="memberman_reward_member_idx"),
                    models.Index(fields=["status", "expires_at"], name="memberman_reward_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "entry_type",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("redeem", "Redemption"),
                            ("birthday_reward", "Birthday reward"),
                        ],
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="amount")),
                (
                    "points",
                    models.IntegerField(
                        help_text="Positive for accruals, negative for redemptions",
                        verbose_name="points",
                    ),
                ),
                ("description", models.CharField(max_length=255, verbose_name="description")),
                (
                    "order_ref",
                    models.CharField(blank=True, max_length=100, null=True, verbose_name="order reference"),
                ),
                (
                    "created_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="created at"),
                ),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ledger_entries",
                        to="memberman.member",
                        verbose_name="member",
                    ),
                ),
            ],
            options={
                "verbose_name": "ledger entry",
                "verbose_name_plural": "ledger entries",
                "db_table": "memberman_ledger_entry",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["member", "-created_at"], name="memberman_ledger_member_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.CharField(max_length=50, unique=True, verbose_name="order number")),
                (
                    "user_ref",
                    models.CharField(blank=True, db_index=True, max_length=255, null=True, verbose_name="user reference"),
                ),
                ("email", models.EmailField(db_index=True, max_length=254, verbose_name="email")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="subtotal")),
                (
                    "shipping",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, verbose_name="shipping"),
                ),
                (
                    "tax",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, verbose_name="tax"),
                ),
                (
                    "discount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, verbose_name="discount"),
                ),
                ("total", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="total")),
                (
                    "linked_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When a guest order was attached to a user account",
                        null=True,
                        verbose_name="linked at",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "order",
                "verbose_name_plural": "orders",
                "db_table": "memberman_order",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["email", "user_ref"], name="memberman_order_email_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_ref", models.CharField(max_length=100, verbose_name="product reference")),
                ("product_name", models.CharField(max_length=255, verbose_name="product name")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="price")),
                ("quantity", models.PositiveIntegerField(default=1, verbose_name="quantity")),
                ("size", models.CharField(blank=True, max_length=20, verbose_name="size")),
                ("color", models.CharField(blank=True, max_length=50, verbose_name="color")),
                ("sku", models.CharField(blank=True, max_length=100, verbose_name="SKU")),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="memberman.order",
                        verbose_name="order",
                    ),
                ),
            ],
            options={
                "verbose_name": "order item",
                "verbose_name_plural": "order items",
                "db_table": "memberman_order_item",
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(db_index=True, max_length=100, verbose_name="action")),
                ("performed_by", models.CharField(max_length=255, verbose_name="performed by")),
                (
                    "target_user_ref",
                    models.CharField(blank=True, db_index=True, max_length=255, verbose_name="target user"),
                ),
                ("details", models.JSONField(blank=True, default=dict, verbose_name="details")),
                ("ip_address", models.CharField(blank=True, max_length=100, verbose_name="IP address")),
                ("user_agent", models.CharField(blank=True, max_length=500, verbose_name="user agent")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
            ],
            options={
                "verbose_name": "audit log entry",
                "verbose_name_plural": "audit log",
                "db_table": "memberman_audit_log",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
