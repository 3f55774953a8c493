"""Memberman back-office admin."""

from django.contrib import admin, messages
from django.utils.html import format_html

from memberman.exceptions import MembermanError
from memberman.models import (
    AuditLog,
    LedgerEntry,
    Member,
    Order,
    OrderItem,
    Reward,
    RewardStatus,
)
from memberman.services import rewards


_TIER_COLORS = {
    "member": "#6c757d",
    "plus": "#c0c0c0",
    "premier": "#ffd700",
}

_STATUS_COLORS = {
    "active": "green",
    "used": "#6c757d",
    "expired": "red",
}


def _badge(text, color, text_color="#fff"):
    return format_html(
        '<span style="background:{}; color:{}; padding:2px 8px; '
        'border-radius:3px; font-size:11px;">{}</span>',
        color,
        text_color,
        text,
    )


# ===========================================
# Inline Classes (must be defined before MemberAdmin)
# ===========================================


class RewardInline(admin.TabularInline):
    model = Reward
    extra = 0
    fields = ["reward_type", "points_cost", "amount_off", "status", "redeemed_at", "used_at", "expires_at"]
    readonly_fields = ["reward_type", "points_cost", "amount_off", "status", "redeemed_at", "used_at"]
    ordering = ["-redeemed_at"]

    def has_add_permission(self, request, obj=None):
        return False


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    readonly_fields = ["entry_type", "amount", "points", "description", "order_ref", "created_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ===========================================
# Member Admin
# ===========================================


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = [
        "user_ref",
        "tier_badge",
        "points_balance",
        "annual_spending",
        "birthday",
        "joined_at",
    ]
    list_filter = ["tier"]
    search_fields = ["user_ref"]
    # Balances and tier change through the membership service only
    readonly_fields = ["tier", "points_balance", "annual_spending", "joined_at", "last_tier_update", "updated_at"]
    inlines = [RewardInline, LedgerEntryInline]

    def tier_badge(self, obj):
        text_color = "#000" if obj.tier in ("plus", "premier") else "#fff"
        return _badge(obj.get_tier_display(), _TIER_COLORS.get(obj.tier, "#6c757d"), text_color)

    tier_badge.short_description = "Tier"

    def birthday(self, obj):
        if not obj.has_birthday:
            return "-"
        return f"{obj.birthday_month:02d}/{obj.birthday_day:02d}"

    birthday.short_description = "Birthday"


# ===========================================
# Reward Admin
# ===========================================


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "member",
        "reward_type",
        "points_cost",
        "amount_off",
        "status_badge",
        "redeemed_at",
        "expires_at",
    ]
    list_filter = ["reward_type", "status"]
    search_fields = ["member__user_ref"]
    raw_id_fields = ["member"]
    # Status changes go through the actions below so used_at gets stamped
    readonly_fields = ["status", "redeemed_at", "used_at"]
    date_hierarchy = "redeemed_at"
    actions = ["mark_used", "mark_expired", "mark_active"]

    def status_badge(self, obj):
        status = obj.effective_status
        return _badge(status, _STATUS_COLORS.get(status, "#6c757d"))

    status_badge.short_description = "Status"

    def _transition_selected(self, request, queryset, new_status):
        count = 0
        for pk in queryset.values_list("pk", flat=True):
            try:
                rewards.transition(pk, new_status)
            except MembermanError as exc:
                self.message_user(request, f"Reward {pk}: {exc.message}", messages.ERROR)
            else:
                count += 1
        self.message_user(request, f"{count} reward(s) marked {new_status}.", messages.SUCCESS)

    def mark_used(self, request, queryset):
        self._transition_selected(request, queryset, RewardStatus.USED)

    mark_used.short_description = "Mark selected rewards as used"

    def mark_expired(self, request, queryset):
        self._transition_selected(request, queryset, RewardStatus.EXPIRED)

    mark_expired.short_description = "Mark selected rewards as expired"

    def mark_active(self, request, queryset):
        self._transition_selected(request, queryset, RewardStatus.ACTIVE)

    mark_active.short_description = "Mark selected rewards as active"


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "member",
        "entry_type",
        "points_display",
        "amount",
        "description",
    ]
    list_filter = ["entry_type"]
    search_fields = ["member__user_ref", "description", "order_ref"]
    readonly_fields = [
        "member",
        "entry_type",
        "amount",
        "points",
        "description",
        "order_ref",
        "created_at",
    ]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def points_display(self, obj):
        if obj.points > 0:
            return format_html('<span style="color:green">+{}</span>', obj.points)
        return format_html('<span style="color:red">{}</span>', obj.points)

    points_display.short_description = "Points"


# ===========================================
# Order Admin
# ===========================================


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ["product_name", "sku", "size", "color", "price", "quantity"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_number",
        "email",
        "user_ref",
        "is_guest",
        "status",
        "total",
        "created_at",
    ]
    list_filter = ["status"]
    search_fields = ["order_number", "email", "user_ref"]
    readonly_fields = ["user_ref", "linked_at", "created_at", "updated_at"]
    inlines = [OrderItemInline]

    def is_guest(self, obj):
        return obj.is_guest

    is_guest.boolean = True
    is_guest.short_description = "Guest"


# ===========================================
# AuditLog Admin
# ===========================================


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ["created_at", "action", "performed_by", "target_user_ref", "ip_address"]
    list_filter = ["action"]
    search_fields = ["performed_by", "target_user_ref"]
    readonly_fields = [
        "action",
        "performed_by",
        "target_user_ref",
        "details",
        "ip_address",
        "user_agent",
        "created_at",
    ]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
