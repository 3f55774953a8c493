"""Tests for the back-office admin."""

import pytest
from django.contrib import admin
from django.urls import reverse

from memberman.admin import MemberAdmin, RewardInline
from memberman.models import AuditLog, LedgerEntry, Member, Reward


pytestmark = pytest.mark.django_db


@pytest.mark.parametrize("model", ["member", "reward", "ledgerentry", "order", "auditlog"])
def test_changelist_renders(admin_client, member, reward, make_order, model):
    """Test every changelist renders."""
    make_order()
    LedgerEntry.objects.create(member=member, entry_type="purchase", amount="5.00", points=5, description="x")
    AuditLog.objects.create(action="membership_points_spending_update", performed_by="admin-001")

    response = admin_client.get(reverse(f"admin:memberman_{model}_changelist"))

    assert response.status_code == 200


def test_member_change_page_shows_inlines(admin_client, member, reward):
    """Test member change page lists ledger entries."""
    response = admin_client.get(reverse("admin:memberman_member_change", args=[member.pk]))

    assert response.status_code == 200
    assert b"ledger entries" in response.content.lower()


def test_ledger_is_read_only(admin_client):
    """Test ledger entries cannot be added from the admin."""
    response = admin_client.get(reverse("admin:memberman_ledgerentry_add"))
    assert response.status_code == 403


class TestRewardStatus:
    """Tests for reward status changes in the admin."""

    def test_status_not_editable(self, rf, admin_user):
        """Test status is read-only on the reward form and the member inline."""
        request = rf.get("/")
        request.user = admin_user

        assert "status" in admin.site._registry[Reward].get_readonly_fields(request)
        assert "used_at" in admin.site._registry[Reward].get_readonly_fields(request)
        assert "status" in RewardInline.readonly_fields

    def test_change_form_post_keeps_status(self, admin_client, reward):
        """Test posting a status on the change form does not change it."""
        admin_client.post(
            reverse("admin:memberman_reward_change", args=[reward.pk]),
            {"status": "used"},
        )

        reward.refresh_from_db()
        assert reward.status == "active"
        assert reward.used_at is None

    def test_mark_used_action_stamps_used_at(self, admin_client, reward):
        """Test the mark-used action goes through the status transition."""
        response = admin_client.post(
            reverse("admin:memberman_reward_changelist"),
            {"action": "mark_used", "_selected_action": [reward.pk]},
        )

        assert response.status_code == 302
        reward.refresh_from_db()
        assert reward.status == "used"
        assert reward.used_at is not None

    def test_used_at_kept_across_actions(self, admin_client, reward):
        """Test the first used_at stamp survives later status actions."""
        url = reverse("admin:memberman_reward_changelist")
        admin_client.post(url, {"action": "mark_used", "_selected_action": [reward.pk]})
        reward.refresh_from_db()
        first_stamp = reward.used_at

        admin_client.post(url, {"action": "mark_active", "_selected_action": [reward.pk]})
        admin_client.post(url, {"action": "mark_used", "_selected_action": [reward.pk]})

        reward.refresh_from_db()
        assert reward.status == "used"
        assert reward.used_at == first_stamp


def test_member_balances_not_editable():
    """Test tier and balances are read-only on the member form."""
    readonly = admin.site._registry[Member].readonly_fields

    assert isinstance(admin.site._registry[Member], MemberAdmin)
    for field in ("tier", "points_balance", "annual_spending"):
        assert field in readonly
