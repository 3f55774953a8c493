"""Tests for the JSON endpoints."""

import json
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from memberman.models import AuditLog, LedgerEntry, Member, Reward


pytestmark = pytest.mark.django_db


def put_json(client, url, payload, **extra):
    return client.put(url, data=json.dumps(payload), content_type="application/json", **extra)


def post_json(client, url, payload=None):
    return client.post(url, data=json.dumps(payload or {}), content_type="application/json")


class TestAuthentication:
    """Tests for anonymous access."""

    @pytest.mark.parametrize(
        "method, url",
        [
            ("get", "/api/members/user/1/"),
            ("post", "/api/orders/link-guest-orders/"),
            ("put", "/api/rewards/1/"),
            ("get", "/api/admin/audit-logs/"),
        ],
    )
    def test_anonymous_rejected(self, client, method, url):
        """Test anonymous requests get 401."""
        response = getattr(client, method)(url)

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated", "code": "UNAUTHORIZED"}


class TestRewardEndpoints:
    """Tests for reward endpoints."""

    @pytest.fixture
    def shopper_reward(self, shopper_member, reward):
        reward.member = shopper_member
        reward.save()
        return reward

    def test_mark_used(self, shopper_client, shopper_reward):
        """Test owner marks a reward used."""
        response = put_json(shopper_client, f"/api/rewards/{shopper_reward.pk}/", {"status": "used"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "used"
        assert body["usedAt"] is not None

    def test_invalid_status(self, shopper_client, shopper_reward):
        """Test unknown status maps to 400."""
        response = put_json(shopper_client, f"/api/rewards/{shopper_reward.pk}/", {"status": "lost"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS"

    def test_missing_status(self, shopper_client, shopper_reward):
        """Test status is required."""
        response = put_json(shopper_client, f"/api/rewards/{shopper_reward.pk}/", {})
        assert response.json()["code"] == "MISSING_STATUS"

    def test_invalid_reward_id(self, shopper_client):
        """Test non-numeric reward id."""
        response = put_json(shopper_client, "/api/rewards/abc/", {"status": "used"})
        assert response.json()["code"] == "INVALID_REWARD_ID"

    def test_not_found(self, shopper_client):
        """Test missing reward maps to 404."""
        response = put_json(shopper_client, "/api/rewards/9999/", {"status": "used"})

        assert response.status_code == 404
        assert response.json()["code"] == "REWARD_NOT_FOUND"

    def test_someone_elses_reward(self, shopper_client, reward):
        """Test another member's reward maps to 403."""
        response = put_json(shopper_client, f"/api/rewards/{reward.pk}/", {"status": "used"})

        assert response.status_code == 403
        reward.refresh_from_db()
        assert reward.status == "active"

    def test_storage_failure_is_500(self, shopper_client, shopper_reward):
        """Test storage failure maps to a generic 500."""
        with patch.object(Reward, "save", side_effect=DatabaseError("disk full")):
            response = put_json(shopper_client, f"/api/rewards/{shopper_reward.pk}/", {"status": "used"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "STORAGE_FAILURE"}

    def test_invalid_json(self, shopper_client, shopper_reward):
        """Test malformed body."""
        response = shopper_client.put(
            f"/api/rewards/{shopper_reward.pk}/", data="{not json", content_type="application/json"
        )
        assert response.json()["code"] == "INVALID_JSON"

    def test_redeem(self, shopper_client, shopper_member):
        """Test owner redeems points."""
        response = post_json(
            shopper_client,
            "/api/rewards/",
            {"memberId": shopper_member.pk, "rewardType": "discount", "pointsCost": 100, "amountOff": "5.00"},
        )

        assert response.status_code == 201
        assert response.json()["amountOff"] == "5.00"
        shopper_member.refresh_from_db()
        assert shopper_member.points_balance == 200

    def test_birthday_gift_not_redeemable(self, shopper_client, shopper_member):
        """Test birthday gifts cannot be obtained through redemption."""
        payload = {
            "memberId": shopper_member.pk,
            "rewardType": "birthday_gift",
            "pointsCost": "0",
            "amountOff": "5000.00",
        }

        codes = [post_json(shopper_client, "/api/rewards/", payload).status_code for _ in range(3)]

        assert codes == [400, 400, 400]
        assert post_json(shopper_client, "/api/rewards/", payload).json()["code"] == "INVALID_REWARD_TYPE"
        assert not Reward.objects.filter(member=shopper_member).exists()
        shopper_member.refresh_from_db()
        assert shopper_member.points_balance == 300

    def test_redeem_missing_field(self, shopper_client, shopper_member):
        """Test required redemption fields."""
        response = post_json(shopper_client, "/api/rewards/", {"memberId": shopper_member.pk})
        assert response.json()["code"] == "MISSING_REWARD_TYPE"

    def test_list_for_member(self, shopper_client, shopper_reward):
        """Test listing own rewards with a status filter."""
        response = shopper_client.get(f"/api/rewards/member/{shopper_reward.member_id}/?status=active")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [shopper_reward.pk]

    def test_list_bad_pagination(self, shopper_client, shopper_member):
        """Test invalid limit."""
        response = shopper_client.get(f"/api/rewards/member/{shopper_member.pk}/?limit=0")
        assert response.json()["code"] == "INVALID_PAGINATION"

    def test_birthday_gift_without_birthday(self, shopper_client, shopper_member):
        """Test birthday gift endpoint requires a birthday."""
        response = post_json(shopper_client, f"/api/rewards/member/{shopper_member.pk}/birthday-gift/")

        assert response.status_code == 400
        assert response.json()["code"] == "BIRTHDAY_NOT_SET"


class TestLinkGuestOrders:
    """Tests for the guest-order link endpoint."""

    def test_links_orders_placed_with_account_email(self, shopper_client, shopper, make_order):
        """Test orders with the account email are linked."""
        mine = make_order(email="shopper@example.com")
        make_order(email="other@example.com")

        response = post_json(shopper_client, "/api/orders/link-guest-orders/")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "linkedCount": 1,
            "candidateCount": 1,
            "message": "Successfully linked 1 order(s) to your account",
        }
        mine.refresh_from_db()
        assert mine.user_ref == str(shopper.pk)

    def test_nothing_to_link(self, shopper_client):
        """Test empty reconciliation response."""
        response = post_json(shopper_client, "/api/orders/link-guest-orders/")

        assert response.json()["linkedCount"] == 0
        assert response.json()["message"] == "No guest orders found to link"

    def test_account_without_email(self, client, django_user_model):
        """Test accounts without email get MISSING_EMAIL."""
        user = django_user_model.objects.create_user(username="noemail", password="pw")
        client.force_login(user)

        response = post_json(client, "/api/orders/link-guest-orders/")

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_EMAIL"


class TestMemberEndpoints:
    """Tests for member endpoints."""

    def test_enroll_self(self, shopper_client, shopper):
        """Test a user enrolls themselves."""
        response = post_json(shopper_client, "/api/members/", {"userId": str(shopper.pk), "birthdayMonth": 4})

        assert response.status_code == 201
        assert response.json()["tier"] == "member"
        assert Member.objects.filter(user_ref=str(shopper.pk)).exists()

    def test_enroll_someone_else(self, shopper_client):
        """Test a member cannot enroll another identity."""
        response = post_json(shopper_client, "/api/members/", {"userId": "user-999"})
        assert response.status_code == 403

    def test_enroll_twice(self, shopper_client, shopper_member):
        """Test duplicate enrollment maps to 409."""
        response = post_json(shopper_client, "/api/members/", {"userId": shopper_member.user_ref})

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_MEMBER"

    def test_get_own_membership(self, shopper_client, shopper_member):
        """Test reading own membership."""
        response = shopper_client.get(f"/api/members/user/{shopper_member.user_ref}/")

        assert response.status_code == 200
        assert response.json()["points"] == 300

    def test_get_other_membership(self, shopper_client, member):
        """Test reading another membership is forbidden."""
        response = shopper_client.get(f"/api/members/user/{member.user_ref}/")
        assert response.status_code == 403

    def test_admin_get_missing_membership(self, staff_client):
        """Test missing membership maps to 404."""
        response = staff_client.get("/api/members/user/nobody/")
        assert response.status_code == 404

    def test_admin_update_recomputes_tier(self, staff_client, member):
        """Test admin spending update recomputes the tier."""
        response = put_json(staff_client, f"/api/members/{member.pk}/", {"annualSpending": "1000.00"})

        assert response.status_code == 200
        assert response.json()["tier"] == "premier"

    def test_member_cannot_update(self, shopper_client, shopper_member):
        """Test members cannot update memberships."""
        response = put_json(shopper_client, f"/api/members/{shopper_member.pk}/", {"points": 10000})

        assert response.status_code == 403
        shopper_member.refresh_from_db()
        assert shopper_member.points_balance == 300


class TestTransactionEndpoints:
    """Tests for ledger endpoints."""

    def test_admin_records_entry(self, staff_client, member):
        """Test admin appends a ledger entry."""
        response = post_json(
            staff_client,
            "/api/transactions/",
            {
                "memberId": member.pk,
                "type": "purchase",
                "amount": "49.90",
                "points": 49,
                "description": "Order ORD-0001",
                "orderId": "ORD-0001",
            },
        )

        assert response.status_code == 201
        assert response.json()["orderId"] == "ORD-0001"
        assert LedgerEntry.objects.filter(member=member).count() == 1

    def test_member_cannot_record(self, shopper_client, shopper_member):
        """Test members cannot write the ledger."""
        response = post_json(shopper_client, "/api/transactions/", {"memberId": shopper_member.pk})
        assert response.status_code == 403

    def test_missing_fields(self, staff_client, member):
        """Test required ledger fields."""
        response = post_json(staff_client, "/api/transactions/", {"memberId": member.pk, "type": "purchase"})
        assert response.json()["code"] == "MISSING_AMOUNT"

    def test_member_reads_own_history(self, shopper_client, shopper_member):
        """Test member reads own ledger."""
        LedgerEntry.objects.create(
            member=shopper_member, entry_type="purchase", amount="10.00", points=10, description="x"
        )

        response = shopper_client.get(f"/api/transactions/member/{shopper_member.pk}/")

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestAdminEndpoints:
    """Tests for back-office endpoints."""

    def test_set_points_writes_audit_log(self, staff_client, staff_user, shopper, shopper_member):
        """Test points override is visible in the audit log."""
        response = put_json(
            staff_client,
            f"/api/admin/users/{shopper.pk}/membership/points/",
            {"points": 1000, "annualSpending": "650.00"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["created"] is False
        assert body["membership"]["points"] == 1000
        assert body["membership"]["tier"] == "plus"

        logs = staff_client.get("/api/admin/audit-logs/").json()
        assert len(logs) == 1
        assert logs[0]["performedBy"] == str(staff_user.pk)
        assert logs[0]["details"]["newPoints"] == 1000
        assert AuditLog.objects.get().target_user_ref == str(shopper.pk)

    def test_audit_ignores_forwarded_for_by_default(self, staff_client, shopper, shopper_member):
        """Test a client-supplied X-Forwarded-For is not trusted."""
        put_json(
            staff_client,
            f"/api/admin/users/{shopper.pk}/membership/points/",
            {"points": 10},
            headers={"X-Forwarded-For": "6.6.6.6"},
        )

        assert AuditLog.objects.get().ip_address == "127.0.0.1"

    def test_audit_uses_hop_from_trusted_proxy(self, staff_client, shopper, shopper_member, settings):
        """Test the hop appended by a trusted proxy is recorded."""
        settings.MEMBERMAN = {"TRUSTED_PROXY_COUNT": 1}

        put_json(
            staff_client,
            f"/api/admin/users/{shopper.pk}/membership/points/",
            {"points": 10},
            headers={"X-Forwarded-For": "6.6.6.6, 203.0.113.7"},
        )

        assert AuditLog.objects.get().ip_address == "203.0.113.7"

    def test_set_points_unknown_user(self, staff_client):
        """Test override for a nonexistent user maps to 404."""
        response = put_json(staff_client, "/api/admin/users/99999/membership/points/", {"points": 1})
        assert response.status_code == 404

    def test_member_forbidden(self, shopper_client, shopper):
        """Test members cannot override points."""
        response = put_json(shopper_client, f"/api/admin/users/{shopper.pk}/membership/points/", {"points": 1})
        assert response.status_code == 403

    def test_audit_logs_require_admin(self, shopper_client):
        """Test members cannot read the audit log."""
        assert shopper_client.get("/api/admin/audit-logs/").status_code == 403
