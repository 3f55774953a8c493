"""
Memberman JSON endpoints.

Every view resolves an AuthenticatedPrincipal from the request, calls one
service operation and translates MembermanError codes to HTTP statuses.
Request and response bodies use the storefront's camelCase keys.
"""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from memberman.conf import memberman_settings
from memberman.exceptions import MembermanError
from memberman.models import RewardStatus
from memberman.principal import AuthenticatedPrincipal, principal_from_request
from memberman.services import audit, membership, reconciliation, rewards
from memberman.utils import page_bounds, parse_int

logger = logging.getLogger("memberman.views")

_STATUS_BY_CODE = {
    "REWARD_NOT_FOUND": 404,
    "MEMBER_NOT_FOUND": 404,
    "USER_NOT_FOUND": 404,
    "FORBIDDEN": 403,
    "DUPLICATE_MEMBER": 409,
    "BIRTHDAY_GIFT_ALREADY_GRANTED": 409,
    "STORAGE_FAILURE": 500,
}


def _error(message: str, code: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"error": message, "code": code}, status=status)


def _error_from_exception(exc: MembermanError) -> JsonResponse:
    status = _STATUS_BY_CODE.get(exc.code, 400)
    if status >= 500:
        return _error("Internal server error", exc.code, status)
    return _error(exc.message, exc.code, status)


def _require_admin(principal: AuthenticatedPrincipal) -> None:
    if not principal.is_admin:
        raise MembermanError("FORBIDDEN", message="Only administrators can access this endpoint")


def _owned_member(member_id: str, principal: AuthenticatedPrincipal):
    """Member addressed by the URL, if the principal may see it."""
    pk = parse_int(member_id)
    if pk is None or pk <= 0:
        raise MembermanError("INVALID_MEMBER_ID", message="Valid member ID is required")
    member = membership.get(pk)
    if member is None:
        raise MembermanError("MEMBER_NOT_FOUND", member_id=pk)
    if not principal.can_access(member.user_ref):
        raise MembermanError("FORBIDDEN")
    return member


def _pagination(request) -> tuple[int, int]:
    bounds = page_bounds(request.GET.get("limit"), request.GET.get("offset"))
    if bounds is None:
        raise MembermanError(
            "INVALID_PAGINATION",
            message="limit must be a positive integer and offset a non-negative integer",
        )
    return bounds


def _client_ip(request) -> str:
    """
    Caller address for the audit log.

    X-Forwarded-For is only read when TRUSTED_PROXY_COUNT proxies sit in
    front of the app; the client address is the hop the outermost trusted
    proxy appended.
    """
    proxies = memberman_settings.TRUSTED_PROXY_COUNT
    if proxies > 0:
        hops = [h.strip() for h in request.headers.get("X-Forwarded-For", "").split(",") if h.strip()]
        if len(hops) >= proxies:
            return hops[-proxies]
    return request.META.get("REMOTE_ADDR", "") or "unknown"


# =============================================================================
# Serialization
# =============================================================================


def member_to_dict(member) -> dict:
    return {
        "id": member.pk,
        "userId": member.user_ref,
        "tier": member.tier,
        "points": member.points_balance,
        "annualSpending": member.annual_spending,
        "birthdayMonth": member.birthday_month,
        "birthdayDay": member.birthday_day,
        "joinedAt": member.joined_at,
        "lastTierUpdate": member.last_tier_update,
    }


def reward_to_dict(reward) -> dict:
    return {
        "id": reward.pk,
        "memberId": reward.member_id,
        "rewardType": reward.reward_type,
        "pointsCost": reward.points_cost,
        "amountOff": reward.amount_off,
        "status": reward.status,
        "effectiveStatus": reward.effective_status,
        "redeemedAt": reward.redeemed_at,
        "usedAt": reward.used_at,
        "expiresAt": reward.expires_at,
    }


def entry_to_dict(entry) -> dict:
    return {
        "id": entry.pk,
        "memberId": entry.member_id,
        "type": entry.entry_type,
        "amount": entry.amount,
        "points": entry.points,
        "description": entry.description,
        "orderId": entry.order_ref,
        "createdAt": entry.created_at,
    }


def audit_to_dict(entry) -> dict:
    return {
        "id": entry.pk,
        "action": entry.action,
        "performedBy": entry.performed_by,
        "targetUserId": entry.target_user_ref,
        "details": entry.details,
        "ipAddress": entry.ip_address,
        "userAgent": entry.user_agent,
        "createdAt": entry.created_at,
    }


# =============================================================================
# Base view
# =============================================================================


@method_decorator(csrf_exempt, name="dispatch")
class PrincipalView(View):
    """
    Base view: rejects anonymous requests and maps service errors.

    Handlers receive the caller as the ``principal`` keyword argument.
    """

    def dispatch(self, request, *args, **kwargs):
        principal = principal_from_request(request)
        if principal is None:
            return _error("Not authenticated", "UNAUTHORIZED", 401)

        try:
            return super().dispatch(request, *args, principal=principal, **kwargs)
        except MembermanError as exc:
            if exc.code == "STORAGE_FAILURE":
                logger.error("%s %s failed: %s", request.method, request.path, exc.message)
            return _error_from_exception(exc)
        except Exception:
            logger.exception("%s %s failed", request.method, request.path)
            return _error("Internal server error", "INTERNAL_ERROR", 500)

    def json_body(self) -> dict:
        try:
            data = json.loads(self.request.body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            raise MembermanError("INVALID_JSON", message="Invalid JSON")
        if not isinstance(data, dict):
            raise MembermanError("INVALID_JSON", message="Request body must be a JSON object")
        return data


# =============================================================================
# Rewards
# =============================================================================


class RewardDetailView(PrincipalView):
    """PUT rewards/<reward_id>/: change a reward's status."""

    def put(self, request, reward_id, principal):
        pk = parse_int(reward_id)
        if pk is None or pk <= 0:
            return _error("Valid reward ID is required", "INVALID_REWARD_ID")

        status = self.json_body().get("status")
        if not status:
            return _error("Status is required", "MISSING_STATUS")

        reward = rewards.transition(pk, status, principal=principal)
        return JsonResponse(reward_to_dict(reward))


class RewardCollectionView(PrincipalView):
    """POST rewards/: redeem points for a reward."""

    def post(self, request, principal):
        body = self.json_body()
        for key, code in (
            ("memberId", "MISSING_MEMBER_ID"),
            ("rewardType", "MISSING_REWARD_TYPE"),
            ("pointsCost", "MISSING_POINTS_COST"),
            ("amountOff", "MISSING_AMOUNT_OFF"),
        ):
            if body.get(key) in (None, ""):
                return _error(f"{key} is required", code)

        member = _owned_member(str(body["memberId"]), principal)
        reward = rewards.redeem(
            member.pk,
            body["rewardType"],
            points_cost=body["pointsCost"],
            amount_off=body["amountOff"],
        )
        return JsonResponse(reward_to_dict(reward), status=201)


class MemberRewardsView(PrincipalView):
    """GET rewards/member/<member_id>/?status=&limit=&offset="""

    def get(self, request, member_id, principal):
        member = _owned_member(member_id, principal)
        limit, offset = _pagination(request)

        status = request.GET.get("status") or None
        if status and status not in RewardStatus.values:
            return _error("Status must be one of: active, used, expired", "INVALID_STATUS")

        items = rewards.list_for_member(member.pk, status=status, limit=limit, offset=offset)
        return JsonResponse([reward_to_dict(r) for r in items], safe=False)


class BirthdayGiftView(PrincipalView):
    """POST rewards/member/<member_id>/birthday-gift/"""

    def post(self, request, member_id, principal):
        member = _owned_member(member_id, principal)
        reward = rewards.grant_birthday_gift(member.pk)
        return JsonResponse(reward_to_dict(reward), status=201)


# =============================================================================
# Orders
# =============================================================================


class LinkGuestOrdersView(PrincipalView):
    """POST orders/link-guest-orders/: attach guest orders after sign-in."""

    def post(self, request, principal):
        result = reconciliation.link_guest_orders(principal)
        return JsonResponse(
            {
                "success": True,
                "linkedCount": result.linked_count,
                "candidateCount": result.candidate_count,
                "message": result.message,
            }
        )


# =============================================================================
# Members
# =============================================================================


class MemberCollectionView(PrincipalView):
    """POST members/: enroll a user in the loyalty program."""

    def post(self, request, principal):
        body = self.json_body()
        user_ref = body.get("userId")
        if not user_ref:
            return _error("userId is required", "MISSING_USER_ID")

        if isinstance(user_ref, str) and not principal.can_access(user_ref.strip()):
            raise MembermanError("FORBIDDEN")

        member = membership.enroll(
            user_ref,
            birthday_month=body.get("birthdayMonth"),
            birthday_day=body.get("birthdayDay"),
        )
        return JsonResponse(member_to_dict(member), status=201)


class MemberDetailView(PrincipalView):
    """PUT members/<member_id>/: update points, spending, tier or birthday."""

    _FIELD_MAP = {
        "points": "points",
        "annualSpending": "annual_spending",
        "tier": "tier",
        "birthdayMonth": "birthday_month",
        "birthdayDay": "birthday_day",
    }

    def put(self, request, member_id, principal):
        _require_admin(principal)
        pk = parse_int(member_id)
        if pk is None or pk <= 0:
            return _error("Valid member ID is required", "INVALID_MEMBER_ID")

        body = self.json_body()
        fields = {self._FIELD_MAP[k]: v for k, v in body.items() if k in self._FIELD_MAP}
        member = membership.update(pk, **fields)
        return JsonResponse(member_to_dict(member))


class MemberByUserView(PrincipalView):
    """GET members/user/<user_ref>/: own membership, or any for admins."""

    def get(self, request, user_ref, principal):
        user_ref = user_ref.strip()
        if not principal.can_access(user_ref):
            raise MembermanError("FORBIDDEN")

        member = membership.get_by_user(user_ref)
        if member is None:
            return _error("Member not found", "MEMBER_NOT_FOUND", 404)
        return JsonResponse(member_to_dict(member))


# =============================================================================
# Ledger
# =============================================================================


class TransactionCollectionView(PrincipalView):
    """POST transactions/: append a ledger entry (admin)."""

    def post(self, request, principal):
        _require_admin(principal)
        body = self.json_body()
        for key, code in (
            ("memberId", "MISSING_MEMBER_ID"),
            ("type", "MISSING_TYPE"),
            ("amount", "MISSING_AMOUNT"),
            ("points", "MISSING_POINTS"),
            ("description", "MISSING_DESCRIPTION"),
        ):
            if body.get(key) in (None, ""):
                return _error(f"{key} is required", code)

        member_id = parse_int(body["memberId"])
        if member_id is None:
            return _error("Member ID must be a valid integer", "INVALID_MEMBER_ID")

        entry = membership.record_entry(
            member_id,
            body["type"],
            amount=body["amount"],
            points=body["points"],
            description=body["description"],
            order_ref=body.get("orderId"),
        )
        return JsonResponse(entry_to_dict(entry), status=201)


class MemberTransactionsView(PrincipalView):
    """GET transactions/member/<member_id>/?limit=&offset="""

    def get(self, request, member_id, principal):
        member = _owned_member(member_id, principal)
        limit, offset = _pagination(request)
        entries = membership.get_entries(member.pk, limit=limit, offset=offset)
        return JsonResponse([entry_to_dict(e) for e in entries], safe=False)


# =============================================================================
# Back-office
# =============================================================================


class AdminMembershipPointsView(PrincipalView):
    """PUT admin/users/<user_ref>/membership/points/: override points/spending."""

    def put(self, request, user_ref, principal):
        _require_admin(principal)
        body = self.json_body()
        member, created = membership.set_points_and_spending(
            user_ref,
            principal,
            points=body.get("points"),
            annual_spending=body.get("annualSpending"),
            ip_address=_client_ip(request),
            user_agent=request.headers.get("User-Agent", "") or "unknown",
        )
        return JsonResponse(
            {
                "success": True,
                "created": created,
                "membership": member_to_dict(member),
            }
        )


class AuditLogView(PrincipalView):
    """GET admin/audit-logs/?action=&limit=&offset="""

    def get(self, request, principal):
        _require_admin(principal)
        limit, offset = _pagination(request)
        entries = audit.recent(limit=limit, offset=offset, action=request.GET.get("action") or None)
        return JsonResponse([audit_to_dict(e) for e in entries], safe=False)
