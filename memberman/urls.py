from django.urls import path

from .views import (
    AdminMembershipPointsView,
    AuditLogView,
    BirthdayGiftView,
    LinkGuestOrdersView,
    MemberByUserView,
    MemberCollectionView,
    MemberDetailView,
    MemberRewardsView,
    MemberTransactionsView,
    RewardCollectionView,
    RewardDetailView,
    TransactionCollectionView,
)

app_name = "memberman"

urlpatterns = [
    # Rewards
    path("rewards/", RewardCollectionView.as_view(), name="reward-list"),
    path("rewards/<str:reward_id>/", RewardDetailView.as_view(), name="reward-detail"),
    path("rewards/member/<str:member_id>/", MemberRewardsView.as_view(), name="member-rewards"),
    path(
        "rewards/member/<str:member_id>/birthday-gift/",
        BirthdayGiftView.as_view(),
        name="member-birthday-gift",
    ),
    # Orders
    path("orders/link-guest-orders/", LinkGuestOrdersView.as_view(), name="link-guest-orders"),
    # Members
    path("members/", MemberCollectionView.as_view(), name="member-list"),
    path("members/<str:member_id>/", MemberDetailView.as_view(), name="member-detail"),
    path("members/user/<str:user_ref>/", MemberByUserView.as_view(), name="member-by-user"),
    # Ledger
    path("transactions/", TransactionCollectionView.as_view(), name="transaction-list"),
    path(
        "transactions/member/<str:member_id>/",
        MemberTransactionsView.as_view(),
        name="member-transactions",
    ),
    # Back-office
    path(
        "admin/users/<str:user_ref>/membership/points/",
        AdminMembershipPointsView.as_view(),
        name="admin-membership-points",
    ),
    path("admin/audit-logs/", AuditLogView.as_view(), name="audit-logs"),
]
