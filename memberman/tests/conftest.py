"""Pytest fixtures for Memberman tests."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from memberman.models import Member, Order, Reward, RewardStatus, RewardType
from memberman.principal import AuthenticatedPrincipal


@pytest.fixture
def member(db):
    """Enrolled member with some points to spend."""
    return Member.objects.create(
        user_ref="user-001",
        points_balance=500,
        annual_spending=Decimal("120.00"),
        birthday_month=5,
        birthday_day=17,
    )


@pytest.fixture
def other_member(db):
    return Member.objects.create(user_ref="user-002", points_balance=50)


@pytest.fixture
def reward(db, member):
    """Active, unused discount reward."""
    now = timezone.now()
    return Reward.objects.create(
        member=member,
        reward_type=RewardType.DISCOUNT,
        points_cost=100,
        amount_off=Decimal("10.00"),
        status=RewardStatus.ACTIVE,
        redeemed_at=now,
        expires_at=now + timedelta(days=90),
    )


@pytest.fixture
def principal():
    """Signed-in shopper owning ``member``."""
    return AuthenticatedPrincipal(user_ref="user-001", email="shopper@example.com")


@pytest.fixture
def admin_principal():
    return AuthenticatedPrincipal(user_ref="admin-001", email="admin@example.com", role="admin")


@pytest.fixture
def make_order(db):
    """Factory for orders; guest orders by default."""
    counter = {"n": 0}

    def _make(email="shopper@example.com", user_ref=None, total="49.90"):
        counter["n"] += 1
        return Order.objects.create(
            order_number=f"ORD-{counter['n']:04d}",
            email=email,
            user_ref=user_ref,
            subtotal=Decimal(total),
            total=Decimal(total),
        )

    return _make


# ═══════════════════════════════════════════════════════════════════
# HTTP fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def shopper(django_user_model):
    return django_user_model.objects.create_user(
        username="shopper",
        email="Shopper@Example.com",
        password="secret-pass",
    )


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username="staff",
        email="staff@example.com",
        password="secret-pass",
        is_staff=True,
    )


@pytest.fixture
def shopper_client(client, shopper):
    client.force_login(shopper)
    return client


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


@pytest.fixture
def shopper_member(shopper):
    """Membership owned by the ``shopper`` user."""
    return Member.objects.create(user_ref=str(shopper.pk), points_balance=300)
