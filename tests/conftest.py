# tests/conftest.py
"""
Shared fixtures: one account per role, a couple of courses, and helpers
for building subscriptions, sessions and payments.
"""
from datetime import datetime
from decimal import Decimal

import pytest
from django.contrib.auth.models import User
from django.utils import timezone

from profiles.models import UserProfile, TutorProfile
from tutoring.models import Course, Subscription, TutoringSession, Payment


def aware(*args):
    return timezone.make_aware(datetime(*args))


def make_user(username, role, **extra):
    user = User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="s3cret-pass",
        **extra,
    )
    UserProfile.objects.filter(user=user).update(role=role)
    user.refresh_from_db()
    return user


@pytest.fixture
def staff_admin(db):
    return make_user("ada", UserProfile.Role.ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture
def parent(db):
    return make_user("pat", UserProfile.Role.PARENT, first_name="Pat", last_name="Parent")


@pytest.fixture
def tutor(db):
    user = make_user("tom", UserProfile.Role.TUTOR, first_name="Tom", last_name="Tutor")
    TutorProfile.objects.create(user=user, bio="Math tutor", hourly_rate=Decimal("40"))
    return user


@pytest.fixture
def algebra(db):
    return Course.objects.create(title="Algebra I", subject="Math", grade_level="Grade 8", price=Decimal("200"))


@pytest.fixture
def physics(db):
    return Course.objects.create(title="Intro Physics", subject="Science", grade_level="Grade 10", price=Decimal("250"))


@pytest.fixture
def subscription(parent, tutor, algebra):
    return Subscription.objects.create(
        parent=parent,
        course=algebra,
        preferred_tutor=tutor,
        student_first_name="Sam",
        student_last_name="Parent",
        payment_status=Subscription.PaymentStatus.PAID,
    )


@pytest.fixture
def make_session(subscription):
    def _make(scheduled_at, **fields):
        return TutoringSession.objects.create(
            subscription=subscription,
            tutor=subscription.preferred_tutor,
            parent=subscription.parent,
            scheduled_at=scheduled_at,
            **fields,
        )
    return _make


@pytest.fixture
def make_payment(parent, tutor, subscription):
    def _make(amount, status, created_at=None, **fields):
        return Payment.objects.create(
            parent=parent,
            tutor=tutor,
            subscription=subscription,
            amount=Decimal(amount),
            status=status,
            created_at=created_at or timezone.now(),
            **fields,
        )
    return _make
