import datetime
from decimal import Decimal

import pytest

from dashboard import queries
from profiles.models import UserProfile
from tutoring.models import Payment, TutorCoursePreference
from .conftest import aware, make_user

pytestmark = pytest.mark.django_db


def test_default_range_spans_twelve_months():
    start, end = queries.default_analytics_range(today=datetime.date(2026, 3, 14))
    assert start == datetime.date(2025, 4, 1)
    assert end == datetime.date(2026, 3, 14)
    assert len(queries.month_buckets(start, end)) == 12


def test_month_buckets_cross_year_boundary():
    buckets = queries.month_buckets(datetime.date(2025, 11, 20), datetime.date(2026, 1, 3))
    assert buckets == [datetime.date(2025, 11, 1), datetime.date(2025, 12, 1), datetime.date(2026, 1, 1)]


def test_overview_revenue_counts_completed_payments(make_payment, staff_admin):
    make_payment('100', Payment.Status.COMPLETED)
    make_payment('20.5', Payment.Status.COMPLETED)
    make_payment('999', Payment.Status.FAILED)
    stats = queries.overview_stats()
    assert stats['total_revenue'] == Decimal('120.50')
    assert stats['total_payments'] == 3
    assert stats['total_parents'] == 1
    assert stats['total_tutors'] == 1
    assert stats['active_enrollments'] == 1


def test_user_filters(parent, tutor, staff_admin):
    ids = lambda filters: {u.id for u in queries.filter_users(filters)}
    assert ids({'role': UserProfile.Role.TUTOR}) == {tutor.id}
    assert ids({'search': 'pat'}) == {parent.id}
    assert ids({'search': 'tom@example'}) == {tutor.id}
    assert ids({'role': UserProfile.Role.ADMIN}) == {staff_admin.id}


def test_date_range_is_inclusive_of_end_day(make_payment):
    make_payment('10', Payment.Status.PENDING, created_at=aware(2026, 1, 31, 23, 30))
    make_payment('20', Payment.Status.PENDING, created_at=aware(2026, 2, 1, 0, 30))
    rows = queries.filter_payments({'end_date': datetime.date(2026, 1, 31)})
    assert [p.amount for p in rows] == [Decimal('10')]


def test_analytics_series(make_payment):
    make_payment('100', Payment.Status.COMPLETED, created_at=aware(2026, 1, 10, 12))
    make_payment('50', Payment.Status.COMPLETED, created_at=aware(2026, 3, 2, 12))
    make_payment('70', Payment.Status.PENDING, created_at=aware(2026, 3, 3, 12))

    data = queries.analytics(datetime.date(2026, 1, 1), datetime.date(2026, 3, 31))
    assert data['labels'] == ['Jan 2026', 'Feb 2026', 'Mar 2026']
    assert data['revenue_data'] == [100.0, 0.0, 50.0]
    assert data['payment_status'] == {'completed': 2, 'pending': 1, 'failed': 0}


def test_tutors_with_preferences_counts_pending(tutor, algebra, physics):
    make_user("idle", UserProfile.Role.TUTOR)
    TutorCoursePreference.objects.create(tutor=tutor, course=algebra, hourly_rate=Decimal('40'))
    TutorCoursePreference.objects.create(
        tutor=tutor, course=physics, hourly_rate=Decimal('45'),
        approval_status=TutorCoursePreference.Status.APPROVED,
    )
    rows = list(queries.tutors_with_preferences())
    assert [(u.id, u.preference_count, u.pending) for u in rows] == [(tutor.id, 2, 1)]
