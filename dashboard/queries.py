"""
Read-side queries behind the admin dashboard.

Querysets take a plain filter dict (as produced by ListState) so the same
query feeds the HTML list, the JSON API and the CSV export.
"""
from datetime import date, datetime
from decimal import Decimal

from django.contrib.auth.models import User
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from profiles.models import UserProfile, TutorProfile, display_name
from tutoring.models import Subscription, Payment, TutorCoursePreference


def _money(value):
    return (value or Decimal('0')).quantize(Decimal('0.01'))


def _iso(value):
    return value.isoformat() if value else None


def _date_range(queryset, filters, field='created_at'):
    """Apply start_date/end_date filters; the end date includes the whole day."""
    start = filters.get('start_date')
    end = filters.get('end_date')
    if start:
        queryset = queryset.filter(**{f'{field}__date__gte': start})
    if end:
        queryset = queryset.filter(**{f'{field}__date__lte': end})
    return queryset


# ============================================================================
# Overview
# ============================================================================

def overview_stats():
    users_by_role = dict(
        UserProfile.objects.order_by().values('role').annotate(n=Count('id')).values_list('role', 'n')
    )
    revenue = Payment.objects.filter(status=Payment.Status.COMPLETED).aggregate(total=Sum('amount'))['total']
    return {
        'total_users': User.objects.count(),
        'total_parents': users_by_role.get(UserProfile.Role.PARENT, 0),
        'total_tutors': users_by_role.get(UserProfile.Role.TUTOR, 0),
        'total_enrollments': Subscription.objects.count(),
        'active_enrollments': Subscription.objects.filter(status=Subscription.Status.ACTIVE).count(),
        'total_payments': Payment.objects.count(),
        'total_revenue': _money(revenue),
    }


# ============================================================================
# Users
# ============================================================================

def filter_users(filters):
    queryset = User.objects.select_related('profile').order_by('-date_joined', '-id')
    role = filters.get('role')
    if role:
        if role == UserProfile.Role.ADMIN:
            queryset = queryset.filter(Q(profile__role=role) | Q(is_superuser=True))
        else:
            queryset = queryset.filter(profile__role=role, is_superuser=False)
    search = (filters.get('search') or '').strip()
    if search:
        queryset = queryset.filter(
            Q(first_name__icontains=search)
            | Q(last_name__icontains=search)
            | Q(username__icontains=search)
            | Q(email__icontains=search)
        )
    return _date_range(queryset, filters, field='date_joined')


def serialize_user(user):
    profile = getattr(user, 'profile', None)
    role = UserProfile.Role.ADMIN if user.is_superuser else (profile.role if profile else None)
    return {
        'id': user.id,
        'name': display_name(user),
        'email': user.email,
        'role': role,
        'created_at': _iso(user.date_joined),
    }


# ============================================================================
# Enrollments
# ============================================================================

def filter_enrollments(filters):
    queryset = Subscription.objects.select_related(
        'course', 'parent', 'preferred_tutor'
    ).order_by('-created_at', '-id')
    if filters.get('status'):
        queryset = queryset.filter(status=filters['status'])
    if filters.get('payment_status'):
        queryset = queryset.filter(payment_status=filters['payment_status'])
    return _date_range(queryset, filters)


def serialize_enrollment(subscription):
    return {
        'id': subscription.id,
        'course_name': subscription.course.title if subscription.course_id else 'Unknown Course',
        'student_name': subscription.student_name,
        'parent_name': display_name(subscription.parent),
        'parent_email': subscription.parent.email,
        'tutor_name': subscription.tutor_name,
        'status': subscription.status,
        'payment_status': subscription.payment_status,
        'payment_plan': subscription.payment_plan,
        'created_at': _iso(subscription.created_at),
    }


# ============================================================================
# Payments
# ============================================================================

def filter_payments(filters):
    queryset = Payment.objects.select_related(
        'parent', 'tutor', 'subscription__course'
    ).order_by('-created_at', '-id')
    if filters.get('status'):
        queryset = queryset.filter(status=filters['status'])
    return _date_range(queryset, filters)


def serialize_payment(payment):
    subscription = payment.subscription
    return {
        'id': payment.id,
        'amount': str(_money(payment.amount)),
        'currency': payment.currency,
        'status': payment.status,
        'payment_type': payment.payment_type,
        'course_name': subscription.course.title if subscription else 'Unknown Course',
        'student_name': subscription.student_name if subscription else None,
        'parent_name': display_name(payment.parent),
        'parent_email': payment.parent.email,
        'tutor_name': display_name(payment.tutor) if payment.tutor_id else None,
        'stripe_payment_intent_id': payment.stripe_payment_intent_id or None,
        'created_at': _iso(payment.created_at),
    }


# ============================================================================
# Tutors and course preferences
# ============================================================================

def filter_tutor_profiles(filters):
    queryset = TutorProfile.objects.select_related('user').order_by('-created_at', '-id')
    if filters.get('approval_status'):
        queryset = queryset.filter(approval_status=filters['approval_status'])
    return queryset


def tutors_with_preferences():
    """Tutors who have submitted at least one course preference."""
    return User.objects.annotate(
        preference_count=Count('course_preferences'),
        pending=Count(
            'course_preferences',
            filter=Q(course_preferences__approval_status=TutorCoursePreference.Status.PENDING)
        )
    ).filter(preference_count__gt=0).order_by('first_name', 'last_name', 'username')


def tutor_preferences(tutor_id):
    return TutorCoursePreference.objects.filter(tutor_id=tutor_id).select_related('course')


def serialize_preference(pref):
    return {
        'id': pref.id,
        'course_id': pref.course_id,
        'course_title': pref.course.title,
        'subject': pref.course.subject,
        'grade_level': pref.course.grade_level,
        'hourly_rate': str(pref.hourly_rate),
        'approval_status': pref.approval_status,
    }


# ============================================================================
# Analytics
# ============================================================================

def default_analytics_range(today=None):
    """First day of the month eleven months back, through today."""
    today = today or timezone.localdate()
    month_index = today.year * 12 + (today.month - 1) - 11
    start = date(month_index // 12, month_index % 12 + 1, 1)
    return start, today


def month_buckets(start, end):
    """First-of-month dates from start's month through end's month."""
    buckets = []
    current = date(start.year, start.month, 1)
    while current <= end:
        buckets.append(current)
        if current.month == 12:
            current = date(current.year + 1, 1, 1)
        else:
            current = date(current.year, current.month + 1, 1)
    return buckets


def _monthly(queryset, field, value_expr, start, end):
    rows = (
        queryset.filter(**{f'{field}__date__gte': start, f'{field}__date__lte': end})
        .order_by()
        .annotate(month=TruncMonth(field))
        .values('month')
        .annotate(value=value_expr)
        .values_list('month', 'value')
    )
    result = {}
    for month, value in rows:
        if isinstance(month, datetime):
            month = timezone.localtime(month).date() if timezone.is_aware(month) else month.date()
        result[date(month.year, month.month, 1)] = value or 0
    return result


def analytics(start=None, end=None):
    """
    Monthly series and range breakdowns for the analytics tab.
    Revenue counts completed payments only.
    """
    default_start, default_end = default_analytics_range()
    start = start or default_start
    end = end or default_end
    buckets = month_buckets(start, end)

    users = _monthly(User.objects.all(), 'date_joined', Count('id'), start, end)
    enrollments = _monthly(Subscription.objects.all(), 'created_at', Count('id'), start, end)
    revenue = _monthly(
        Payment.objects.filter(status=Payment.Status.COMPLETED), 'created_at', Sum('amount'), start, end
    )

    in_range_users = UserProfile.objects.filter(
        user__date_joined__date__gte=start, user__date_joined__date__lte=end
    )
    distribution = dict(in_range_users.order_by().values('role').annotate(n=Count('id')).values_list('role', 'n'))

    in_range_payments = Payment.objects.filter(created_at__date__gte=start, created_at__date__lte=end)
    payment_counts = dict(in_range_payments.order_by().values('status').annotate(n=Count('id')).values_list('status', 'n'))

    return {
        'start_date': start.isoformat(),
        'end_date': end.isoformat(),
        'labels': [bucket.strftime('%b %Y') for bucket in buckets],
        'user_growth': [users.get(bucket, 0) for bucket in buckets],
        'enrollment_patterns': [enrollments.get(bucket, 0) for bucket in buckets],
        'revenue_data': [float(_money(revenue.get(bucket))) for bucket in buckets],
        'user_distribution': {
            'parents': distribution.get(UserProfile.Role.PARENT, 0),
            'tutors': distribution.get(UserProfile.Role.TUTOR, 0),
            'admins': distribution.get(UserProfile.Role.ADMIN, 0),
        },
        'payment_status': {
            'completed': payment_counts.get(Payment.Status.COMPLETED, 0),
            'pending': payment_counts.get(Payment.Status.PENDING, 0),
            'failed': payment_counts.get(Payment.Status.FAILED, 0),
        },
    }
