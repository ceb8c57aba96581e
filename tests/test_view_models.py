import datetime
from decimal import Decimal
from types import SimpleNamespace

from dashboard import view_models
from tutoring.models import Subscription, TutoringSession, Payment
from .conftest import aware

NOW = aware(2026, 5, 15, 12)


def sub(**fields):
    defaults = dict(
        id=1, parent_id=1, course_id=1, preferred_tutor_id=9,
        student_first_name='Sam', student_last_name='Lee',
        status=Subscription.Status.ACTIVE,
        payment_plan=Subscription.PaymentPlan.FULL,
        payment_status=Subscription.PaymentStatus.PAID,
        start_date=None, created_at=aware(2026, 1, 1),
    )
    defaults.update(fields)
    obj = SimpleNamespace(**defaults)
    obj.student_name = f"{obj.student_first_name} {obj.student_last_name}".strip() or "Student"
    return obj


def session(id, scheduled_at, status=TutoringSession.Status.SCHEDULED, feedback='', course=None):
    subscription = SimpleNamespace(course=course or SimpleNamespace(id=1, title='Algebra I'))
    return SimpleNamespace(
        id=id, scheduled_at=scheduled_at, status=status,
        feedback_from_tutor=feedback, subscription=subscription,
    )


def test_unique_active_students_normalises_names():
    subs = [
        sub(id=1, student_first_name='Sam ', student_last_name='Lee'),
        sub(id=2, student_first_name='sam', student_last_name='LEE', course_id=2),
        sub(id=3, student_first_name='Ana', status=Subscription.Status.CANCELLED),
        sub(id=4, parent_id=2),
    ]
    assert view_models.unique_active_students(subs) == 2


def test_years_prefer_start_date():
    subs = [
        sub(id=1, start_date=datetime.date(2025, 9, 1), created_at=aware(2026, 1, 1)),
        sub(id=2, created_at=aware(2026, 2, 1)),
    ]
    assert view_models.available_years(subs) == [2026, 2025]
    assert [s.id for s in view_models.filter_by_year(subs, '2025')] == [1]
    assert len(view_models.filter_by_year(subs, '')) == 2


def test_pay_later_keeps_latest_per_parent_and_course():
    pending = Subscription.PaymentStatus.PENDING
    subs = [
        sub(id=1, payment_status=pending, created_at=aware(2026, 1, 1)),
        sub(id=2, payment_status=pending, created_at=aware(2026, 3, 1)),
        sub(id=3, payment_status=pending, payment_plan=Subscription.PaymentPlan.INSTALLMENT),
        sub(id=4),
    ]
    assert [s.id for s in view_models.pay_later_subscriptions(subs)] == [2]


def test_total_earnings_counts_completed_only():
    payments = [
        SimpleNamespace(amount=Decimal('40'), status=Payment.Status.COMPLETED),
        SimpleNamespace(amount=Decimal('15.50'), status=Payment.Status.COMPLETED),
        SimpleNamespace(amount=Decimal('99'), status=Payment.Status.PENDING),
    ]
    assert view_models.total_earnings(payments) == Decimal('55.50')


def test_split_sessions_hides_history_entries():
    sessions = [
        session(1, NOW + datetime.timedelta(days=2)),
        session(2, NOW + datetime.timedelta(days=1)),
        session(3, NOW - datetime.timedelta(hours=1)),
        session(4, NOW - datetime.timedelta(days=3), status=TutoringSession.Status.COMPLETED),
        session(5, NOW - datetime.timedelta(days=4), status=TutoringSession.Status.CANCELLED),
    ]
    upcoming, to_complete, history = view_models.split_sessions(sessions, now=NOW, hidden_ids={5})
    assert [s.id for s in upcoming] == [2, 1]
    assert [s.id for s in to_complete] == [3]
    assert [s.id for s in history] == [4]


def test_parent_overview_counts():
    subs = [sub(id=1), sub(id=2, preferred_tutor_id=10), sub(id=3, status=Subscription.Status.PAUSED)]
    sessions = [
        session(1, NOW + datetime.timedelta(days=1)),
        session(2, NOW - datetime.timedelta(days=1), status=TutoringSession.Status.COMPLETED),
    ]
    overview = view_models.parent_overview(subs, sessions, now=NOW)
    assert overview == {
        'active_subscriptions': 2,
        'upcoming_sessions': 1,
        'completed_sessions': 1,
        'active_tutors': 2,
    }


def test_student_filter():
    subs = [sub(id=1), sub(id=2, student_first_name='Ana'), sub(id=3)]
    assert view_models.student_options(subs) == ['Sam Lee', 'Ana Lee']
    assert [s.id for s in view_models.filter_by_student(subs, 'Ana Lee')] == [2]


def test_session_feedback_wins_over_stored_note():
    s1 = session(1, aware(2026, 4, 2), status=TutoringSession.Status.COMPLETED, feedback='From session')
    s2 = session(2, aware(2026, 3, 5), status=TutoringSession.Status.COMPLETED)
    notes = [
        SimpleNamespace(session_id=1, session=s1, progress_summary='Stored', created_at=aware(2026, 4, 3)),
        SimpleNamespace(session_id=2, session=s2, progress_summary='Only note', created_at=aware(2026, 3, 6)),
    ]
    entries = view_models.merge_notes([s1, s2], notes)
    assert [(e.session_id, e.text) for e in entries] == [(1, 'From session'), (2, 'Only note')]

    grouped = view_models.group_by_month(entries)
    assert [label for label, _ in grouped] == ['April 2026', 'March 2026']


def test_filter_notes_by_course_and_year():
    physics = SimpleNamespace(id=2, title='Physics')
    entries = view_models.merge_notes([
        session(1, aware(2026, 4, 2), feedback='a'),
        session(2, aware(2025, 4, 2), feedback='b', course=physics),
    ], [])
    assert [e.session_id for e in view_models.filter_notes(entries, course_id='2')] == [2]
    assert [e.session_id for e in view_models.filter_notes(entries, year=2026)] == [1]
