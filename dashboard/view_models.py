"""
Derived data for the parent and tutor dashboards.

Plain functions over already-fetched model instances; they do not query.
"""
from collections import OrderedDict
from decimal import Decimal

from django.utils import timezone

from tutoring.models import Subscription, TutoringSession, Payment


# ============================================================================
# Parent dashboard
# ============================================================================

def parent_overview(subscriptions, sessions, now=None):
    now = now or timezone.now()
    active = [s for s in subscriptions if s.status == Subscription.Status.ACTIVE]
    return {
        'active_subscriptions': len(active),
        'upcoming_sessions': sum(
            1 for s in sessions
            if s.status == TutoringSession.Status.SCHEDULED and s.scheduled_at > now
        ),
        'completed_sessions': sum(1 for s in sessions if s.status == TutoringSession.Status.COMPLETED),
        'active_tutors': len({s.preferred_tutor_id for s in active if s.preferred_tutor_id}),
    }


def student_options(subscriptions):
    """Distinct student names in first-seen order."""
    return list(OrderedDict.fromkeys(s.student_name for s in subscriptions))


def filter_by_student(subscriptions, student):
    if not student:
        return list(subscriptions)
    return [s for s in subscriptions if s.student_name == student]


# ============================================================================
# Tutor dashboard
# ============================================================================

def student_key(subscription):
    return (
        f"{subscription.parent_id}-"
        f"{subscription.student_first_name.strip().lower()}-"
        f"{subscription.student_last_name.strip().lower()}"
    )


def unique_active_students(subscriptions):
    return len({
        student_key(s) for s in subscriptions
        if s.status == Subscription.Status.ACTIVE
    })


def _subscription_year(subscription):
    when = subscription.start_date or subscription.created_at
    return when.year


def available_years(subscriptions):
    """Years with at least one subscription, newest first."""
    return sorted({_subscription_year(s) for s in subscriptions}, reverse=True)


def filter_by_year(subscriptions, year):
    if not year:
        return list(subscriptions)
    year = int(year)
    return [s for s in subscriptions if _subscription_year(s) == year]


def pay_later_subscriptions(subscriptions):
    """
    Full-plan subscriptions still awaiting payment, one per parent and
    course, keeping the most recently created.
    """
    latest = {}
    for s in subscriptions:
        if s.payment_plan != Subscription.PaymentPlan.FULL:
            continue
        if s.payment_status != Subscription.PaymentStatus.PENDING:
            continue
        key = (s.parent_id, s.course_id)
        if key not in latest or s.created_at > latest[key].created_at:
            latest[key] = s
    return sorted(latest.values(), key=lambda s: s.created_at, reverse=True)


def total_earnings(payments):
    return sum(
        (p.amount for p in payments if p.status == Payment.Status.COMPLETED),
        Decimal('0'),
    )


def split_sessions(sessions, now=None, hidden_ids=()):
    """
    Partition a tutor's sessions into upcoming, awaiting completion and
    history (minus hidden ones).
    """
    now = now or timezone.now()
    upcoming, to_complete, history = [], [], []
    for s in sessions:
        if s.status == TutoringSession.Status.SCHEDULED:
            if s.scheduled_at > now:
                upcoming.append(s)
            else:
                to_complete.append(s)
        elif s.id not in hidden_ids:
            history.append(s)
    upcoming.sort(key=lambda s: s.scheduled_at)
    return upcoming, to_complete, history


# ============================================================================
# Session notes history
# ============================================================================

class NoteEntry:
    """One row of the notes history, from a session or a stored note."""

    def __init__(self, session, text, created_at, source, note=None):
        self.session = session
        self.session_id = session.id
        self.text = text
        self.created_at = created_at
        self.source = source
        self.note = note

    @property
    def course(self):
        return self.session.subscription.course

    def __repr__(self):
        return f"NoteEntry(session_id={self.session_id}, source={self.source!r})"


def merge_notes(sessions, notes):
    """
    One entry per session id. Feedback recorded on the session itself wins
    over a stored SessionNote for the same session.
    """
    entries = OrderedDict()
    for s in sessions:
        if s.feedback_from_tutor:
            entries[s.id] = NoteEntry(s, s.feedback_from_tutor, s.scheduled_at, 'session')
    for note in notes:
        if note.session_id in entries:
            continue
        entries[note.session_id] = NoteEntry(
            note.session, note.progress_summary, note.created_at, 'note', note=note
        )
    return sorted(entries.values(), key=lambda e: e.created_at, reverse=True)


def filter_notes(entries, course_id=None, year=None):
    result = list(entries)
    if course_id:
        result = [e for e in result if e.course.id == int(course_id)]
    if year:
        result = [e for e in result if timezone.localtime(e.created_at).year == int(year)]
    return result


def group_by_month(entries):
    """[('January 2026', [entries...]), ...] newest month first."""
    groups = OrderedDict()
    for entry in sorted(entries, key=lambda e: e.created_at, reverse=True):
        label = timezone.localtime(entry.created_at).strftime('%B %Y')
        groups.setdefault(label, []).append(entry)
    return list(groups.items())
