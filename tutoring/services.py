"""
Tutoring services: course preferences, tutor approval, session lifecycle
and booking management.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from profiles.models import TutorProfile, UserProfile, get_role
from profiles.validators import parse_rate
from .models import Course, CourseTutor, SessionNote, TutorCoursePreference, TutoringSession
from .utils import is_valid_booking_token

logger = logging.getLogger(__name__)


class PreferenceError(Exception):
    """Raised when a preference submission or status change is rejected."""
    pass


class TutorApprovalError(Exception):
    """Raised when a tutor profile cannot be approved or rejected."""
    pass


class SessionUpdateError(Exception):
    """Raised when a tutor or parent cannot update a session or its notes."""
    pass


class BookingTokenError(Exception):
    """
    Raised when a booking token is malformed or does not match a booking.
    `status_code` mirrors the HTTP status the view should answer with.
    """

    def __init__(self, message, status_code=404):
        super().__init__(message)
        self.status_code = status_code


class BookingStateError(Exception):
    """Raised when a booking cannot be cancelled in its current state."""
    pass


# ============================================================================
# Course Preferences
# ============================================================================

@transaction.atomic
def save_tutor_preferences(tutor, preferences):
    """
    Replace a tutor's course preferences with the submitted list.

    Courses missing from `preferences` are removed together with their
    course-tutor links. New preferences start PENDING. An existing one goes
    back to PENDING when its rate changes or it was REJECTED; leaving
    APPROVED drops the course-tutor link until an admin approves again.

    Args:
        tutor: User saving the preferences
        preferences: iterable of dicts with 'course_id' and 'hourly_rate'

    Returns:
        dict: Summary with 'created', 'updated', 'unchanged', 'deleted' counts

    Raises:
        PreferenceError: On duplicate courses, non-positive rates or unknown courses
    """
    cleaned = {}
    for item in preferences:
        course_id = int(item['course_id'])
        if course_id in cleaned:
            raise PreferenceError("Duplicate course in preferences")
        rate = parse_rate(item.get('hourly_rate'))
        if rate is None:
            raise PreferenceError("Hourly rate must be greater than 0")
        cleaned[course_id] = rate

    known_ids = set(Course.objects.filter(id__in=cleaned.keys()).values_list('id', flat=True))
    missing = set(cleaned) - known_ids
    if missing:
        raise PreferenceError(f"Course not found: {sorted(missing)[0]}")

    existing = {
        pref.course_id: pref
        for pref in TutorCoursePreference.objects.select_for_update().filter(tutor=tutor)
    }

    summary = {'created': 0, 'updated': 0, 'unchanged': 0, 'deleted': 0}

    # Delete-by-omission
    removed_ids = [course_id for course_id in existing if course_id not in cleaned]
    if removed_ids:
        TutorCoursePreference.objects.filter(tutor=tutor, course_id__in=removed_ids).delete()
        CourseTutor.objects.filter(tutor=tutor, course_id__in=removed_ids).delete()
        summary['deleted'] = len(removed_ids)

    for course_id, rate in cleaned.items():
        pref = existing.get(course_id)
        if pref is None:
            try:
                with transaction.atomic():
                    TutorCoursePreference.objects.create(
                        tutor=tutor,
                        course_id=course_id,
                        hourly_rate=rate,
                        approval_status=TutorCoursePreference.Status.PENDING,
                    )
            except IntegrityError:
                # another request created this preference after our read
                logger.warning("Concurrent preference save for tutor %s, course %s", tutor.pk, course_id)
                raise PreferenceError("Preferences were changed in another window, please try again")
            summary['created'] += 1
            continue

        rate_changed = pref.hourly_rate != rate
        needs_review = rate_changed or pref.approval_status == TutorCoursePreference.Status.REJECTED
        if not needs_review:
            summary['unchanged'] += 1
            continue

        if pref.approval_status == TutorCoursePreference.Status.APPROVED:
            CourseTutor.objects.filter(tutor=tutor, course_id=course_id).delete()
        pref.hourly_rate = rate
        pref.approval_status = TutorCoursePreference.Status.PENDING
        pref.save(update_fields=['hourly_rate', 'approval_status', 'updated_at'])
        summary['updated'] += 1

    logger.info("Saved course preferences for tutor %s: %s", tutor.pk, summary)
    return summary


@transaction.atomic
def update_preference_status(preference_id, status):
    """
    Approve or reject a tutor's course preference.
    Approval links the tutor to the course; rejection removes the link.

    Raises:
        PreferenceError: If the status is not APPROVED/REJECTED or the preference is missing
    """
    if status not in (TutorCoursePreference.Status.APPROVED, TutorCoursePreference.Status.REJECTED):
        raise PreferenceError("Invalid status")

    try:
        pref = TutorCoursePreference.objects.select_for_update().get(id=preference_id)
    except TutorCoursePreference.DoesNotExist:
        raise PreferenceError("Preference not found")

    pref.approval_status = status
    pref.save(update_fields=['approval_status', 'updated_at'])

    if status == TutorCoursePreference.Status.APPROVED:
        CourseTutor.objects.get_or_create(
            course_id=pref.course_id,
            tutor_id=pref.tutor_id,
            defaults={'is_primary': False},
        )
    else:
        CourseTutor.objects.filter(course_id=pref.course_id, tutor_id=pref.tutor_id).delete()

    logger.info("Preference %s for tutor %s set to %s", pref.id, pref.tutor_id, status)
    return pref


# ============================================================================
# Tutor Profiles
# ============================================================================

@transaction.atomic
def create_tutor_profile(user, **fields):
    """
    Create a pending tutor profile and switch the account to the tutor role.
    Admin accounts keep their role. Returns an existing profile unchanged.
    """
    profile, created = TutorProfile.objects.get_or_create(user=user, defaults=fields)
    if created:
        if get_role(user) != UserProfile.Role.ADMIN:
            UserProfile.objects.update_or_create(
                user=user,
                defaults={'role': UserProfile.Role.TUTOR},
            )
        logger.info("Created tutor profile for user %s", user.pk)
    return profile


@transaction.atomic
def approve_tutor(profile):
    """Approve a tutor profile so it is listed publicly."""
    if profile.approval_status == TutorProfile.ApprovalStatus.APPROVED:
        raise TutorApprovalError("Tutor is already approved")
    profile.approval_status = TutorProfile.ApprovalStatus.APPROVED
    profile.rejection_reason = ''
    profile.approved_at = timezone.now()
    profile.save(update_fields=['approval_status', 'rejection_reason', 'approved_at', 'updated_at'])
    logger.info("Approved tutor profile %s", profile.pk)
    return profile


@transaction.atomic
def reject_tutor(profile, reason):
    """Reject a tutor profile with a reason shown to the tutor."""
    reason = (reason or '').strip()
    if not reason:
        raise TutorApprovalError("A rejection reason is required")
    profile.approval_status = TutorProfile.ApprovalStatus.REJECTED
    profile.rejection_reason = reason
    profile.approved_at = None
    profile.save(update_fields=['approval_status', 'rejection_reason', 'approved_at', 'updated_at'])
    logger.info("Rejected tutor profile %s", profile.pk)
    return profile


# ============================================================================
# Sessions
# ============================================================================

COMPLETION_STATUSES = (TutoringSession.Status.COMPLETED, TutoringSession.Status.NO_SHOW)


@transaction.atomic
def complete_session(tutor, session_id, status, feedback='', now=None):
    """
    Mark a past scheduled session as completed or no-show.

    Raises:
        SessionUpdateError: If the session is not the tutor's or cannot be completed yet
    """
    if status not in COMPLETION_STATUSES:
        raise SessionUpdateError("Invalid session status")

    try:
        session = TutoringSession.objects.select_for_update().get(id=session_id, tutor=tutor)
    except TutoringSession.DoesNotExist:
        raise SessionUpdateError("Session not found")

    if not session.can_complete(now):
        raise SessionUpdateError("Only past scheduled sessions can be completed")

    session.status = status
    session.feedback_from_tutor = (feedback or '').strip()
    session.save(update_fields=['status', 'feedback_from_tutor', 'updated_at'])

    if status == TutoringSession.Status.COMPLETED:
        subscription = session.subscription
        subscription.sessions_completed += 1
        subscription.save(update_fields=['sessions_completed', 'updated_at'])

    logger.info("Session %s marked %s by tutor %s", session.id, status, tutor.pk)
    return session


@transaction.atomic
def save_session_note(tutor, session_id, progress_summary, homework='', challenges='', next_steps=''):
    """
    Write or rewrite the structured note for one of the tutor's completed sessions.

    Saving again edits the session's latest note in place.

    Returns:
        tuple: (SessionNote, created)

    Raises:
        SessionUpdateError: If the session is not the tutor's, is not completed,
            or the progress summary is blank
    """
    progress_summary = (progress_summary or '').strip()
    if not progress_summary:
        raise SessionUpdateError("Progress summary is required")

    try:
        session = TutoringSession.objects.select_for_update().get(id=session_id, tutor=tutor)
    except TutoringSession.DoesNotExist:
        raise SessionUpdateError("Session not found")

    if session.status != TutoringSession.Status.COMPLETED:
        raise SessionUpdateError("Notes can only be written for completed sessions")

    fields = {
        'tutor': tutor,
        'parent': session.parent,
        'progress_summary': progress_summary,
        'homework': (homework or '').strip(),
        'challenges': (challenges or '').strip(),
        'next_steps': (next_steps or '').strip(),
    }
    note = session.session_notes.first()
    created = note is None
    if created:
        note = SessionNote.objects.create(session=session, **fields)
    else:
        for name, value in fields.items():
            setattr(note, name, value)
        note.save()
    logger.info("%s note for session %s by tutor %s", "Created" if created else "Updated", session.id, tutor.pk)
    return note, created


def _ensure_cancellable(session, now):
    if session.status == TutoringSession.Status.CANCELLED:
        raise BookingStateError("This session is already cancelled")
    if session.status == TutoringSession.Status.COMPLETED:
        raise BookingStateError("Cannot cancel a completed session")
    if not session.can_cancel(now):
        raise BookingStateError("Cannot cancel a session that has already passed")


@transaction.atomic
def cancel_session_for_parent(parent, session_id, reason='', now=None):
    """
    Cancel one of the parent's upcoming sessions.
    The reason is kept in the session notes.

    Raises:
        SessionUpdateError: If the session does not belong to the parent
        BookingStateError: If the session is cancelled, completed or in the past
    """
    try:
        session = TutoringSession.objects.select_for_update().get(id=session_id, parent=parent)
    except TutoringSession.DoesNotExist:
        raise SessionUpdateError("Session not found")

    _ensure_cancellable(session, now or timezone.now())

    reason = (reason or '').strip()
    session.status = TutoringSession.Status.CANCELLED
    session.notes = f"Cancelled: {reason}" if reason else "Cancelled by parent"
    session.save(update_fields=['status', 'notes', 'updated_at'])
    logger.info("Session %s cancelled by parent %s", session.id, parent.pk)
    return session


MIN_RATING = 1
MAX_RATING = 5


@transaction.atomic
def rate_session(parent, session_id, rating, feedback=''):
    """
    Store the parent's rating (1-5) and feedback for a completed session.
    Rating again replaces the earlier values.

    Raises:
        SessionUpdateError: If the session is not the parent's, not completed,
            or the rating is out of range
    """
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise SessionUpdateError("Rating must be a whole number")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise SessionUpdateError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

    try:
        session = TutoringSession.objects.select_for_update().get(id=session_id, parent=parent)
    except TutoringSession.DoesNotExist:
        raise SessionUpdateError("Session not found")

    if session.status != TutoringSession.Status.COMPLETED:
        raise SessionUpdateError("Only completed sessions can be rated")

    session.rating = rating
    session.feedback_from_parent = (feedback or '').strip()
    session.save(update_fields=['rating', 'feedback_from_parent', 'updated_at'])
    logger.info("Session %s rated %s by parent %s", session.id, rating, parent.pk)
    return session


# ============================================================================
# Booking Management (token based)
# ============================================================================

def get_booking_by_token(token):
    """
    Resolve a booking from its management token.

    Raises:
        BookingTokenError: 400 for malformed tokens, 404 when no booking matches
    """
    if not is_valid_booking_token(token):
        raise BookingTokenError("Invalid booking token", status_code=400)
    try:
        return TutoringSession.objects.select_related(
            'subscription__course', 'tutor', 'parent'
        ).get(management_token=token)
    except TutoringSession.DoesNotExist:
        raise BookingTokenError("Booking not found or token expired", status_code=404)


@transaction.atomic
def cancel_booking_by_token(token, now=None):
    """
    Cancel a future scheduled booking identified by its token.

    Raises:
        BookingTokenError: If the token is malformed or unknown
        BookingStateError: If the booking is cancelled, completed or in the past
    """
    session = get_booking_by_token(token)
    _ensure_cancellable(session, now or timezone.now())

    session.status = TutoringSession.Status.CANCELLED
    session.save(update_fields=['status', 'updated_at'])
    logger.info("Booking %s cancelled via management token", session.id)
    return session
