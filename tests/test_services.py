from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
from django.db import IntegrityError
from django.utils import timezone

from profiles.models import UserProfile, TutorProfile, get_role
from tutoring.models import CourseTutor, SessionNote, TutorCoursePreference, TutoringSession
from tutoring.services import (
    BookingStateError, BookingTokenError, PreferenceError, SessionUpdateError,
    TutorApprovalError, approve_tutor, cancel_booking_by_token, cancel_session_for_parent,
    complete_session, create_tutor_profile, get_booking_by_token, rate_session, reject_tutor,
    save_session_note, save_tutor_preferences, update_preference_status,
)
from .conftest import make_user

pytestmark = pytest.mark.django_db

APPROVED = TutorCoursePreference.Status.APPROVED
PENDING = TutorCoursePreference.Status.PENDING
REJECTED = TutorCoursePreference.Status.REJECTED


def pref_for(tutor, course):
    return TutorCoursePreference.objects.get(tutor=tutor, course=course)


def approved_pref(tutor, course, rate):
    pref = TutorCoursePreference.objects.create(
        tutor=tutor, course=course, hourly_rate=Decimal(rate), approval_status=APPROVED,
    )
    CourseTutor.objects.create(tutor=tutor, course=course)
    return pref


class TestSaveTutorPreferences:

    def test_new_preferences_start_pending(self, tutor, algebra):
        summary = save_tutor_preferences(tutor, [{'course_id': algebra.id, 'hourly_rate': '45'}])
        assert summary['created'] == 1
        pref = pref_for(tutor, algebra)
        assert pref.approval_status == PENDING
        assert pref.hourly_rate == Decimal('45')

    def test_omitted_preferences_and_links_are_deleted(self, tutor, algebra, physics):
        approved_pref(tutor, algebra, '40')
        save_tutor_preferences(tutor, [{'course_id': physics.id, 'hourly_rate': '50'}])
        assert not TutorCoursePreference.objects.filter(tutor=tutor, course=algebra).exists()
        assert not CourseTutor.objects.filter(tutor=tutor, course=algebra).exists()

    def test_empty_submission_clears_everything(self, tutor, algebra):
        approved_pref(tutor, algebra, '40')
        summary = save_tutor_preferences(tutor, [])
        assert summary['deleted'] == 1
        assert not tutor.course_preferences.exists()

    def test_rate_change_on_approved_goes_back_to_pending(self, tutor, algebra):
        approved_pref(tutor, algebra, '40')
        save_tutor_preferences(tutor, [{'course_id': algebra.id, 'hourly_rate': '60'}])
        pref = pref_for(tutor, algebra)
        assert pref.approval_status == PENDING
        assert pref.hourly_rate == Decimal('60')
        assert not CourseTutor.objects.filter(tutor=tutor, course=algebra).exists()

    def test_unchanged_approved_preference_keeps_its_link(self, tutor, algebra):
        approved_pref(tutor, algebra, '40')
        summary = save_tutor_preferences(tutor, [{'course_id': algebra.id, 'hourly_rate': '40.00'}])
        assert summary['unchanged'] == 1
        assert pref_for(tutor, algebra).approval_status == APPROVED
        assert CourseTutor.objects.filter(tutor=tutor, course=algebra).exists()

    def test_rejected_preference_is_resubmitted(self, tutor, algebra):
        TutorCoursePreference.objects.create(
            tutor=tutor, course=algebra, hourly_rate=Decimal('40'), approval_status=REJECTED,
        )
        save_tutor_preferences(tutor, [{'course_id': algebra.id, 'hourly_rate': '40'}])
        assert pref_for(tutor, algebra).approval_status == PENDING

    def test_duplicate_course_is_rejected(self, tutor, algebra):
        with pytest.raises(PreferenceError, match="Duplicate course"):
            save_tutor_preferences(tutor, [
                {'course_id': algebra.id, 'hourly_rate': '40'},
                {'course_id': algebra.id, 'hourly_rate': '50'},
            ])

    @pytest.mark.parametrize("rate", ['0', '-1', '', 'NaN'])
    def test_non_positive_rate_is_rejected(self, tutor, algebra, rate):
        with pytest.raises(PreferenceError):
            save_tutor_preferences(tutor, [{'course_id': algebra.id, 'hourly_rate': rate}])
        assert not tutor.course_preferences.exists()

    def test_unknown_course_is_rejected(self, tutor):
        with pytest.raises(PreferenceError, match="Course not found"):
            save_tutor_preferences(tutor, [{'course_id': 9999, 'hourly_rate': '40'}])

    def test_concurrent_first_save_is_a_preference_error(self, tutor, algebra, physics):
        # the row was inserted by another request between our read and our insert
        with mock.patch.object(
            TutorCoursePreference.objects, 'create', side_effect=IntegrityError("duplicate key")
        ):
            with pytest.raises(PreferenceError, match="another window"):
                save_tutor_preferences(tutor, [
                    {'course_id': algebra.id, 'hourly_rate': '40'},
                    {'course_id': physics.id, 'hourly_rate': '45'},
                ])
        assert not tutor.course_preferences.exists()


class TestUpdatePreferenceStatus:

    def test_approve_links_tutor_to_course(self, tutor, algebra):
        pref = TutorCoursePreference.objects.create(tutor=tutor, course=algebra, hourly_rate=Decimal('40'))
        update_preference_status(pref.id, APPROVED)
        link = CourseTutor.objects.get(tutor=tutor, course=algebra)
        assert link.is_primary is False
        assert pref_for(tutor, algebra).approval_status == APPROVED

    def test_reject_removes_link(self, tutor, algebra):
        pref = approved_pref(tutor, algebra, '40')
        update_preference_status(pref.id, REJECTED)
        assert not CourseTutor.objects.filter(tutor=tutor, course=algebra).exists()

    def test_invalid_status(self, tutor, algebra):
        pref = TutorCoursePreference.objects.create(tutor=tutor, course=algebra, hourly_rate=Decimal('40'))
        with pytest.raises(PreferenceError, match="Invalid status"):
            update_preference_status(pref.id, PENDING)

    def test_missing_preference(self):
        with pytest.raises(PreferenceError, match="Preference not found"):
            update_preference_status(12345, APPROVED)


class TestTutorProfiles:

    def test_create_switches_parent_to_tutor(self, parent):
        profile = create_tutor_profile(parent, bio="Chemistry", hourly_rate=Decimal('35'))
        parent.refresh_from_db()
        assert profile.approval_status == TutorProfile.ApprovalStatus.PENDING
        assert get_role(parent) == UserProfile.Role.TUTOR

    def test_create_keeps_admin_role(self, staff_admin):
        create_tutor_profile(staff_admin, bio="Admin who tutors")
        staff_admin.refresh_from_db()
        assert get_role(staff_admin) == UserProfile.Role.ADMIN

    def test_approve_and_reject(self, tutor):
        profile = tutor.tutor_profile
        approve_tutor(profile)
        assert profile.approved_at is not None
        with pytest.raises(TutorApprovalError):
            approve_tutor(profile)

        with pytest.raises(TutorApprovalError):
            reject_tutor(profile, "  ")
        reject_tutor(profile, "Missing qualifications")
        profile.refresh_from_db()
        assert profile.approval_status == TutorProfile.ApprovalStatus.REJECTED
        assert profile.approved_at is None


class TestSessions:

    def test_complete_past_session_counts_toward_subscription(self, tutor, make_session):
        session = make_session(timezone.now() - timedelta(hours=2))
        complete_session(tutor, session.id, TutoringSession.Status.COMPLETED, feedback=" Solid work ")
        session.refresh_from_db()
        assert session.feedback_from_tutor == "Solid work"
        assert session.subscription.sessions_completed == 1

    def test_future_session_cannot_be_completed(self, tutor, make_session):
        session = make_session(timezone.now() + timedelta(days=1))
        with pytest.raises(SessionUpdateError):
            complete_session(tutor, session.id, TutoringSession.Status.COMPLETED)

    def test_other_tutors_session_is_not_found(self, make_session, db):
        session = make_session(timezone.now() - timedelta(hours=2))
        stranger = make_user("sue", UserProfile.Role.TUTOR)
        with pytest.raises(SessionUpdateError, match="Session not found"):
            complete_session(stranger, session.id, TutoringSession.Status.NO_SHOW)


class TestBookingTokens:

    def test_session_gets_a_token_on_create(self, make_session):
        session = make_session(timezone.now() + timedelta(days=2))
        assert len(session.management_token) == 64
        assert get_booking_by_token(session.management_token) == session

    @pytest.mark.parametrize("token", ['short', 'G' * 64, 'AB' * 32])
    def test_malformed_token_is_400(self, token):
        with pytest.raises(BookingTokenError) as excinfo:
            get_booking_by_token(token)
        assert excinfo.value.status_code == 400

    def test_unknown_token_is_404(self):
        with pytest.raises(BookingTokenError) as excinfo:
            get_booking_by_token('ab' * 32)
        assert excinfo.value.status_code == 404
        assert str(excinfo.value) == "Booking not found or token expired"

    def test_cancel_future_booking(self, make_session):
        session = make_session(timezone.now() + timedelta(days=2))
        cancel_booking_by_token(session.management_token)
        session.refresh_from_db()
        assert session.status == TutoringSession.Status.CANCELLED

    def test_cancel_rejects_cancelled_completed_and_past(self, make_session):
        now = timezone.now()
        cancelled = make_session(now + timedelta(days=1), status=TutoringSession.Status.CANCELLED)
        completed = make_session(now + timedelta(days=2), status=TutoringSession.Status.COMPLETED)
        past = make_session(now - timedelta(days=1))

        with pytest.raises(BookingStateError, match="already cancelled"):
            cancel_booking_by_token(cancelled.management_token, now=now)
        with pytest.raises(BookingStateError, match="completed"):
            cancel_booking_by_token(completed.management_token, now=now)
        with pytest.raises(BookingStateError, match="already passed"):
            cancel_booking_by_token(past.management_token, now=now)


class TestSessionNotes:

    def test_note_is_created_then_edited_in_place(self, tutor, parent, make_session):
        session = make_session(timezone.now() - timedelta(days=1), status=TutoringSession.Status.COMPLETED)
        note, created = save_session_note(
            tutor, session.id, " Covered linear equations ", homework="Worksheet 3",
        )
        assert created
        assert note.parent == parent
        assert note.progress_summary == "Covered linear equations"

        again, created = save_session_note(tutor, session.id, "Covered equations", next_steps="Quadratics")
        assert not created
        assert again.pk == note.pk
        assert again.homework == ""
        assert again.next_steps == "Quadratics"
        assert SessionNote.objects.filter(session=session).count() == 1

    def test_progress_summary_is_required(self, tutor, make_session):
        session = make_session(timezone.now() - timedelta(days=1), status=TutoringSession.Status.COMPLETED)
        with pytest.raises(SessionUpdateError, match="Progress summary"):
            save_session_note(tutor, session.id, "   ")

    def test_only_completed_sessions_take_notes(self, tutor, make_session):
        session = make_session(timezone.now() - timedelta(days=1))
        with pytest.raises(SessionUpdateError, match="completed sessions"):
            save_session_note(tutor, session.id, "Went well")

    def test_other_tutor_cannot_write_notes(self, make_session):
        session = make_session(timezone.now() - timedelta(days=1), status=TutoringSession.Status.COMPLETED)
        stranger = make_user("sue", UserProfile.Role.TUTOR)
        with pytest.raises(SessionUpdateError, match="Session not found"):
            save_session_note(stranger, session.id, "Went well")


class TestParentSessionActions:

    def test_cancel_keeps_reason_in_notes(self, parent, make_session):
        session = make_session(timezone.now() + timedelta(days=2))
        cancel_session_for_parent(parent, session.id, " Family trip ")
        session.refresh_from_db()
        assert session.status == TutoringSession.Status.CANCELLED
        assert session.notes == "Cancelled: Family trip"

    def test_cancel_without_reason(self, parent, make_session):
        session = make_session(timezone.now() + timedelta(days=2))
        cancel_session_for_parent(parent, session.id)
        session.refresh_from_db()
        assert session.notes == "Cancelled by parent"

    def test_cancel_checks_ownership_and_state(self, parent, make_session):
        now = timezone.now()
        future = make_session(now + timedelta(days=2))
        past = make_session(now - timedelta(days=1))
        other_parent = make_user("olga", UserProfile.Role.PARENT)

        with pytest.raises(SessionUpdateError, match="Session not found"):
            cancel_session_for_parent(other_parent, future.id)
        with pytest.raises(BookingStateError, match="already passed"):
            cancel_session_for_parent(parent, past.id, now=now)

    def test_rating_stores_score_and_feedback(self, parent, make_session):
        session = make_session(timezone.now() - timedelta(days=1), status=TutoringSession.Status.COMPLETED)
        rate_session(parent, session.id, 4, " Very patient tutor ")
        session.refresh_from_db()
        assert session.rating == 4
        assert session.feedback_from_parent == "Very patient tutor"

    @pytest.mark.parametrize("rating", [0, 6, "five", None])
    def test_rating_must_be_between_one_and_five(self, parent, make_session, rating):
        session = make_session(timezone.now() - timedelta(days=1), status=TutoringSession.Status.COMPLETED)
        with pytest.raises(SessionUpdateError, match="Rating"):
            rate_session(parent, session.id, rating)

    def test_only_completed_sessions_can_be_rated(self, parent, make_session):
        session = make_session(timezone.now() + timedelta(days=1))
        with pytest.raises(SessionUpdateError, match="completed sessions"):
            rate_session(parent, session.id, 5)
