"""
Dashboard views for admins, parents and tutors.
Provides the role router, the admin dashboard with CSV exports and JSON
APIs, and the parent and tutor dashboards.
"""
import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.http import Http404, JsonResponse
from django.shortcuts import render, redirect, get_object_or_404
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from authentication.guards import (
    ADMIN, PARENT, TUTOR,
    role_required, admin_required, tutor_required, parent_required,
)
from profiles.models import TutorProfile, get_role
from tutoring.models import (
    Course, Subscription, TutoringSession, SessionNote, Payment, TutorCoursePreference
)
from tutoring.services import (
    save_tutor_preferences, update_preference_status, approve_tutor, reject_tutor,
    create_tutor_profile, complete_session, save_session_note, cancel_session_for_parent, rate_session,
    PreferenceError, TutorApprovalError, SessionUpdateError, BookingStateError,
)
from tutoring.utils import build_management_url
from . import queries
from . import view_models
from .exports import EXPORTS, export_rows, csv_response
from .forms import (
    UserFilterForm, EnrollmentFilterForm, PaymentFilterForm, TutorFilterForm,
    AnalyticsRangeForm, PreferenceStatusForm, TutorRejectForm, CompleteSessionForm,
    SessionNoteForm, CancelSessionForm, SessionRatingForm,
)
from .listing import ListState
from .notifications import DatabaseStore, NoteAlertTracker, HiddenHistory, NEW_NOTES_MESSAGE
from .preferences import PreferenceEditor, PreferenceValidationError

logger = logging.getLogger(__name__)


ADMIN_TABS = [
    ('analytics', 'Analytics'),
    ('users', 'Users'),
    ('enrollments', 'Enrollments'),
    ('payments', 'Payments'),
    ('course-approval', 'Course Approval'),
    ('registered-tutors', 'Registered Tutors'),
]

# kind -> (filter form, queryset builder, serializer, empty-state text)
ADMIN_LISTS = {
    'users': (UserFilterForm, queries.filter_users, queries.serialize_user, 'No users found'),
    'enrollments': (EnrollmentFilterForm, queries.filter_enrollments, queries.serialize_enrollment, 'No enrollments found'),
    'payments': (PaymentFilterForm, queries.filter_payments, queries.serialize_payment, 'No payments found'),
}

MAX_API_LIMIT = 100


def get_state_store(user):
    """Key/value store for one user's dashboard state."""
    return DatabaseStore(user.id)


def _admin_tab_url(tab, **params):
    url = f"{reverse('dashboard:admin')}?tab={tab}"
    for key, value in params.items():
        if value:
            url += f"&{key}={value}"
    return url


# ============================================================================
# Smart Router - Dashboard Dispatcher
# ============================================================================

@login_required
def dashboard_router(request):
    """
    Send each user to the dashboard for their role.
    - Admins -> Admin dashboard
    - Tutors -> Tutor dashboard
    - Parents -> Parent dashboard
    """
    role = get_role(request.user)
    if role == ADMIN:
        return redirect('dashboard:admin')
    if role == TUTOR:
        return redirect('dashboard:tutor')
    if role == PARENT:
        return redirect('dashboard:parent')

    return render(request, 'dashboard/no_access.html', {
        'message': 'Your account has no role assigned. Please contact support.',
    })


# ============================================================================
# Admin Dashboard
# ============================================================================

def _list_context(request, kind):
    form_class, build_queryset, serialize, empty_message = ADMIN_LISTS[kind]
    state = ListState.from_request(request, form_class, prefix=kind)
    logger.debug("Admin list %s fetched for %r", kind, state.query_key)
    page = state.paginate(build_queryset(state.filters))
    return {
        'state': state,
        'filter_form': state.form,
        'page_obj': page,
        'rows': [serialize(obj) for obj in page.object_list],
        'total': page.paginator.count,
        'empty_message': empty_message,
        'export_query': state.urlencode(page=1),
        'action_param': state.param('action'),
        'reset_query': urlencode({'tab': kind, state.param('action'): ListState.ACTION_RESET}),
    }


def _analytics_context(request):
    form = AnalyticsRangeForm(request.GET or None, prefix='analytics')
    start = end = None
    if form.is_bound and form.is_valid():
        start = form.cleaned_data.get('start_date')
        end = form.cleaned_data.get('end_date')
    data = queries.analytics(start, end)
    return {
        'range_form': form,
        'analytics': data,
        'analytics_rows': list(zip(
            data['labels'], data['user_growth'], data['enrollment_patterns'], data['revenue_data']
        )),
    }


def _course_approval_context(request):
    tutors = list(queries.tutors_with_preferences())
    selected = None
    preferences = []
    tutor_id = request.GET.get('tutor')
    if tutor_id and tutor_id.isdigit():
        selected = next((t for t in tutors if t.id == int(tutor_id)), None)
        if selected is not None:
            preferences = list(queries.tutor_preferences(selected.id))
    return {
        'tutors': tutors,
        'selected_tutor': selected,
        'preferences': preferences,
    }


def _registered_tutors_context(request):
    state = ListState.from_request(request, TutorFilterForm, prefix='tutors')
    page = state.paginate(queries.filter_tutor_profiles(state.filters))
    return {
        'state': state,
        'filter_form': state.form,
        'page_obj': page,
        'total': page.paginator.count,
        'reject_form': TutorRejectForm(),
        'empty_message': 'No tutors found',
    }


@admin_required
def admin_dashboard(request):
    """
    Admin dashboard with overview stats and one tab per list.
    Each tab keeps its own filters and page in the query string.
    """
    tab = request.GET.get('tab', 'analytics')
    if tab not in dict(ADMIN_TABS):
        tab = 'analytics'

    context = {
        'tab': tab,
        'tabs': ADMIN_TABS,
        'stats': queries.overview_stats(),
    }

    if tab in ADMIN_LISTS:
        context.update(_list_context(request, tab))
    elif tab == 'analytics':
        context.update(_analytics_context(request))
    elif tab == 'course-approval':
        context.update(_course_approval_context(request))
    else:
        context.update(_registered_tutors_context(request))

    return render(request, 'dashboard/admin.html', context)


@admin_required
def admin_export(request, kind):
    """
    Download the current list (all pages) as CSV.
    Filters come from the same prefixed query parameters as the tab.
    """
    if kind not in EXPORTS:
        raise Http404(f"Unknown export {kind}")

    state = ListState.from_request(request, ADMIN_LISTS[kind][0], prefix=kind)
    try:
        rows = export_rows(kind, state.filters)
    except DatabaseError:
        logger.exception("CSV export of %s failed", kind)
        messages.error(request, f"Failed to export {kind}")
        return redirect(_admin_tab_url(kind))

    response = csv_response(kind, rows)
    if response is None:
        return redirect(_admin_tab_url(kind))
    return response


@admin_required
@require_POST
def admin_update_preference_status(request, preference_id):
    """Approve or reject a tutor's course preference."""
    tutor_id = request.POST.get('tutor', '')
    form = PreferenceStatusForm(request.POST)
    if not form.is_valid():
        messages.error(request, 'Failed to update preference')
        return redirect(_admin_tab_url('course-approval', tutor=tutor_id))

    try:
        pref = update_preference_status(preference_id, form.cleaned_data['status'])
    except PreferenceError as e:
        logger.warning("Preference %s status update rejected: %s", preference_id, e)
        messages.error(request, f'Failed to update preference: {e}')
    else:
        tutor_id = pref.tutor_id
        messages.success(request, 'Preference updated')

    return redirect(_admin_tab_url('course-approval', tutor=tutor_id))


@admin_required
@require_POST
def admin_approve_tutor(request, profile_id):
    profile = get_object_or_404(TutorProfile, id=profile_id)
    try:
        approve_tutor(profile)
    except TutorApprovalError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f'{profile.user.get_full_name() or profile.user.username} approved')
    return redirect(_admin_tab_url('registered-tutors'))


@admin_required
@require_POST
def admin_reject_tutor(request, profile_id):
    profile = get_object_or_404(TutorProfile, id=profile_id)
    form = TutorRejectForm(request.POST)
    try:
        if not form.is_valid():
            raise TutorApprovalError('A rejection reason is required')
        reject_tutor(profile, form.cleaned_data['reason'])
    except TutorApprovalError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f'{profile.user.get_full_name() or profile.user.username} rejected')
    return redirect(_admin_tab_url('registered-tutors'))


# ============================================================================
# Admin JSON APIs
# ============================================================================

def _api_list_state(request, form_class):
    """
    ListState for a JSON list. `limit` sets the page size; an explicit
    `offset` wins over the offset derived from `page`.
    """
    try:
        limit = int(request.GET.get('limit', settings.DASHBOARD_ITEMS_PER_PAGE))
        offset = request.GET.get('offset')
        offset = None if offset is None else int(offset)
    except ValueError:
        return None, None
    state = ListState.from_request(
        request, form_class, prefix='', per_page=max(1, min(limit, MAX_API_LIMIT))
    )
    return state, (state.offset if offset is None else max(0, offset))


@role_required(ADMIN, api=True)
def admin_stats_api(request):
    stats = queries.overview_stats()
    stats['total_revenue'] = str(stats['total_revenue'])
    return JsonResponse(stats)


@role_required(ADMIN, api=True)
def admin_list_api(request, kind):
    """
    JSON list with limit/offset pagination.
    Returns {"<kind>": [...], "total": n, "limit": l, "offset": o}
    """
    if kind not in ADMIN_LISTS:
        return JsonResponse({'error': f'Unknown list {kind}'}, status=404)

    form_class, build_queryset, serialize, _ = ADMIN_LISTS[kind]
    state, offset = _api_list_state(request, form_class)
    if state is None:
        return JsonResponse({'error': 'limit and offset must be integers'}, status=400)

    queryset = build_queryset(state.filters)
    return JsonResponse({
        kind: [serialize(obj) for obj in queryset[offset:offset + state.limit]],
        'total': queryset.count(),
        'limit': state.limit,
        'offset': offset,
    })


@role_required(ADMIN, api=True)
def admin_analytics_api(request):
    form = AnalyticsRangeForm(request.GET or None)
    if form.is_bound and not form.is_valid():
        return JsonResponse({'error': 'Invalid date range', 'details': form.errors}, status=400)
    data = form.cleaned_data if form.is_bound else {}
    return JsonResponse(queries.analytics(data.get('start_date'), data.get('end_date')))


@role_required(ADMIN, api=True)
def admin_tutor_preferences_api(request, tutor_id):
    preferences = queries.tutor_preferences(tutor_id)
    return JsonResponse({
        'tutor_id': tutor_id,
        'preferences': [queries.serialize_preference(p) for p in preferences],
    })


# ============================================================================
# Parent Dashboard
# ============================================================================

@parent_required
def parent_dashboard(request):
    """
    Parent dashboard: subscriptions, sessions, notes and payments.
    New tutor feedback raises a one-time info message per feedback text.
    """
    user = request.user
    now = timezone.now()

    subscriptions = list(
        Subscription.objects.filter(parent=user).select_related('course', 'preferred_tutor')
    )
    sessions = list(
        TutoringSession.objects.filter(parent=user).select_related('subscription__course', 'tutor')
    )

    active = [s for s in subscriptions if s.status == Subscription.Status.ACTIVE]
    students = view_models.student_options(active)
    student = request.GET.get('student', '')
    if student not in students:
        student = ''

    upcoming = sorted(
        (s for s in sessions if s.status == TutoringSession.Status.SCHEDULED and s.scheduled_at > now),
        key=lambda s: s.scheduled_at,
    )
    history = [s for s in sessions if s.status != TutoringSession.Status.SCHEDULED]
    for session in upcoming:
        session.manage_url = (
            build_management_url(session.management_token) if session.management_token else ''
        )

    tracker = NoteAlertTracker(get_state_store(user))
    note_states = tracker.acknowledge((s.id, s.feedback_from_tutor) for s in history)
    if NoteAlertTracker.SHOWN_ONCE in note_states.values():
        messages.info(request, NEW_NOTES_MESSAGE)

    context = {
        'overview': view_models.parent_overview(subscriptions, sessions, now),
        'subscriptions': view_models.filter_by_student(active, student),
        'all_subscriptions': subscriptions,
        'students': students,
        'selected_student': student,
        'upcoming_sessions': upcoming,
        'history': [(s, note_states.get(s.id)) for s in history],
        'latest_notes': SessionNote.objects.filter(parent=user).select_related(
            'session__subscription__course', 'tutor'
        )[:5],
        'payments': Payment.objects.filter(parent=user).select_related('subscription__course')[:20],
        'cancel_form': CancelSessionForm(),
        'rating_form': SessionRatingForm(),
    }
    return render(request, 'dashboard/parent.html', context)


def _parent_history_url():
    return f"{reverse('dashboard:parent')}#history"


@parent_required
@require_POST
def parent_cancel_session(request, session_id):
    form = CancelSessionForm(request.POST)
    reason = form.cleaned_data['reason'] if form.is_valid() else ''
    try:
        cancel_session_for_parent(request.user, session_id, reason)
    except (SessionUpdateError, BookingStateError) as e:
        messages.error(request, f'Failed to cancel session: {e}')
    else:
        messages.success(request, 'Session cancelled')
    return redirect('dashboard:parent')


@parent_required
@require_POST
def parent_rate_session(request, session_id):
    form = SessionRatingForm(request.POST)
    if not form.is_valid():
        messages.error(request, 'Please choose a rating from 1 to 5')
        return redirect(_parent_history_url())

    try:
        rate_session(
            request.user,
            session_id,
            form.cleaned_data['rating'],
            form.cleaned_data['feedback'],
        )
    except SessionUpdateError as e:
        messages.error(request, f'Failed to rate session: {e}')
    else:
        messages.success(request, 'Thanks for your feedback')
    return redirect(_parent_history_url())


# ============================================================================
# Tutor Dashboard
# ============================================================================

TUTOR_TABS = [
    ('overview', 'Overview'),
    ('sessions', 'Sessions'),
    ('history', 'History'),
    ('preferences', 'Course Preferences'),
]


def _preference_editor(user):
    return PreferenceEditor(
        Course.objects.filter(is_active=True),
        TutorCoursePreference.objects.filter(tutor=user),
    )


def _tutor_context(request, profile, editor=None, tab=None):
    user = request.user
    now = timezone.now()

    subscriptions = list(
        Subscription.objects.filter(preferred_tutor=user).select_related('course', 'parent')
    )
    sessions = list(
        TutoringSession.objects.filter(tutor=user).select_related('subscription__course', 'parent')
    )
    payments = list(Payment.objects.filter(tutor=user))
    hidden = HiddenHistory(get_state_store(user))

    years = view_models.available_years(subscriptions)
    year = request.GET.get('year', '')
    if not (year.isdigit() and int(year) in years):
        year = ''

    upcoming, to_complete, history = view_models.split_sessions(sessions, now, hidden.ids)
    hidden_sessions = [s for s in sessions if s.id in hidden.ids and s.status != TutoringSession.Status.SCHEDULED]

    editor = editor or _preference_editor(user)
    pref_search = request.GET.get('pref_search', '')
    pref_subject = request.GET.get('pref_subject', '')
    pref_selected = request.GET.get('pref_selected') == '1'

    tab = tab or request.GET.get('tab', 'overview')
    if tab not in dict(TUTOR_TABS):
        tab = 'overview'

    preference_rows = editor.rows(pref_search, pref_subject, pref_selected)
    visible_ids = {course.id for course, _ in preference_rows}

    active_courses = {s.course_id for s in subscriptions if s.status == Subscription.Status.ACTIVE}
    return {
        'profile': profile,
        'tab': tab,
        'tabs': TUTOR_TABS,
        'stats': {
            'active_courses': len(active_courses),
            'active_students': view_models.unique_active_students(subscriptions),
            'upcoming_sessions': len(upcoming),
            'total_earnings': view_models.total_earnings(payments),
        },
        'subscriptions': view_models.filter_by_year(subscriptions, year),
        'pay_later': view_models.pay_later_subscriptions(subscriptions),
        'years': years,
        'selected_year': year,
        'upcoming_sessions': upcoming,
        'sessions_to_complete': to_complete,
        'history': history,
        'hidden_sessions': hidden_sessions,
        'show_hidden': request.GET.get('show_hidden') == '1',
        'complete_form': CompleteSessionForm(),
        'editor': editor,
        'preference_rows': preference_rows,
        # Selected courses filtered out of view still have to be submitted
        'hidden_drafts': [d for d in editor.selected_drafts() if d.course_id not in visible_ids],
        'preference_subjects': editor.subjects(),
        'pref_search': pref_search,
        'pref_subject': pref_subject,
        'pref_selected': pref_selected,
    }


def _tutor_tab_url(tab):
    return f"{reverse('dashboard:tutor')}?tab={tab}"


@tutor_required
def tutor_dashboard(request):
    """
    Tutor dashboard. Accounts without a tutor profile get the
    "complete your profile" page instead.
    """
    profile = TutorProfile.objects.filter(user=request.user).first()
    if profile is None:
        return render(request, 'dashboard/tutor_setup.html')
    return render(request, 'dashboard/tutor.html', _tutor_context(request, profile))


@tutor_required
@require_POST
def tutor_create_profile(request):
    create_tutor_profile(request.user)
    messages.success(request, 'Tutor profile created. An admin will review it shortly.')
    return redirect('dashboard:tutor')


@tutor_required
@require_POST
def tutor_save_preferences(request):
    """
    Save course preferences. Rate validation happens before anything is
    sent to the service; on failure the submitted drafts are re-rendered.
    """
    profile = TutorProfile.objects.filter(user=request.user).first()
    if profile is None:
        return redirect('dashboard:tutor')

    editor = _preference_editor(request.user)
    editor.apply_post(request.POST)

    try:
        payload = editor.submission()
    except PreferenceValidationError as e:
        messages.error(request, str(e))
        context = _tutor_context(request, profile, editor=editor, tab='preferences')
        return render(request, 'dashboard/tutor.html', context, status=400)

    try:
        save_tutor_preferences(request.user, payload)
    except PreferenceError as e:
        logger.warning("Preference save rejected for tutor %s: %s", request.user.pk, e)
        messages.error(request, f'Failed to save preferences: {e}')
        context = _tutor_context(request, profile, editor=editor, tab='preferences')
        return render(request, 'dashboard/tutor.html', context, status=400)

    messages.success(request, 'Preferences saved')
    return redirect(_tutor_tab_url('preferences'))


@tutor_required
@require_POST
def tutor_complete_session(request, session_id):
    form = CompleteSessionForm(request.POST)
    if not form.is_valid():
        messages.error(request, 'Failed to update session')
        return redirect(_tutor_tab_url('sessions'))

    try:
        complete_session(
            request.user,
            session_id,
            form.cleaned_data['status'],
            form.cleaned_data['feedback'],
        )
    except SessionUpdateError as e:
        messages.error(request, f'Failed to update session: {e}')
    else:
        messages.success(request, 'Session updated')
    return redirect(_tutor_tab_url('sessions'))


@tutor_required
@require_POST
def tutor_hide_session(request, session_id):
    session = get_object_or_404(TutoringSession, id=session_id, tutor=request.user)
    HiddenHistory(get_state_store(request.user)).hide(session.id)
    return redirect(_tutor_tab_url('history'))


@tutor_required
@require_POST
def tutor_unhide_session(request, session_id):
    session = get_object_or_404(TutoringSession, id=session_id, tutor=request.user)
    HiddenHistory(get_state_store(request.user)).unhide(session.id)
    return redirect(f"{_tutor_tab_url('history')}&show_hidden=1")


@tutor_required
def tutor_session_note(request, session_id):
    """
    Create or edit the structured note for a completed session.
    The parent sees it on their dashboard and in the notes history.
    """
    session = get_object_or_404(
        TutoringSession.objects.select_related('subscription__course', 'parent'),
        id=session_id,
        tutor=request.user,
    )
    note = session.session_notes.first()

    if request.method == 'POST':
        form = SessionNoteForm(request.POST, instance=note)
        if form.is_valid():
            try:
                _, created = save_session_note(request.user, session.id, **form.cleaned_data)
            except SessionUpdateError as e:
                messages.error(request, f'Failed to save notes: {e}')
            else:
                messages.success(request, 'Session notes saved' if created else 'Session notes updated')
                return redirect(_tutor_tab_url('history'))
    else:
        form = SessionNoteForm(instance=note)

    return render(request, 'dashboard/session_note_form.html', {
        'session': session,
        'form': form,
        'note': note,
        'can_write': session.status == TutoringSession.Status.COMPLETED,
    })


# ============================================================================
# Session Notes History
# ============================================================================

@role_required(PARENT, TUTOR, ADMIN)
def session_notes(request):
    """
    Notes history grouped by month. Tutors see notes they wrote, parents
    see notes addressed to them.
    """
    user = request.user
    if request.role == PARENT:
        sessions = TutoringSession.objects.filter(parent=user)
        notes = SessionNote.objects.filter(parent=user)
    else:
        sessions = TutoringSession.objects.filter(tutor=user)
        notes = SessionNote.objects.filter(tutor=user)

    sessions = sessions.select_related('subscription__course', 'tutor', 'parent')
    notes = notes.select_related('session__subscription__course', 'tutor', 'parent')
    entries = view_models.merge_notes(sessions, notes)

    courses = sorted({e.course.id: e.course for e in entries}.values(), key=lambda c: c.title)
    years = sorted({timezone.localtime(e.created_at).year for e in entries}, reverse=True)

    course_id = request.GET.get('course', '')
    if not (course_id.isdigit() and int(course_id) in {c.id for c in courses}):
        course_id = ''
    year = request.GET.get('year', '')
    if not (year.isdigit() and int(year) in years):
        year = ''

    filtered = view_models.filter_notes(entries, course_id or None, year or None)
    return render(request, 'dashboard/session_notes.html', {
        'groups': view_models.group_by_month(filtered),
        'courses': courses,
        'years': years,
        'selected_course': course_id,
        'selected_year': year,
        'total': len(filtered),
    })
