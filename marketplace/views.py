"""
Public marketplace pages: tutor and course browsing and booking
management by token.
"""
import logging

from django.contrib import messages
from django.db.models import Q
from django.shortcuts import render, redirect, get_object_or_404

from profiles.models import TutorProfile
from tutoring.models import Course
from tutoring.services import (
    get_booking_by_token, cancel_booking_by_token,
    BookingTokenError, BookingStateError,
)
from dashboard.listing import ListState
from .forms import TutorSearchForm, CourseSearchForm

logger = logging.getLogger(__name__)


def _listed_tutors():
    return TutorProfile.objects.filter(
        is_active=True,
        approval_status=TutorProfile.ApprovalStatus.APPROVED,
    ).select_related('user')


def tutor_list(request):
    """Approved, active tutors with an optional name/subject search."""
    state = ListState.from_request(request, TutorSearchForm, prefix='')
    tutors = _listed_tutors().order_by('-rating', 'user__first_name')
    search = state.filters.get('search')
    if search:
        tutors = tutors.filter(
            Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
            | Q(bio__icontains=search)
        )
    page = state.paginate(tutors)
    return render(request, 'marketplace/tutor_list.html', {
        'state': state,
        'form': state.form,
        'page_obj': page,
    })


def tutor_detail(request, tutor_id):
    profile = get_object_or_404(_listed_tutors(), user_id=tutor_id)
    courses = Course.objects.filter(course_tutors__tutor_id=tutor_id, is_active=True).distinct()
    return render(request, 'marketplace/tutor_detail.html', {
        'profile': profile,
        'courses': courses,
    })


def course_list(request):
    """Active courses with search over title/subject/grade level."""
    state = ListState.from_request(request, CourseSearchForm, prefix='')
    courses = Course.objects.filter(is_active=True).order_by('title')
    search = state.filters.get('search')
    if search:
        courses = courses.filter(
            Q(title__icontains=search)
            | Q(subject__icontains=search)
            | Q(grade_level__icontains=search)
        )
    if state.filters.get('subject'):
        courses = courses.filter(subject=state.filters['subject'])
    page = state.paginate(courses)
    return render(request, 'marketplace/course_list.html', {
        'state': state,
        'form': state.form,
        'page_obj': page,
    })


def course_detail(request, course_id):
    course = get_object_or_404(Course, id=course_id, is_active=True)
    tutors = _listed_tutors().filter(user__course_links__course=course)
    return render(request, 'marketplace/course_detail.html', {
        'course': course,
        'tutors': tutors,
    })


def manage_booking(request, token):
    """
    View or cancel a booking with its management token, no login needed.
    Malformed tokens answer 400, unknown tokens 404.
    """
    try:
        session = get_booking_by_token(token)
    except BookingTokenError as e:
        return render(request, 'marketplace/manage_booking.html', {
            'error': str(e),
        }, status=e.status_code)

    if request.method == 'POST':
        try:
            cancel_booking_by_token(token)
        except BookingStateError as e:
            messages.error(request, str(e))
        else:
            messages.success(request, 'Session cancelled successfully')
        return redirect('marketplace:manage_booking', token=token)

    return render(request, 'marketplace/manage_booking.html', {
        'session': session,
        'can_cancel': session.can_cancel(),
    })
