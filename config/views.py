from django.shortcuts import render

from profiles.models import TutorProfile
from tutoring.models import Course


def home(request):
    """Landing page with featured courses and marketplace counts."""
    courses = Course.objects.filter(is_active=True)
    context = {
        'featured_courses': courses.order_by('-created_at')[:6],
        'course_count': courses.count(),
        'tutor_count': TutorProfile.objects.filter(
            is_active=True,
            approval_status=TutorProfile.ApprovalStatus.APPROVED,
        ).count(),
    }
    return render(request, 'home.html', context)


def not_found(request, exception=None, path=None):
    """Rendered for /404/, unmatched paths and Http404."""
    return render(request, '404.html', status=404)
