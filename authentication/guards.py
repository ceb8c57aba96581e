"""
Role-based route guards.

The decorator runs before the view body, so nothing protected is built
for a user who is not allowed to see it.
"""
import logging
from functools import wraps

from django.contrib.auth.views import redirect_to_login
from django.http import JsonResponse
from django.shortcuts import redirect

from profiles.models import UserProfile, get_role

logger = logging.getLogger(__name__)

ADMIN = UserProfile.Role.ADMIN
PARENT = UserProfile.Role.PARENT
TUTOR = UserProfile.Role.TUTOR


def role_required(*roles, api=False, fallback_url='/'):
    """
    Restrict a view to users holding one of `roles`.

    - Unauthenticated: redirect to LOGIN_URL with ?next= (401 JSON when api=True)
    - Wrong role: redirect to `fallback_url` (403 JSON when api=True)

    Usage:
        @role_required(ADMIN)
        def admin_dashboard(request): ...
    """
    allowed = set(roles)

    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            user = request.user
            if not user.is_authenticated:
                if api:
                    return JsonResponse({'error': 'Authentication required'}, status=401)
                return redirect_to_login(request.get_full_path())

            role = get_role(user)
            if role not in allowed:
                logger.warning(
                    "User %s with role %s denied access to %s",
                    user.pk, role, request.path
                )
                if api:
                    return JsonResponse({'error': 'Access denied'}, status=403)
                return redirect(fallback_url)

            request.role = role
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator


admin_required = role_required(ADMIN)
tutor_required = role_required(TUTOR, ADMIN)
parent_required = role_required(PARENT, ADMIN)
