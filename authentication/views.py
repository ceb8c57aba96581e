import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import authenticate, login, logout, update_session_auth_hash
from django.contrib.auth.decorators import login_required
from django.contrib.auth.forms import SetPasswordForm
from django.contrib.auth.models import User
from django.shortcuts import render, redirect
from django.utils.http import url_has_allowed_host_and_scheme

from profiles.models import ParentProfile, UserProfile
from .forms import LoginForm, SignupForm

logger = logging.getLogger(__name__)


def _safe_next(request, default):
    next_url = request.POST.get('next') or request.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return next_url
    return default


def login_view(request):
    """Handle user login."""
    if request.user.is_authenticated:
        return redirect(settings.LOGIN_REDIRECT_URL)

    if request.method == 'POST':
        form = LoginForm(request.POST)
        if form.is_valid():
            username = form.cleaned_data['username'].strip()
            password = form.cleaned_data['password']
            remember_me = form.cleaned_data['remember_me']

            # Accept the email address as well as the username
            if '@' in username:
                match = User.objects.filter(email__iexact=username).first()
                if match:
                    username = match.username

            user = authenticate(request, username=username, password=password)

            if user is not None:
                login(request, user)

                if remember_me:
                    # 2 weeks
                    request.session.set_expiry(1209600)
                else:
                    # Browser session
                    request.session.set_expiry(0)

                messages.success(request, f'Welcome back, {user.get_full_name() or user.username}!')
                return redirect(_safe_next(request, settings.LOGIN_REDIRECT_URL))
            else:
                logger.warning("Failed login attempt for %s", username)
                messages.error(request, 'Invalid username or password.')
    else:
        form = LoginForm()

    return render(request, 'authentication/login.html', {
        'form': form,
        'next': request.GET.get('next', ''),
    })


def logout_view(request):
    """Handle user logout."""
    logout(request)
    messages.success(request, 'You have been logged out successfully.')
    return redirect('authentication:login')


def signup_view(request):
    """Create a parent or tutor account and sign it in."""
    if request.user.is_authenticated:
        return redirect(settings.LOGIN_REDIRECT_URL)

    if request.method == 'POST':
        form = SignupForm(request.POST)
        if form.is_valid():
            user = form.save()
            if user.profile.role == UserProfile.Role.PARENT:
                ParentProfile.objects.get_or_create(user=user)
            login(request, user, backend='django.contrib.auth.backends.ModelBackend')
            logger.info("New %s account created: %s", user.profile.role, user.pk)
            messages.success(request, 'Your account has been created.')
            return redirect('dashboard:router')
    else:
        form = SignupForm()

    return render(request, 'authentication/signup.html', {'form': form})


@login_required
def setup_password_view(request):
    """
    Let an invited account choose its first password.
    Accounts created by an admin start without a usable password.
    """
    if request.method == 'POST':
        form = SetPasswordForm(request.user, request.POST)
        if form.is_valid():
            user = form.save()
            update_session_auth_hash(request, user)
            messages.success(request, 'Your password has been set.')
            return redirect('dashboard:router')
    else:
        form = SetPasswordForm(request.user)

    return render(request, 'authentication/setup_password.html', {'form': form})
