from django.shortcuts import render, redirect
from django.contrib import messages
from django.contrib.auth.decorators import login_required

from tutoring.services import create_tutor_profile
from .forms import TutorProfileForm
from .models import TutorProfile


@login_required
def tutor_registration(request):
    """
    Become a tutor: create or edit the tutor profile.
    Editing a rejected profile sends it back for review.
    """
    profile = TutorProfile.objects.filter(user=request.user).first()

    if request.method == 'POST':
        form = TutorProfileForm(request.POST, instance=profile)
        if form.is_valid():
            if profile is None:
                create_tutor_profile(request.user, **form.cleaned_data)
                messages.success(request, 'Your tutor profile was submitted for review.')
            else:
                profile = form.save(commit=False)
                if profile.approval_status == TutorProfile.ApprovalStatus.REJECTED:
                    profile.approval_status = TutorProfile.ApprovalStatus.PENDING
                    profile.rejection_reason = ''
                profile.save()
                messages.success(request, 'Your tutor profile was updated.')
            return redirect('dashboard:tutor')
    else:
        form = TutorProfileForm(instance=profile)

    return render(request, 'profiles/tutor_registration.html', {
        'form': form,
        'profile': profile,
    })
