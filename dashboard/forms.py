"""
Filter and action forms for the dashboards.
Filter forms are bound to request.GET with a per-list prefix.
"""
from django import forms

from profiles.models import UserProfile
from tutoring.models import Subscription, Payment, SessionNote, TutoringSession, TutorCoursePreference


def _with_all(choices, label='All'):
    return [('', label)] + list(choices)


class DateRangeFilterMixin(forms.Form):
    start_date = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'})
    )
    end_date = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'})
    )


class UserFilterForm(DateRangeFilterMixin):
    role = forms.ChoiceField(
        required=False,
        choices=_with_all(UserProfile.Role.choices, 'All roles'),
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    search = forms.CharField(
        required=False,
        max_length=100,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search name or email'})
    )

    field_order = ['role', 'search', 'start_date', 'end_date']


class EnrollmentFilterForm(DateRangeFilterMixin):
    status = forms.ChoiceField(
        required=False,
        choices=_with_all(Subscription.Status.choices, 'All statuses'),
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    payment_status = forms.ChoiceField(
        required=False,
        choices=_with_all(Subscription.PaymentStatus.choices, 'All payment statuses'),
        widget=forms.Select(attrs={'class': 'form-control'})
    )

    field_order = ['status', 'payment_status', 'start_date', 'end_date']


class PaymentFilterForm(DateRangeFilterMixin):
    status = forms.ChoiceField(
        required=False,
        choices=_with_all([
            (Payment.Status.COMPLETED, 'Completed'),
            (Payment.Status.PENDING, 'Pending'),
            (Payment.Status.FAILED, 'Failed'),
        ], 'All statuses'),
        widget=forms.Select(attrs={'class': 'form-control'})
    )

    field_order = ['status', 'start_date', 'end_date']


class TutorFilterForm(forms.Form):
    approval_status = forms.ChoiceField(
        required=False,
        choices=_with_all([
            ('pending', 'Pending'),
            ('approved', 'Approved'),
            ('rejected', 'Rejected'),
        ], 'All tutors'),
        widget=forms.Select(attrs={'class': 'form-control'})
    )


class AnalyticsRangeForm(DateRangeFilterMixin):
    """Date range for the analytics tab; empty means the default window."""

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('start_date')
        end = cleaned_data.get('end_date')
        if start and end and start > end:
            raise forms.ValidationError("Start date must be before end date.")
        return cleaned_data


class PreferenceStatusForm(forms.Form):
    status = forms.ChoiceField(choices=[
        (TutorCoursePreference.Status.APPROVED, 'Approve'),
        (TutorCoursePreference.Status.REJECTED, 'Reject'),
    ])


class TutorRejectForm(forms.Form):
    reason = forms.CharField(
        max_length=1000,
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2, 'placeholder': 'Reason for rejection'})
    )


class CompleteSessionForm(forms.Form):
    """Form for completing a session with tutor feedback."""

    status = forms.ChoiceField(
        choices=[
            (TutoringSession.Status.COMPLETED, 'Completed'),
            (TutoringSession.Status.NO_SHOW, 'No show'),
        ],
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    feedback = forms.CharField(
        required=False,
        max_length=5000,
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 3, 'placeholder': 'Notes for the parent'})
    )


class SessionNoteForm(forms.ModelForm):
    """Structured progress note a tutor writes after a completed session."""

    class Meta:
        model = SessionNote
        fields = ['progress_summary', 'homework', 'challenges', 'next_steps']
        widgets = {
            'progress_summary': forms.Textarea(attrs={'class': 'form-control', 'rows': 4}),
            'homework': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
            'challenges': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
            'next_steps': forms.Textarea(attrs={'class': 'form-control', 'rows': 2}),
        }


class CancelSessionForm(forms.Form):
    reason = forms.CharField(
        required=False,
        max_length=500,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Reason (optional)'})
    )


class SessionRatingForm(forms.Form):
    rating = forms.TypedChoiceField(
        coerce=int,
        choices=[(n, str(n)) for n in range(1, 6)],
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    feedback = forms.CharField(
        required=False,
        max_length=5000,
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2, 'placeholder': 'Feedback for the tutor'})
    )
