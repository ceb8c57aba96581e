from django import forms

from .models import TutorProfile
from .validators import validate_hourly_rate


class CommaListField(forms.CharField):
    """Text input holding a comma separated list, stored as a JSON list."""

    def prepare_value(self, value):
        if isinstance(value, (list, tuple)):
            return ', '.join(value)
        return value

    def to_python(self, value):
        value = super().to_python(value)
        return [item.strip() for item in value.split(',') if item.strip()]


class TutorProfileForm(forms.ModelForm):
    """Form for creating and updating a tutor profile."""

    subjects = CommaListField(
        required=False,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Math, Physics'
        }),
        help_text='Comma separated'
    )
    grade_levels = CommaListField(
        required=False,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Grade 6, Grade 7'
        }),
        help_text='Comma separated'
    )

    class Meta:
        model = TutorProfile
        fields = ['bio', 'qualifications', 'subjects', 'grade_levels', 'hourly_rate', 'years_of_experience']
        widgets = {
            'bio': forms.Textarea(attrs={'class': 'form-control', 'rows': 4}),
            'qualifications': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
            'hourly_rate': forms.NumberInput(attrs={'class': 'form-control', 'min': 0, 'step': '0.01'}),
            'years_of_experience': forms.NumberInput(attrs={'class': 'form-control', 'min': 0}),
        }
        labels = {
            'bio': 'About you',
            'hourly_rate': 'Default hourly rate',
        }

    def clean_hourly_rate(self):
        rate = self.cleaned_data.get('hourly_rate')
        if rate is not None:
            validate_hourly_rate(rate)
        return rate
