from django import forms

from tutoring.models import Course


class TutorSearchForm(forms.Form):
    search = forms.CharField(
        required=False,
        max_length=100,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search tutors'})
    )


class CourseSearchForm(forms.Form):
    search = forms.CharField(
        required=False,
        max_length=100,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search courses'})
    )
    subject = forms.ChoiceField(required=False, widget=forms.Select(attrs={'class': 'form-control'}))

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        subjects = (
            Course.objects.filter(is_active=True)
            .order_by('subject')
            .values_list('subject', flat=True)
            .distinct()
        )
        self.fields['subject'].choices = [('', 'All subjects')] + [(s, s) for s in subjects if s]
