from django import forms
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password

from profiles.models import UserProfile


class LoginForm(forms.Form):
    """Login with username or email."""

    username = forms.CharField(
        max_length=150,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Username or email',
            'autofocus': True,
        }),
        label='Username or Email'
    )
    password = forms.CharField(
        widget=forms.PasswordInput(attrs={
            'class': 'form-control',
            'placeholder': 'Password'
        }),
        label='Password'
    )
    remember_me = forms.BooleanField(required=False, label='Remember me')


class SignupForm(forms.Form):
    """Account creation for parents and tutors."""

    ROLE_CHOICES = [
        (UserProfile.Role.PARENT, 'I am a parent'),
        (UserProfile.Role.TUTOR, 'I am a tutor'),
    ]

    first_name = forms.CharField(max_length=150, widget=forms.TextInput(attrs={'class': 'form-control'}))
    last_name = forms.CharField(max_length=150, widget=forms.TextInput(attrs={'class': 'form-control'}))
    email = forms.EmailField(widget=forms.EmailInput(attrs={'class': 'form-control'}))
    role = forms.ChoiceField(choices=ROLE_CHOICES, initial=UserProfile.Role.PARENT, widget=forms.RadioSelect)
    password = forms.CharField(widget=forms.PasswordInput(attrs={'class': 'form-control'}))
    password_confirm = forms.CharField(
        widget=forms.PasswordInput(attrs={'class': 'form-control'}),
        label='Confirm password'
    )

    def clean_email(self):
        """Email doubles as the username and must be unique."""
        email = self.cleaned_data['email'].strip().lower()
        if User.objects.filter(username__iexact=email).exists() or User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("An account with this email already exists.")
        return email

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get('password')
        confirm = cleaned_data.get('password_confirm')
        if password and confirm and password != confirm:
            self.add_error('password_confirm', "Passwords do not match.")
        if password:
            candidate = User(
                username=cleaned_data.get('email', ''),
                email=cleaned_data.get('email', ''),
                first_name=cleaned_data.get('first_name', ''),
                last_name=cleaned_data.get('last_name', ''),
            )
            try:
                validate_password(password, candidate)
            except forms.ValidationError as e:
                self.add_error('password', e)
        return cleaned_data

    def save(self):
        data = self.cleaned_data
        user = User.objects.create_user(
            username=data['email'],
            email=data['email'],
            password=data['password'],
            first_name=data['first_name'],
            last_name=data['last_name'],
        )
        user.profile.role = data['role']
        user.profile.save(update_fields=['role', 'updated_at'])
        return user
