from django.db import models
from django.contrib.auth.models import User
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone

from .validators import validate_hourly_rate


class UserProfile(models.Model):
    """Role record attached to every user account."""

    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        PARENT = 'parent', 'Parent'
        TUTOR = 'tutor', 'Tutor'

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="profile",
        verbose_name="User Account"
    )
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.PARENT,
        db_index=True,
        verbose_name="Role"
    )
    phone = models.CharField(max_length=30, blank=True, verbose_name="Phone")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_profiles"
        verbose_name = "User Profile"
        verbose_name_plural = "User Profiles"
        ordering = ["-created_at"]

    def display_name(self):
        """Full name, falling back to the username."""
        return self.user.get_full_name() or self.user.username

    def __str__(self):
        return f"{self.display_name()} ({self.get_role_display()})"


def get_role(user):
    """
    Resolve the role of a user.
    Superusers always count as admins; anonymous users have no role.
    """
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return UserProfile.Role.ADMIN
    profile = getattr(user, 'profile', None)
    if profile is None:
        return None
    return profile.role


def display_name(user):
    if user is None:
        return ''
    return user.get_full_name() or user.username


class TutorProfile(models.Model):
    """Public tutor profile, reviewed by an admin before listing."""

    class ApprovalStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="tutor_profile",
        verbose_name="User Account"
    )
    bio = models.TextField(blank=True, verbose_name="Bio")
    qualifications = models.TextField(blank=True, verbose_name="Qualifications")
    subjects = models.JSONField(default=list, blank=True, verbose_name="Subjects")
    grade_levels = models.JSONField(default=list, blank=True, verbose_name="Grade Levels")
    hourly_rate = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[validate_hourly_rate],
        verbose_name="Hourly Rate"
    )
    years_of_experience = models.PositiveIntegerField(default=0, verbose_name="Years of Experience")
    is_active = models.BooleanField(default=True, verbose_name="Active")
    approval_status = models.CharField(
        max_length=10,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        db_index=True,
        verbose_name="Approval Status"
    )
    rejection_reason = models.TextField(blank=True, verbose_name="Rejection Reason")
    approved_at = models.DateTimeField(null=True, blank=True)
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    total_reviews = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tutor_profiles"
        verbose_name = "Tutor Profile"
        verbose_name_plural = "Tutor Profiles"
        ordering = ["-created_at"]

    @property
    def is_listed(self):
        return self.is_active and self.approval_status == self.ApprovalStatus.APPROVED

    def __str__(self):
        return f"{display_name(self.user)} [{self.approval_status}]"


class ParentProfile(models.Model):
    """Household details for a parent account."""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="parent_profile",
        verbose_name="User Account"
    )
    children_info = models.JSONField(default=list, blank=True, verbose_name="Children")
    preferences = models.JSONField(default=dict, blank=True, verbose_name="Preferences")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "parent_profiles"
        verbose_name = "Parent Profile"
        verbose_name_plural = "Parent Profiles"

    def __str__(self):
        return display_name(self.user)


# ============================================================================
# Signals - Auto-create UserProfile when User is created
# ============================================================================

@receiver(post_save, sender=User)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Create the role profile for every new account.
    Superusers created from the command line become admins.
    """
    if created and not UserProfile.objects.filter(user=instance).exists():
        role = UserProfile.Role.ADMIN if instance.is_superuser else UserProfile.Role.PARENT
        UserProfile.objects.create(user=instance, role=role)
