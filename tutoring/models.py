from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone

from profiles.models import display_name
from .utils import generate_booking_token


class Course(models.Model):
    """A course offered on the marketplace."""

    title = models.CharField(max_length=200, verbose_name="Title")
    description = models.TextField(blank=True, verbose_name="Description")
    subject = models.CharField(max_length=100, db_index=True, verbose_name="Subject")
    grade_level = models.CharField(max_length=50, blank=True, verbose_name="Grade Level")
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Price")
    duration_minutes = models.PositiveIntegerField(default=60, verbose_name="Session Length (min)")
    sessions_per_week = models.PositiveIntegerField(default=1, verbose_name="Sessions per Week")
    total_sessions = models.PositiveIntegerField(null=True, blank=True, verbose_name="Total Sessions")
    is_active = models.BooleanField(default=True, verbose_name="Active")
    curriculum = models.TextField(blank=True, verbose_name="Curriculum")
    tutors = models.ManyToManyField(
        User,
        through='CourseTutor',
        related_name='taught_courses',
        blank=True,
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "courses"
        ordering = ["title"]

    def __str__(self):
        return self.title


class CourseTutor(models.Model):
    """Link between a course and a tutor allowed to teach it."""

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='course_tutors')
    tutor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='course_links')
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "course_tutors"
        unique_together = [["course", "tutor"]]

    def __str__(self):
        return f"{self.course} - {display_name(self.tutor)}"


class TutorCoursePreference(models.Model):
    """A tutor's request to teach a course at a given hourly rate."""

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        APPROVED = 'APPROVED', 'Approved'
        REJECTED = 'REJECTED', 'Rejected'

    tutor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='course_preferences')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='tutor_preferences')
    hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, verbose_name="Hourly Rate")
    approval_status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
        verbose_name="Approval Status"
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tutor_course_preferences"
        unique_together = [["tutor", "course"]]
        ordering = ["course__title"]

    def __str__(self):
        return f"{display_name(self.tutor)} / {self.course} @ {self.hourly_rate} [{self.approval_status}]"


class Subscription(models.Model):
    """
    A parent's enrollment of one student in a course.
    Shown as "enrollments" on the admin dashboard.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        PAUSED = 'paused', 'Paused'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'

    class PaymentStatus(models.TextChoices):
        PAID = 'paid', 'Paid'
        PENDING = 'pending', 'Pending'
        FAILED = 'failed', 'Failed'

    class PaymentPlan(models.TextChoices):
        FULL = 'full', 'Full'
        INSTALLMENT = 'installment', 'Installment'

    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='subscriptions')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='subscriptions')
    preferred_tutor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tutored_subscriptions',
    )
    student_first_name = models.CharField(max_length=100, blank=True)
    student_last_name = models.CharField(max_length=100, blank=True)
    student_grade = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE, db_index=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    sessions_completed = models.PositiveIntegerField(default=0)
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    payment_plan = models.CharField(max_length=12, choices=PaymentPlan.choices, default=PaymentPlan.FULL)
    first_installment_paid = models.BooleanField(default=False)
    second_installment_paid = models.BooleanField(default=False)
    first_installment_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    second_installment_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "subscriptions"
        ordering = ["-created_at"]

    @property
    def student_name(self):
        name = f"{self.student_first_name} {self.student_last_name}".strip()
        return name or "Student"

    @property
    def tutor_name(self):
        return display_name(self.preferred_tutor) if self.preferred_tutor else None

    def installment_badge(self):
        """Payment badge text shown on the parent dashboard."""
        if self.payment_plan == self.PaymentPlan.FULL:
            if self.payment_status == self.PaymentStatus.PENDING:
                return "Payment Pending"
            return None
        if not self.first_installment_paid:
            return "Installment Plan"
        if not self.second_installment_paid:
            return "2nd Payment Due"
        return "Fully Paid"

    def __str__(self):
        return f"{self.student_name} - {self.course}"


class TutoringSession(models.Model):
    """A single scheduled lesson between a tutor and a parent's student."""

    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', 'Scheduled'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'
        NO_SHOW = 'no_show', 'No Show'

    subscription = models.ForeignKey(Subscription, on_delete=models.CASCADE, related_name='sessions')
    tutor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='tutor_sessions')
    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='parent_sessions')
    scheduled_at = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(default=60)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.SCHEDULED, db_index=True)
    notes = models.TextField(blank=True)
    feedback_from_tutor = models.TextField(blank=True)
    feedback_from_parent = models.TextField(blank=True)
    rating = models.PositiveSmallIntegerField(null=True, blank=True)
    management_token = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        verbose_name="Booking Management Token",
        help_text="Opaque token used by parents to manage a booking without logging in"
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tutoring_sessions"
        ordering = ["-scheduled_at"]
        unique_together = [["tutor", "scheduled_at"]]

    def save(self, *args, **kwargs):
        if not self.management_token:
            self.management_token = generate_booking_token()
        return super().save(*args, **kwargs)

    def can_complete(self, now=None):
        """Only scheduled sessions whose start time has passed can be completed."""
        now = now or timezone.now()
        return self.status == self.Status.SCHEDULED and self.scheduled_at <= now

    def can_cancel(self, now=None):
        now = now or timezone.now()
        return self.status == self.Status.SCHEDULED and self.scheduled_at > now

    def __str__(self):
        return f"{self.subscription} @ {self.scheduled_at:%Y-%m-%d %H:%M}"


class SessionNote(models.Model):
    """Structured progress note written by a tutor after a session."""

    session = models.ForeignKey(TutoringSession, on_delete=models.CASCADE, related_name='session_notes')
    tutor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='written_notes')
    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='received_notes')
    progress_summary = models.TextField()
    homework = models.TextField(blank=True)
    challenges = models.TextField(blank=True)
    next_steps = models.TextField(blank=True)
    parent_notified = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "session_notes"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Note for {self.session}"


class Payment(models.Model):
    """Payment record; gateway processing happens elsewhere."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    class PaymentType(models.TextChoices):
        SUBSCRIPTION = 'subscription', 'Subscription'
        SESSION = 'session', 'Session'

    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments_made')
    tutor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments_received',
    )
    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
    )
    session = models.ForeignKey(
        TutoringSession,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default='usd')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True)
    payment_type = models.CharField(
        max_length=12,
        choices=PaymentType.choices,
        default=PaymentType.SUBSCRIPTION,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "payments"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.amount} {self.currency.upper()} [{self.status}]"
