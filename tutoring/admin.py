from django.contrib import admin
from django.contrib import messages

from .models import (
    Course, CourseTutor, TutorCoursePreference, Subscription,
    TutoringSession, SessionNote, Payment
)
from .services import update_preference_status, PreferenceError


class CourseTutorInline(admin.TabularInline):
    """
    Inline editor for tutors linked to a course.
    Links are normally created by approving a course preference.
    """
    model = CourseTutor
    extra = 0
    fields = ('tutor', 'is_primary', 'created_at')
    readonly_fields = ('created_at',)
    raw_id_fields = ('tutor',)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ('title', 'subject', 'grade_level', 'price', 'is_active', 'get_tutor_count', 'created_at')
    list_filter = ('is_active', 'subject', 'grade_level')
    search_fields = ('title', 'subject', 'grade_level', 'description')
    readonly_fields = ('created_at', 'updated_at')
    inlines = [CourseTutorInline]
    ordering = ('title',)

    fieldsets = (
        ('Course Information', {
            'fields': ('title', 'description', 'subject', 'grade_level', 'curriculum', 'is_active')
        }),
        ('Pricing & Schedule', {
            'fields': ('price', 'duration_minutes', 'sessions_per_week', 'total_sessions')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_tutor_count(self, obj):
        """Display count of linked tutors."""
        return obj.course_tutors.count()
    get_tutor_count.short_description = 'Tutors'


@admin.register(TutorCoursePreference)
class TutorCoursePreferenceAdmin(admin.ModelAdmin):
    """
    Admin interface for tutor course preferences.
    Approve/reject actions go through the same service as the dashboard.
    """
    list_display = ('tutor', 'course', 'hourly_rate', 'approval_status', 'updated_at')
    list_filter = ('approval_status', 'course__subject')
    search_fields = ('tutor__username', 'tutor__email', 'course__title')
    raw_id_fields = ('tutor', 'course')
    readonly_fields = ('created_at', 'updated_at')
    actions = ['approve_selected', 'reject_selected']

    def _set_status(self, request, queryset, status):
        updated = 0
        for pref in queryset:
            try:
                update_preference_status(pref.id, status)
                updated += 1
            except PreferenceError as e:
                self.message_user(request, f"Preference {pref.id}: {e}", level=messages.ERROR)
        if updated:
            self.message_user(
                request,
                f"Updated {updated} preference(s) to {status}.",
                level=messages.SUCCESS
            )

    @admin.action(description='Approve selected preferences')
    def approve_selected(self, request, queryset):
        self._set_status(request, queryset, TutorCoursePreference.Status.APPROVED)

    @admin.action(description='Reject selected preferences')
    def reject_selected(self, request, queryset):
        self._set_status(request, queryset, TutorCoursePreference.Status.REJECTED)


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = (
        'id',
        'course',
        'get_student_name',
        'parent',
        'preferred_tutor',
        'status',
        'payment_status',
        'payment_plan',
        'created_at'
    )
    list_filter = ('status', 'payment_status', 'payment_plan', 'created_at')
    search_fields = ('course__title', 'parent__email', 'student_first_name', 'student_last_name')
    raw_id_fields = ('parent', 'course', 'preferred_tutor')
    readonly_fields = ('created_at', 'updated_at')
    ordering = ('-created_at',)

    def get_student_name(self, obj):
        return obj.student_name
    get_student_name.short_description = 'Student'


@admin.register(TutoringSession)
class TutoringSessionAdmin(admin.ModelAdmin):
    list_display = ('id', 'subscription', 'tutor', 'parent', 'scheduled_at', 'status')
    list_filter = ('status', 'scheduled_at')
    search_fields = ('subscription__course__title', 'tutor__username', 'parent__email', 'management_token')
    raw_id_fields = ('subscription', 'tutor', 'parent')
    readonly_fields = ('management_token', 'created_at', 'updated_at')
    ordering = ('-scheduled_at',)


@admin.register(SessionNote)
class SessionNoteAdmin(admin.ModelAdmin):
    list_display = ('session', 'tutor', 'parent', 'parent_notified', 'created_at')
    list_filter = ('parent_notified', 'created_at')
    search_fields = ('progress_summary', 'tutor__username', 'parent__email')
    raw_id_fields = ('session', 'tutor', 'parent')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'amount', 'currency', 'status', 'payment_type', 'parent', 'tutor', 'created_at')
    list_filter = ('status', 'payment_type', 'currency', 'created_at')
    search_fields = ('parent__email', 'tutor__email', 'stripe_payment_intent_id')
    raw_id_fields = ('parent', 'tutor', 'subscription', 'session')
    readonly_fields = ('created_at',)
    ordering = ('-created_at',)
