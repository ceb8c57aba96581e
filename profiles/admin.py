from django.contrib import admin
from django.contrib import messages
from django.contrib.auth.models import User
from django.contrib.auth.admin import UserAdmin
from .models import UserProfile, TutorProfile, ParentProfile
from tutoring.services import approve_tutor, TutorApprovalError


# ============================================================================
# Custom User Admin with UserProfile Inline
# ============================================================================

class UserProfileInline(admin.StackedInline):
    """
    Inline editor for UserProfile within User admin.
    Allows Admin to set the role directly on the User page.
    """
    model = UserProfile
    can_delete = False
    verbose_name_plural = 'Role'
    fk_name = 'user'
    fields = ('role', 'phone')


# Unregister the default User admin
admin.site.unregister(User)


@admin.register(User)
class CustomUserAdmin(UserAdmin):
    """
    Extended User admin with the role inline.
    """
    inlines = (UserProfileInline,)

    list_display = ('username', 'email', 'first_name', 'last_name', 'get_role', 'is_staff', 'is_active')
    list_filter = ('profile__role', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'first_name', 'last_name', 'email')

    def get_role(self, obj):
        """Display user's role."""
        profile = getattr(obj, 'profile', None)
        return profile.get_role_display() if profile else '-'
    get_role.short_description = 'Role'
    get_role.admin_order_field = 'profile__role'


@admin.register(TutorProfile)
class TutorProfileAdmin(admin.ModelAdmin):
    """Admin interface for tutor profile review."""

    list_display = ('get_username', 'get_email', 'hourly_rate', 'years_of_experience', 'approval_status', 'is_active', 'created_at')
    list_filter = ('approval_status', 'is_active', 'created_at')
    search_fields = ('user__username', 'user__email', 'user__first_name', 'user__last_name', 'bio')
    readonly_fields = ('user', 'approved_at', 'rating', 'total_reviews', 'created_at', 'updated_at')
    ordering = ('-created_at',)
    actions = ['approve_selected']

    fieldsets = (
        ('User Account', {
            'fields': ('user',)
        }),
        ('Tutor Information', {
            'fields': ('bio', 'qualifications', 'subjects', 'grade_levels', 'hourly_rate', 'years_of_experience', 'is_active')
        }),
        ('Review', {
            'fields': ('approval_status', 'rejection_reason', 'approved_at', 'rating', 'total_reviews')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_username(self, obj):
        return obj.user.username
    get_username.short_description = 'Username'

    def get_email(self, obj):
        return obj.user.email
    get_email.short_description = 'Email'

    @admin.action(description='Approve selected tutors')
    def approve_selected(self, request, queryset):
        approved = 0
        for profile in queryset:
            try:
                approve_tutor(profile)
                approved += 1
            except TutorApprovalError as e:
                self.message_user(request, f"{profile.user.username}: {e}", level=messages.WARNING)
        if approved:
            self.message_user(request, f"Approved {approved} tutor(s).", level=messages.SUCCESS)


@admin.register(ParentProfile)
class ParentProfileAdmin(admin.ModelAdmin):
    list_display = ('get_username', 'get_email', 'created_at')
    search_fields = ('user__username', 'user__email')
    readonly_fields = ('user', 'created_at', 'updated_at')

    def get_username(self, obj):
        return obj.user.username
    get_username.short_description = 'Username'

    def get_email(self, obj):
        return obj.user.email
    get_email.short_description = 'Email'
