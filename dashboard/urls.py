"""
URL configuration for dashboard app.
"""
from django.urls import path
from . import views

app_name = 'dashboard'

urlpatterns = [
    # Smart Router - decides where to send user
    path('', views.dashboard_router, name='router'),

    # Admin Dashboard
    path('admin/', views.admin_dashboard, name='admin'),
    path('admin/export/<str:kind>/', views.admin_export, name='admin_export'),
    path('admin/preferences/<int:preference_id>/status/', views.admin_update_preference_status, name='admin_preference_status'),
    path('admin/tutors/<int:profile_id>/approve/', views.admin_approve_tutor, name='admin_approve_tutor'),
    path('admin/tutors/<int:profile_id>/reject/', views.admin_reject_tutor, name='admin_reject_tutor'),

    # Admin JSON APIs
    path('api/admin/stats/', views.admin_stats_api, name='admin_stats_api'),
    path('api/admin/analytics/', views.admin_analytics_api, name='admin_analytics_api'),
    path('api/admin/tutors/<int:tutor_id>/preferences/', views.admin_tutor_preferences_api, name='admin_tutor_preferences_api'),
    path('api/admin/<str:kind>/', views.admin_list_api, name='admin_list_api'),

    # Parent Dashboard
    path('parent/', views.parent_dashboard, name='parent'),
    path('parent/sessions/<int:session_id>/cancel/', views.parent_cancel_session, name='parent_cancel_session'),
    path('parent/sessions/<int:session_id>/rate/', views.parent_rate_session, name='parent_rate_session'),

    # Tutor Dashboard
    path('tutor/', views.tutor_dashboard, name='tutor'),
    path('tutor/profile/create/', views.tutor_create_profile, name='tutor_create_profile'),
    path('tutor/preferences/', views.tutor_save_preferences, name='tutor_save_preferences'),
    path('tutor/sessions/<int:session_id>/complete/', views.tutor_complete_session, name='tutor_complete_session'),
    path('tutor/sessions/<int:session_id>/hide/', views.tutor_hide_session, name='tutor_hide_session'),
    path('tutor/sessions/<int:session_id>/unhide/', views.tutor_unhide_session, name='tutor_unhide_session'),
    path('tutor/sessions/<int:session_id>/notes/', views.tutor_session_note, name='tutor_session_note'),
]
