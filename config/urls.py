"""
URL configuration for the EdKonnect project.

Public pages and booking management live in `marketplace`, account pages
in `authentication`, and all role dashboards under /dashboard/.
"""

from django.contrib import admin
from django.urls import path, re_path, include
from dashboard import views as dashboard_views
from . import views

urlpatterns = [
    path("", views.home, name="home"),
    path("django-admin/", admin.site.urls),
    path("", include("authentication.urls")),
    path("", include("profiles.urls")),
    path("", include("marketplace.urls")),
    path("dashboard/", include("dashboard.urls")),
    path("session-notes/", dashboard_views.session_notes, name="session_notes"),
    path("404/", views.not_found, name="not_found"),
    # Catch-all
    re_path(r"^(?P<path>.+/)$", views.not_found),
]

handler404 = "config.views.not_found"
