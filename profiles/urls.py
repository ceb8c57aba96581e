from django.urls import path
from . import views

app_name = 'profiles'

urlpatterns = [
    path('tutor-registration/', views.tutor_registration, name='tutor_registration'),
]
