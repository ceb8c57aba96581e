from django.urls import path
from . import views

app_name = 'marketplace'

urlpatterns = [
    path('tutors/', views.tutor_list, name='tutor_list'),
    path('tutor/<int:tutor_id>/', views.tutor_detail, name='tutor_detail'),
    path('courses/', views.course_list, name='course_list'),
    path('course/<int:course_id>/', views.course_detail, name='course_detail'),
    path('manage-booking/<str:token>/', views.manage_booking, name='manage_booking'),
]
