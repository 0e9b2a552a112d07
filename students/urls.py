"""
URLs for students app
"""
from django.urls import path
from . import views

app_name = 'students'

urlpatterns = [
    path('students', views.students_view, name='students'),
    path('students/<uuid:pk>', views.student_detail_view, name='student-detail'),
]
