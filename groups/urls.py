"""
URLs for groups app
"""
from django.urls import path
from . import views

app_name = 'groups'

urlpatterns = [
    path('groups', views.groups_view, name='groups'),
    path('groups/<uuid:pk>', views.group_detail_view, name='group-detail'),
    path('groups/<uuid:pk>/students', views.group_students_view, name='group-students'),
    path('groups/<uuid:pk>/students/import', views.group_students_import_view, name='group-students-import'),
    path('groups/<uuid:pk>/students/<uuid:student_id>', views.group_student_detail_view,
         name='group-student-detail'),
]
