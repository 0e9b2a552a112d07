"""
URLs for core app
"""
from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    path('organizations', views.organizations_view, name='organizations'),
    path('organizations/<uuid:pk>', views.organization_detail_view, name='organization-detail'),
    path('memberships', views.memberships_view, name='memberships'),
    path('academic-years', views.academic_years_view, name='academic-years'),
    path('academic-years/<uuid:pk>/activate', views.academic_year_activate_view, name='academic-year-activate'),
]
