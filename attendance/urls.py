"""
URLs for attendance app (sessions) and the aggregation RPCs
"""
from django.urls import path

from .views import rpc, sessions

app_name = 'attendance'

urlpatterns = [
    path('attendance/sessions', sessions.sessions_view, name='sessions'),
    path('rpc/get_org_analytics', rpc.org_analytics_view, name='rpc-org-analytics'),
    path('rpc/get_group_stats', rpc.group_stats_view, name='rpc-group-stats'),
    path('rpc/get_student_stats', rpc.student_stats_view, name='rpc-student-stats'),
    path('rpc/get_daily_attendance_summary', rpc.daily_summary_view, name='rpc-daily-summary'),
]
