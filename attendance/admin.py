"""
Admin configuration for attendance app
"""
from django.contrib import admin
from .models import AttendanceRecord, Session


class AttendanceRecordInline(admin.TabularInline):
    model = AttendanceRecord
    extra = 0
    fields = ['student', 'status', 'justification', 'comment', 'updated_by']
    raw_id_fields = ['student', 'updated_by']


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ['group', 'date', 'class_index', 'organization', 'created_by', 'created_at']
    list_filter = ['date', 'organization']
    search_fields = ['group__name']
    readonly_fields = ['organization', 'created_at', 'updated_at']
    date_hierarchy = 'date'
    inlines = [AttendanceRecordInline]


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ['student', 'session', 'status', 'justification', 'organization', 'updated_at']
    list_filter = ['status', 'justification', 'organization']
    search_fields = ['student__first_name', 'student__last_name', 'session__group__name']
    readonly_fields = ['organization', 'created_at', 'updated_at']
