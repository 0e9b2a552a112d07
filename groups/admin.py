"""
Admin configuration for groups app
"""
from django.contrib import admin
from .models import Group, GroupStudent


class GroupStudentInline(admin.TabularInline):
    model = GroupStudent
    extra = 0
    fields = ['student', 'organization', 'created_at']
    readonly_fields = ['organization', 'created_at']
    raw_id_fields = ['student']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'organization', 'academic_year', 'teacher', 'created_at']
    list_filter = ['type', 'organization']
    search_fields = ['name', 'teacher__email', 'teacher__full_name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [GroupStudentInline]


@admin.register(GroupStudent)
class GroupStudentAdmin(admin.ModelAdmin):
    list_display = ['group', 'student', 'organization', 'created_at']
    list_filter = ['organization']
    search_fields = ['group__name', 'student__first_name', 'student__last_name']
    readonly_fields = ['organization', 'created_at']
