"""
Admin configuration for students app
"""
from django.contrib import admin
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['last_name', 'first_name', 'doc_id', 'organization', 'is_active', 'created_at']
    list_filter = ['is_active', 'organization']
    search_fields = ['first_name', 'last_name', 'doc_id']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['organization', 'last_name', 'first_name']
