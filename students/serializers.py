"""
Serializers for students app
"""
from rest_framework import serializers
from .models import Student


class StudentSerializer(serializers.ModelSerializer):
    org_id = serializers.UUIDField(source='organization_id')
    full_name = serializers.CharField(read_only=True)
    doc_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)

    class Meta:
        model = Student
        fields = ['id', 'org_id', 'first_name', 'last_name', 'full_name', 'doc_id', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_first_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('First name is required.')
        return value.strip()

    def validate_last_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Last name is required.')
        return value.strip()


class StudentBriefSerializer(serializers.ModelSerializer):
    """Roster row: no organization, no timestamps."""
    class Meta:
        model = Student
        fields = ['id', 'first_name', 'last_name', 'doc_id', 'is_active']
