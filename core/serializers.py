"""
Serializers for core app
"""
from rest_framework import serializers

from core.models import AcademicYear, Organization, OrganizationMember


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'created_at']
        read_only_fields = ['id', 'created_at']
        extra_kwargs = {'slug': {'required': False}}


class OrganizationMemberSerializer(serializers.ModelSerializer):
    org_id = serializers.UUIDField(source='organization_id')
    user_id = serializers.UUIDField(required=False)
    email = serializers.EmailField(source='user.email', read_only=True)
    full_name = serializers.CharField(source='user.full_name', read_only=True)

    class Meta:
        model = OrganizationMember
        fields = ['id', 'org_id', 'user_id', 'email', 'full_name', 'role', 'created_at']
        read_only_fields = ['id', 'role', 'created_at']


class AcademicYearSerializer(serializers.ModelSerializer):
    org_id = serializers.UUIDField(source='organization_id')

    class Meta:
        model = AcademicYear
        fields = ['id', 'org_id', 'year', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_year(self, value):
        if value < 1900 or value > 2200:
            raise serializers.ValidationError('Invalid year.')
        return value
