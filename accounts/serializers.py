"""
Serializers for accounts app
"""
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from django.contrib.auth import get_user_model

from core.models import OrganizationMember

User = get_user_model()


class MembershipSummarySerializer(serializers.ModelSerializer):
    org_id = serializers.UUIDField(source='organization_id', read_only=True)
    org_name = serializers.CharField(source='organization.name', read_only=True)

    class Meta:
        model = OrganizationMember
        fields = ['org_id', 'org_name', 'role']


class UserSerializer(serializers.ModelSerializer):
    """User serializer for API responses, with the caller's own memberships"""
    fullName = serializers.CharField(source='full_name', read_only=True)
    memberships = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'fullName', 'memberships']
        read_only_fields = ['id', 'email']

    def get_memberships(self, obj):
        qs = OrganizationMember.objects.filter(user=obj).select_related('organization')
        return MembershipSummarySerializer(qs, many=True).data


class LoginSerializer(serializers.Serializer):
    """Login serializer"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')

        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed('Invalid email or password.')

        if not user.check_password(password):
            raise AuthenticationFailed('Invalid email or password.')

        if not user.is_active:
            raise AuthenticationFailed('User account is disabled.')

        attrs['user'] = user
        return attrs
