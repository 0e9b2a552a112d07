"""
Organization, membership and academic-year API.
Endpoints:
- GET  /organizations                  Organizations the caller belongs to
- POST /organizations                  Onboarding: org + owner membership + active academic year
- GET|PATCH /organizations/{id}
- GET  /memberships?org_id=            Co-members of the caller's organizations
- POST /memberships                    Self-registration into an organization
- GET|POST /academic-years
- POST /academic-years/{id}/activate
"""
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core import policies
from core.models import AcademicYear, Organization, OrganizationMember
from core.serializers import (
    AcademicYearSerializer,
    OrganizationMemberSerializer,
    OrganizationSerializer,
)
from core.services import activate_academic_year, bootstrap_organization
from core.utils import uuid_param


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def organizations_view(request):
    if request.method == 'GET':
        orgs = policies.scoped(Organization, request.user)
        return Response(OrganizationSerializer(orgs, many=True).data)

    serializer = OrganizationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    org = bootstrap_organization(
        request.user,
        serializer.validated_data['name'],
        slug=serializer.validated_data.get('slug'),
    )
    return Response(OrganizationSerializer(org).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def organization_detail_view(request, pk):
    org = policies.get_visible_or_404(Organization, request.user, pk=pk)
    if request.method == 'GET':
        return Response(OrganizationSerializer(org).data)

    policies.authorize(request.user, policies.CHANGE, org)
    serializer = OrganizationSerializer(org, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def memberships_view(request):
    if request.method == 'GET':
        qs = policies.scoped(OrganizationMember, request.user).select_related('user')
        org_id = uuid_param(request.query_params, 'org_id', required=False)
        if org_id:
            qs = qs.filter(organization_id=org_id)
        return Response(OrganizationMemberSerializer(qs, many=True).data)

    serializer = OrganizationMemberSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    org_id = data['organization_id']
    if not Organization.objects.filter(pk=org_id).exists():
        return Response({'detail': 'Organization not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
    membership = OrganizationMember(
        organization_id=org_id,
        user_id=data.get('user_id') or request.user.pk,
        role=OrganizationMember.ROLE_MEMBER,
    )
    policies.authorize(request.user, policies.CREATE, membership)
    membership.save()
    return Response(OrganizationMemberSerializer(membership).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def academic_years_view(request):
    if request.method == 'GET':
        qs = policies.scoped(AcademicYear, request.user)
        org_id = uuid_param(request.query_params, 'org_id', required=False)
        if org_id:
            qs = qs.filter(organization_id=org_id)
        return Response(AcademicYearSerializer(qs, many=True).data)

    serializer = AcademicYearSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    academic_year = AcademicYear(**serializer.validated_data)
    policies.authorize(request.user, policies.CREATE, academic_year)
    with transaction.atomic():
        academic_year.save()
        if academic_year.is_active:
            activate_academic_year(request.user, academic_year)
    return Response(AcademicYearSerializer(academic_year).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def academic_year_activate_view(request, pk):
    academic_year = policies.get_visible_or_404(AcademicYear, request.user, pk=pk)
    activate_academic_year(request.user, academic_year)
    return Response(AcademicYearSerializer(academic_year).data)
