"""
Students API (institution-wide, any organization member).
- GET  /students?org_id=&search=&active=
- POST /students
- GET|PATCH|DELETE /students/{id}     DELETE requires ?confirm=true
"""
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasOrganization
from core import policies
from core.utils import uuid_param
from students.models import Student
from students.serializers import StudentSerializer
from students.services import create_student, delete_student, update_student


def _truthy(value):
    return str(value).lower() in ('1', 'true', 'yes')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasOrganization])
def students_view(request):
    if request.method == 'GET':
        qs = policies.scoped(Student, request.user)
        org_id = uuid_param(request.query_params, 'org_id', required=False)
        if org_id:
            qs = qs.filter(organization_id=org_id)
        search = (request.query_params.get('search') or '').strip()
        if search:
            qs = qs.filter(
                Q(first_name__icontains=search) | Q(last_name__icontains=search) | Q(doc_id__icontains=search)
            )
        active = request.query_params.get('active')
        if active not in (None, ''):
            qs = qs.filter(is_active=_truthy(active))
        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(qs, request)
        return paginator.get_paginated_response(StudentSerializer(page, many=True).data)

    serializer = StudentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    student = create_student(
        request.user,
        data['organization_id'],
        data['first_name'],
        data['last_name'],
        doc_id=data.get('doc_id'),
        is_active=data.get('is_active', True),
    )
    return Response(StudentSerializer(student).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasOrganization])
def student_detail_view(request, pk):
    student = policies.get_visible_or_404(Student, request.user, pk=pk)
    if request.method == 'GET':
        return Response(StudentSerializer(student).data)

    if request.method == 'DELETE':
        delete_student(request.user, student, confirm=_truthy(request.query_params.get('confirm')))
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = StudentSerializer(student, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    student = update_student(request.user, student, **serializer.validated_data)
    return Response(StudentSerializer(student).data)
