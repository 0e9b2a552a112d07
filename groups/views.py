"""
Groups and roster API.
- GET  /groups?org_id=&academic_year_id=&teacher_id=&mine=true
- POST /groups                               Optional inline roster under "students"
- GET|PATCH|DELETE /groups/{id}
- GET|POST /groups/{id}/students             POST {student_id} links (idempotent)
- POST /groups/{id}/students/import          {rows: [{first_name, last_name, doc_id}]}
- DELETE /groups/{id}/students/{student_id}  Unlinks only
"""
from django.db.models import Count
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasOrganization
from core import policies
from core.models import AcademicYear
from core.utils import uuid_param
from students.models import Student
from students.serializers import StudentBriefSerializer
from .models import Group
from .serializers import (
    GroupCreateSerializer,
    GroupSerializer,
    RosterImportSerializer,
    RosterLinkSerializer,
)
from .services import (
    create_group,
    delete_group,
    get_roster,
    import_roster,
    link_student,
    unlink_student,
    update_group,
)


def _visible_groups(user):
    return (
        policies.scoped(Group, user)
        .select_related('teacher')
        .annotate(roster_size=Count('group_students'))
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasOrganization])
def groups_view(request):
    if request.method == 'GET':
        qs = _visible_groups(request.user)
        params = request.query_params
        for param, field in (('org_id', 'organization_id'), ('academic_year_id', 'academic_year_id'),
                             ('teacher_id', 'teacher_id')):
            value = uuid_param(params, param, required=False)
            if value:
                qs = qs.filter(**{field: value})
        if str(params.get('mine', '')).lower() in ('1', 'true'):
            qs = qs.filter(teacher=request.user)
        return Response(GroupSerializer(qs, many=True).data)

    serializer = GroupCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    academic_year = policies.get_visible_or_404(AcademicYear, request.user, pk=data['academic_year_id'])
    group = create_group(
        request.user,
        organization_id=data.get('organization_id'),
        academic_year=academic_year,
        name=data['name'],
        type=data.get('type', Group.TYPE_COURSE),
        teacher_id=data.get('teacher_id'),
        students=data.get('students'),
    )
    group = _visible_groups(request.user).get(pk=group.pk)
    return Response(GroupSerializer(group).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasOrganization])
def group_detail_view(request, pk):
    group = policies.get_visible_or_404(Group, request.user, pk=pk)
    if request.method == 'GET':
        return Response(GroupSerializer(_visible_groups(request.user).get(pk=group.pk)).data)

    if request.method == 'DELETE':
        delete_group(request.user, group)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = GroupSerializer(group, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    changes = dict(serializer.validated_data)
    if 'academic_year_id' in changes:
        changes['academic_year'] = policies.get_visible_or_404(
            AcademicYear, request.user, pk=changes.pop('academic_year_id')
        )
    update_group(request.user, group, **changes)
    return Response(GroupSerializer(_visible_groups(request.user).get(pk=group.pk)).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasOrganization])
def group_students_view(request, pk):
    group = policies.get_visible_or_404(Group, request.user, pk=pk)
    if request.method == 'GET':
        return Response(StudentBriefSerializer(get_roster(request.user, group), many=True).data)

    serializer = RosterLinkSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    student = policies.get_visible_or_404(Student, request.user, pk=serializer.validated_data['student_id'])
    _, created = link_student(request.user, group, student)
    return Response(
        StudentBriefSerializer(student).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasOrganization])
def group_students_import_view(request, pk):
    group = policies.get_visible_or_404(Group, request.user, pk=pk)
    serializer = RosterImportSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    summary = import_roster(request.user, group, serializer.validated_data['rows'])
    return Response(summary)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, HasOrganization])
def group_student_detail_view(request, pk, student_id):
    group = policies.get_visible_or_404(Group, request.user, pk=pk)
    student = policies.get_visible_or_404(Student, request.user, pk=student_id)
    if not unlink_student(request.user, group, student):
        return Response({'detail': 'Student is not in this group', 'code': 'not_found'},
                        status=status.HTTP_404_NOT_FOUND)
    return Response(status=status.HTTP_204_NO_CONTENT)
