"""
Attendance sessions API.
- GET  /attendance/sessions?group_id=&date=     Sessions (with records) visible to the caller
- POST /attendance/sessions                     Take attendance; upserts by (group, date, class_index)
"""
from django.db.models import Prefetch
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasOrganization
from core import policies
from core.utils import date_param, uuid_param
from groups.models import Group
from students.models import Student
from ..models import AttendanceRecord, Session
from ..serializers import SessionSerializer, TakeAttendanceSerializer
from ..services.sessions import take_attendance


def _with_visible_records(sessions, user):
    records = (
        policies.scoped(AttendanceRecord, user)
        .filter(student__in=policies.scoped(Student, user))
        .select_related('student')
    )
    return sessions.prefetch_related(Prefetch('records', queryset=records))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasOrganization])
def sessions_view(request):
    if request.method == 'GET':
        qs = policies.scoped(Session, request.user)
        group_id = uuid_param(request.query_params, 'group_id', required=False)
        if group_id:
            qs = qs.filter(group_id=group_id)
        day = date_param(request.query_params, 'date', required=False)
        if day:
            qs = qs.filter(date=day)
        return Response(SessionSerializer(_with_visible_records(qs, request.user), many=True).data)

    serializer = TakeAttendanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    group = policies.get_visible_or_404(Group, request.user, pk=data['group_id'])
    existed = Session.objects.filter(group=group, date=data['date'], class_index=data['class_index']).exists()
    session, _ = take_attendance(
        request.user, group, data['date'], data['records'], class_index=data['class_index'],
    )
    session = _with_visible_records(Session.objects.filter(pk=session.pk), request.user).get()
    return Response(
        SessionSerializer(session).data,
        status=status.HTTP_200_OK if existed else status.HTTP_201_CREATED,
    )
