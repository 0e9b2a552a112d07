"""
Aggregation RPC endpoints. Parameters come in the JSON body (query string accepted too).
- POST /rpc/get_org_analytics              {org_id, start_date, end_date, teacher_id?}
- POST /rpc/get_group_stats                {group_id, start_date, end_date}
- POST /rpc/get_student_stats              {student_id, group_id}
- POST /rpc/get_daily_attendance_summary   {group_id, date}
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.utils import date_param, date_range_params, uuid_param
from ..services import analytics


def _params(request):
    data = request.query_params.copy()
    if hasattr(request.data, 'items'):
        for key, value in request.data.items():
            data[key] = value
    return data


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def org_analytics_view(request):
    params = _params(request)
    org_id = uuid_param(params, 'org_id')
    start_date, end_date = date_range_params(params)
    teacher_id = uuid_param(params, 'teacher_id', required=False)
    return Response(analytics.get_org_analytics(request.user, org_id, start_date, end_date, teacher_id=teacher_id))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def group_stats_view(request):
    params = _params(request)
    group_id = uuid_param(params, 'group_id')
    start_date, end_date = date_range_params(params)
    return Response(analytics.get_group_stats(request.user, group_id, start_date, end_date))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def student_stats_view(request):
    params = _params(request)
    student_id = uuid_param(params, 'student_id')
    group_id = uuid_param(params, 'group_id')
    return Response(analytics.get_student_stats(request.user, student_id, group_id))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def daily_summary_view(request):
    params = _params(request)
    group_id = uuid_param(params, 'group_id')
    day = date_param(params, 'date')
    return Response(analytics.get_daily_attendance_summary(request.user, group_id, day))
