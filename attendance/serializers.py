"""
Serializers for attendance app
"""
from rest_framework import serializers

from .models import AttendanceRecord, Session


class AttendanceRecordSerializer(serializers.ModelSerializer):
    session_id = serializers.UUIDField(read_only=True)
    student_id = serializers.UUIDField(read_only=True)
    student_name = serializers.CharField(source='student.full_name', read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = [
            'id', 'session_id', 'student_id', 'student_name',
            'status', 'justification', 'comment', 'updated_at',
        ]
        read_only_fields = fields


class SessionSerializer(serializers.ModelSerializer):
    org_id = serializers.UUIDField(source='organization_id', read_only=True)
    group_id = serializers.UUIDField(read_only=True)
    records = AttendanceRecordSerializer(many=True, read_only=True)

    class Meta:
        model = Session
        fields = ['id', 'org_id', 'group_id', 'date', 'class_index', 'created_at', 'updated_at', 'records']
        read_only_fields = fields


class RecordInputSerializer(serializers.Serializer):
    student_id = serializers.UUIDField()
    status = serializers.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)
    justification = serializers.ChoiceField(
        choices=AttendanceRecord.JUSTIFICATION_CHOICES, required=False, allow_null=True,
    )
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TakeAttendanceSerializer(serializers.Serializer):
    group_id = serializers.UUIDField()
    date = serializers.DateField()
    class_index = serializers.IntegerField(min_value=1, default=1)
    records = RecordInputSerializer(many=True)

    def validate_records(self, records):
        student_ids = [r['student_id'] for r in records]
        if len(student_ids) != len(set(student_ids)):
            raise serializers.ValidationError('Each student may appear only once.')
        return records
