"""
Serializers for groups app
"""
from rest_framework import serializers

from .models import Group


class GroupSerializer(serializers.ModelSerializer):
    org_id = serializers.UUIDField(source='organization_id', required=False)
    academic_year_id = serializers.UUIDField()
    teacher_id = serializers.UUIDField(required=False, allow_null=True)
    teacher_name = serializers.SerializerMethodField()
    student_count = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id', 'org_id', 'academic_year_id', 'teacher_id', 'teacher_name',
            'name', 'type', 'student_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_student_count(self, obj):
        count = getattr(obj, 'roster_size', None)
        return count if count is not None else obj.group_students.count()

    def get_teacher_name(self, obj):
        if obj.teacher_id is None:
            return None
        return obj.teacher.full_name or obj.teacher.email

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required.')
        return value.strip()


class RosterRowSerializer(serializers.Serializer):
    """One parsed roster row (manual entry or CSV import)."""
    first_name = serializers.CharField(max_length=150, allow_blank=True)
    last_name = serializers.CharField(max_length=150, allow_blank=True)
    doc_id = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)


class GroupCreateSerializer(GroupSerializer):
    students = RosterRowSerializer(many=True, required=False)

    class Meta(GroupSerializer.Meta):
        fields = GroupSerializer.Meta.fields + ['students']

    def validate_students(self, rows):
        for row in rows:
            if not row['first_name'].strip() or not row['last_name'].strip():
                raise serializers.ValidationError('Every student needs a first and last name.')
        return rows


class RosterImportSerializer(serializers.Serializer):
    rows = RosterRowSerializer(many=True)


class RosterLinkSerializer(serializers.Serializer):
    student_id = serializers.UUIDField()
