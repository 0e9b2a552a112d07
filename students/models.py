"""
Student - institution-wide learner record, shared by every group of the organization.
"""
import uuid

from django.db import models


def normalize_name_key(first_name, last_name):
    """'  Ana ', 'PÉREZ' -> 'ana|pérez'. Used to match roster rows and spot duplicates."""
    return f"{(first_name or '').strip().lower()}|{(last_name or '').strip().lower()}"


class Student(models.Model):
    """
    doc_id (national id / DNI) should be unique within an organization when present;
    checked before insert by students.services, not by a database constraint.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.PROTECT,
        related_name='students',
        db_column='org_id',
    )
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    doc_id = models.CharField(max_length=50, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students'
        verbose_name = 'Student'
        verbose_name_plural = 'Students'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['organization', 'doc_id'], name='student_org_doc_idx'),
            models.Index(fields=['organization', 'last_name'], name='student_org_last_name_idx'),
        ]

    def __str__(self):
        return f"{self.last_name}, {self.first_name}"

    def save(self, *args, **kwargs):
        self.doc_id = (self.doc_id or '').strip() or None
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def name_key(self):
        return normalize_name_key(self.first_name, self.last_name)
