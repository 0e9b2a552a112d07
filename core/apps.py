import logging
from django.apps import AppConfig

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Core (Organization)'

    def ready(self):
        # Fail fast at startup if a domain model has no authorization policy
        from django.apps import apps
        from core import policies

        for label in ('core.Organization', 'core.OrganizationMember', 'core.AcademicYear',
                      'students.Student', 'groups.Group', 'groups.GroupStudent',
                      'attendance.Session', 'attendance.AttendanceRecord'):
            policies.policy_for(apps.get_model(label))
        logger.debug('Authorization policies registered for %d models', len(policies._registry))
