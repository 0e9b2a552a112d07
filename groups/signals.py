"""
Keep the denormalized organization of roster links, sessions and attendance records
in step with their group when the group moves to another organization.
"""
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import Group


@receiver(pre_save, sender=Group)
def remember_previous_organization(sender, instance, raw=False, **kwargs):
    if raw or instance._state.adding:
        instance._previous_organization_id = None
        return
    instance._previous_organization_id = (
        Group.objects.filter(pk=instance.pk).values_list('organization_id', flat=True).first()
    )


@receiver(post_save, sender=Group)
def propagate_organization_change(sender, instance, created, raw=False, **kwargs):
    if raw or created:
        return
    previous = getattr(instance, '_previous_organization_id', None)
    if previous is not None and previous != instance.organization_id:
        from .services import propagate_group_organization
        propagate_group_organization(instance)
