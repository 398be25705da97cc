"""
Django signals for the catalog app.
Handles automatic creation of workflow history records.
"""
import logging

from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import Product, ProductWorkflowHistory

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Product)
def track_status_changes(sender, instance, **kwargs):
    """
    Create ProductWorkflowHistory records when a product's status changes.

    Callers may set ``instance._changed_by`` and ``instance._workflow_notes``
    before saving to attribute the change.
    """
    if not instance.pk:
        # New product, no history to track
        return

    try:
        old_instance = Product.objects.only('status').get(pk=instance.pk)
    except Product.DoesNotExist:
        return

    if old_instance.status == instance.status:
        return

    ProductWorkflowHistory.objects.create(
        product=instance,
        from_status=old_instance.status,
        to_status=instance.status,
        changed_by=getattr(instance, '_changed_by', None),
        notes=getattr(instance, '_workflow_notes', ''),
    )
    logger.info('Product %s moved %s -> %s', instance.sku, old_instance.status, instance.status)
