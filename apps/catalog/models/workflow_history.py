from django.db import models


class ProductWorkflowHistory(models.Model):
    """
    Track status changes of products for audit purposes.
    Automatically created when a product's status changes.
    """
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='workflow_history',
        verbose_name='Product'
    )
    from_status = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        verbose_name='From status'
    )
    to_status = models.CharField(
        max_length=20,
        verbose_name='To status'
    )
    changed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='workflow_changes',
        verbose_name='Changed by'
    )
    notes = models.TextField(
        blank=True,
        verbose_name='Notes'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Changed at'
    )

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Workflow history entry'
        verbose_name_plural = 'Workflow history'

    def __str__(self):
        return f"{self.product.sku}: {self.from_status or '-'} → {self.to_status}"
