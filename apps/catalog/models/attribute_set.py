from django.db import models, transaction
from django.db.models import F


class AttributeSet(models.Model):
    """
    A named collection of attributes assigned to products.
    Attributes are laid out in ordered groups; memberships without a group
    are shown after every group.
    """
    code = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='Code'
    )
    label = models.CharField(
        max_length=255,
        verbose_name='Label'
    )
    product_type = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        verbose_name='Product type'
    )
    is_default = models.BooleanField(
        default=False,
        verbose_name='Default'
    )
    attributes = models.ManyToManyField(
        'catalog.Attribute',
        through='AttributeSetAttribute',
        related_name='attribute_sets',
        verbose_name='Attributes'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['code']
        verbose_name = 'Attribute set'
        verbose_name_plural = 'Attribute sets'

    def __str__(self):
        return self.label

    def ordered_memberships(self):
        """
        Memberships in display order: group sort order, then membership sort
        order, ties broken on id. Ungrouped memberships come last.
        """
        return self.memberships.select_related('attribute', 'group').order_by(
            F('group__sort_order').asc(nulls_last=True),
            F('group_id').asc(nulls_last=True),
            'sort_order',
            'id',
        )

    def ordered_attributes(self):
        return [membership.attribute for membership in self.ordered_memberships()]


class AttributeGroup(models.Model):
    attribute_set = models.ForeignKey(
        AttributeSet,
        on_delete=models.CASCADE,
        related_name='groups',
        verbose_name='Attribute set'
    )
    code = models.CharField(
        max_length=100,
        verbose_name='Code'
    )
    label = models.CharField(
        max_length=255,
        verbose_name='Label'
    )
    sort_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Sort order'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['sort_order', 'id']
        verbose_name = 'Attribute group'
        verbose_name_plural = 'Attribute groups'

    def __str__(self):
        return f"{self.attribute_set.code} / {self.label}"

    def move_to_set(self, target_set):
        """
        Move the group, and its memberships, into ``target_set``.

        Memberships whose attribute is already in the target set are dropped;
        the rest follow the group.
        """
        if target_set.pk == self.attribute_set_id:
            return 0

        with transaction.atomic():
            existing = AttributeSetAttribute.objects.filter(
                attribute_set=target_set
            ).values_list('attribute_id', flat=True)
            removed, _ = self.memberships.filter(attribute_id__in=list(existing)).delete()
            self.memberships.update(attribute_set=target_set)
            self.attribute_set = target_set
            self.save(update_fields=['attribute_set', 'updated_at'])
        return removed


class AttributeSetAttribute(models.Model):
    """Membership of an attribute in a set, optionally inside a group."""
    attribute_set = models.ForeignKey(
        AttributeSet,
        on_delete=models.CASCADE,
        related_name='memberships',
        verbose_name='Attribute set'
    )
    attribute = models.ForeignKey(
        'catalog.Attribute',
        on_delete=models.CASCADE,
        related_name='set_memberships',
        verbose_name='Attribute'
    )
    group = models.ForeignKey(
        AttributeGroup,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='memberships',
        verbose_name='Group'
    )
    sort_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Sort order'
    )

    class Meta:
        ordering = ['sort_order', 'id']
        unique_together = ['attribute_set', 'attribute']
        verbose_name = 'Attribute set membership'
        verbose_name_plural = 'Attribute set memberships'

    def __str__(self):
        return f"{self.attribute_set.code} - {self.attribute.code}"
