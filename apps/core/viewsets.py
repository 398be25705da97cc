from rest_framework import viewsets

from . import responses


class EnvelopeMixin:
    """
    Answer list/retrieve with the standard success envelope.

    Subclasses set ``resource_name`` (e.g. ``'Product'``) which is used to
    build the envelope messages.
    """
    resource_name = 'Record'
    resource_name_plural = None

    @property
    def plural_name(self):
        return self.resource_name_plural or f'{self.resource_name}s'

    def envelope_list(self, queryset, message=None):
        """Paginate ``queryset`` and wrap the page in the success envelope."""
        message = message or f'{self.plural_name} retrieved successfully'

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.paginator.get_paginated_response(serializer.data, message)

        serializer = self.get_serializer(queryset, many=True)
        return responses.success(serializer.data, message)

    def list(self, request, *args, **kwargs):
        return self.envelope_list(self.filter_queryset(self.get_queryset()))

    def retrieve(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_object())
        return responses.success(serializer.data, f'{self.resource_name} retrieved successfully')


class EnvelopeModelViewSet(EnvelopeMixin, viewsets.ModelViewSet):

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return responses.created(serializer.data, f'{self.resource_name} created successfully')

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)

        if getattr(instance, '_prefetched_objects_cache', None):
            instance._prefetched_objects_cache = {}

        return responses.success(serializer.data, f'{self.resource_name} updated successfully')

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        return responses.success(None, f'{self.resource_name} deleted successfully')


class EnvelopeReadOnlyModelViewSet(EnvelopeMixin, viewsets.ReadOnlyModelViewSet):
    pass
