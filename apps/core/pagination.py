import math

from rest_framework.pagination import PageNumberPagination

from .responses import success


class EnvelopePagination(PageNumberPagination):
    """
    ``?page=`` / ``?limit=`` pagination that reports its position in ``meta``.
    """
    page_size_query_param = 'limit'
    max_page_size = 1000

    def get_meta(self):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return {
            'total': total,
            'page': self.page.number,
            'limit': limit,
            'totalPages': math.ceil(total / limit) if limit else 0,
        }

    def get_paginated_response(self, data, message='Success'):
        return success(data, message, self.get_meta())

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'success': {'type': 'boolean'},
                'statusCode': {'type': 'integer'},
                'message': {'type': 'string'},
                'data': schema,
                'meta': {
                    'type': 'object',
                    'properties': {
                        'total': {'type': 'integer'},
                        'page': {'type': 'integer'},
                        'limit': {'type': 'integer'},
                        'totalPages': {'type': 'integer'},
                    },
                },
            },
        }
