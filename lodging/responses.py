"""
Response envelope and pagination helpers shared by the view modules.

Successful responses look like ``{"success": true, "message"?, "data"?}``;
paginated collections carry ``pagination: {current, pages, total}`` next
to the items inside ``data``.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from rest_framework import serializers
from rest_framework.response import Response


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=10)


def success(data: Any = None, message: Optional[str] = None, status: int = 200, **extra) -> Response:
    body: dict[str, Any] = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    body.update(extra)
    return Response(body, status=status)


def page_params(query_params, default_limit: int = 10) -> tuple[int, int]:
    q = PageQuerySerializer(data={
        'page': query_params.get('page', 1),
        'limit': query_params.get('limit', default_limit),
    })
    q.is_valid(raise_exception=True)
    return q.validated_data['page'], q.validated_data['limit']


def paginate(items, page: int, limit: int) -> tuple[list, dict]:
    """Slice a queryset or list and build the pagination block."""
    total = items.count() if hasattr(items, 'count') and not isinstance(items, list) else len(items)
    start = (page - 1) * limit
    window = list(items[start:start + limit])
    return window, {'current': page, 'pages': math.ceil(total / limit) if total else 0, 'total': total}


def paginated(key: str, items: Iterable, pagination: dict, message: Optional[str] = None, **data) -> Response:
    return success({key: list(items), 'pagination': pagination, **data}, message=message)
