"""
Common utility functions for API responses and request metadata
"""
from rest_framework.response import Response
from rest_framework import status


def success_response(data=None, message="Success", status_code=status.HTTP_200_OK, headers=None):
    """
    Standard success response envelope
    """
    response_data = {
        "code": status_code,
        "msg": message,
        "data": data
    }
    return Response(response_data, status=status_code, headers=headers)


def offset_page(items, limit, offset):
    """
    Envelope for an offset/limit page of an already-sliced sequence
    """
    return {
        "list": items,
        "page": {
            "limit": limit,
            "offset": offset,
            "count": len(items),
            "hasMore": len(items) == limit,
        }
    }


def get_client_ip(request):
    """Get client IP address (first X-Forwarded-For hop when behind a proxy)"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or 'unknown'
