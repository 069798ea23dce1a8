"""
Permissions for store-scoped engine endpoints.

Authentication is handled upstream; these endpoints only require that the
request was resolved to an active store by StoreMiddleware.
"""
from rest_framework import permissions


class HasStoreContext(permissions.BasePermission):
    """
    Allows access only when request.store is set.

    Denies access to:
    - Requests without an X-Store-ID / X-Store header (outside development)
    """
    message = "A store must be selected (X-Store-ID header)."

    def has_permission(self, request, view):
        return getattr(request, 'store', None) is not None
