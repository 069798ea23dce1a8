import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import JsonResponse

from .models import Store
from .managers import set_current_store

logger = logging.getLogger(__name__)


class StoreNotFoundError(Exception):
    """Raised when the store cannot be resolved from the request."""
    pass


class StoreMiddleware:
    """
    Resolves the store from the request and attaches it to request.store.

    Resolution precedence:
    1. X-Store-ID header (store UUID)
    2. X-Store header (store slug)
    3. DEFAULT_STORE_SLUG setting (development only)
    4. No store - API views reject the request
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Admin operates without store context
        if request.path.startswith('/admin/'):
            request.store = None
            set_current_store(None)
            return self.get_response(request)

        try:
            store = self.get_store_from_request(request)
            request.store = store
            set_current_store(store)

            if store and not store.is_active:
                return JsonResponse({
                    'error': 'Store is inactive',
                    'code': 'STORE_INACTIVE'
                }, status=403)

            return self.get_response(request)

        except StoreNotFoundError as e:
            return JsonResponse({
                'error': str(e),
                'code': 'STORE_NOT_FOUND'
            }, status=400)

        finally:
            # Always clear thread-local context so it can't leak into the next request
            set_current_store(None)

    def get_store_from_request(self, request):
        store_id = request.headers.get('X-Store-ID')
        if store_id:
            try:
                return Store.objects.get(id=store_id)
            except (Store.DoesNotExist, ValidationError, ValueError):
                raise StoreNotFoundError(f"Store '{store_id}' not found")

        slug = request.headers.get('X-Store')
        if slug:
            try:
                return Store.objects.get(slug=slug)
            except Store.DoesNotExist:
                raise StoreNotFoundError(f"Store '{slug}' not found")

        default_slug = getattr(settings, 'DEFAULT_STORE_SLUG', None)
        if settings.DEBUG and default_slug:
            store = Store.objects.filter(slug=default_slug).first()
            if store:
                logger.debug(f"Using development fallback store '{default_slug}'")
            return store

        return None
