"""
Store scoping for querysets.

StoreMiddleware selects one store per request; models owned by a store
read it through StoreManager. Services never rely on it: they receive the
store as an argument and query through ``all_objects``.
"""
from django.db import models
from threading import local

_thread_locals = local()


def set_current_store(store):
    """Select the store for this thread; None clears the selection."""
    _thread_locals.store = store


def get_current_store():
    return getattr(_thread_locals, 'store', None)


class StoreManager(models.Manager):
    """
    Rows of the selected store only; no rows when no store is selected.

        class Recipe(models.Model):
            store = models.ForeignKey('stores.Store', on_delete=models.CASCADE)

            objects = StoreManager()
            all_objects = models.Manager()
    """

    def get_queryset(self):
        queryset = super().get_queryset()
        store = get_current_store()
        if store is None:
            return queryset.none()
        return queryset.filter(store=store)
