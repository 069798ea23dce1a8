"""
Unit of work for multi-step engine writes.

Wraps ``transaction.atomic()`` so that every database write issued inside the
block commits or rolls back together. Steps are named as they run, which
gives failure logs and translated errors a precise location.
"""
import logging

from django.db import (
    DatabaseError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    transaction,
)

from core_backend.exceptions import Conflict, EngineError, Unavailable

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Usage:
        with UnitOfWork("create_order") as uow:
            uow.step("persist_order")
            order = Order.all_objects.create(...)
            uow.step("apply_stock")
            ...
            uow.on_commit(lambda: logger.info(f"Created order {order.order_number}"))

    Database errors are translated:
    - OperationalError / InterfaceError -> Unavailable (retryable)
    - IntegrityError -> Conflict (retryable)
    """

    def __init__(self, name, using=None):
        self.name = name
        self.using = using
        self.completed_steps = []
        self.current_step = None
        self._atomic = None

    def step(self, name):
        if self.current_step is not None:
            self.completed_steps.append(self.current_step)
        self.current_step = name

    def on_commit(self, func):
        """Run ``func`` once the outermost transaction commits; dropped on rollback."""
        transaction.on_commit(func, using=self.using)

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            try:
                self._atomic.__exit__(None, None, None)
            except DatabaseError as commit_error:
                logger.error(f"Unit of work '{self.name}' failed to commit: {commit_error}")
                raise self._translate(commit_error) from commit_error
            if self.current_step is not None:
                self.completed_steps.append(self.current_step)
                self.current_step = None
            return False

        self._atomic.__exit__(exc_type, exc, tb)

        logger.error(
            f"Unit of work '{self.name}' rolled back at step '{self.current_step}' "
            f"(completed: {self.completed_steps}): {exc_type.__name__}: {exc}"
        )

        if isinstance(exc, EngineError):
            return False
        if isinstance(exc, DatabaseError):
            raise self._translate(exc) from exc
        return False

    def _translate(self, exc):
        if isinstance(exc, IntegrityError):
            return Conflict(f"{self.name} failed at '{self.current_step}': {exc}")
        return Unavailable(f"{self.name} failed at '{self.current_step}': {exc}")
