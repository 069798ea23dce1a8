"""
Engine error hierarchy and the DRF exception handler that renders it.

Every error carries a stable ``code``, an HTTP status and a ``retryable``
flag so API callers can tell a transient failure (store unreachable, lost
race) from a request that will never succeed as sent.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Base exception for costing and inventory engine errors."""
    code = "engine_error"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False

    def __init__(self, message=None, **details):
        self.details = details
        super().__init__(message or self.default_message())

    def default_message(self):
        return "Costing engine error"

    def to_dict(self):
        return {
            "error": str(self),
            "code": self.code,
            "retryable": self.retryable,
        }


class NotFound(EngineError):
    """A referenced ingredient, recipe, order or store does not exist."""
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND

    def default_message(self):
        return "Object not found"


class InvalidArgument(EngineError):
    """Input that can never succeed as sent."""
    code = "invalid_argument"
    http_status = status.HTTP_400_BAD_REQUEST

    def default_message(self):
        return "Invalid argument"


class Conflict(EngineError):
    """A concurrent write lost a race. Safe to retry."""
    code = "conflict"
    http_status = status.HTTP_409_CONFLICT
    retryable = True

    def default_message(self):
        return "Concurrent update conflict"


class Unavailable(EngineError):
    """The database could not be reached. Safe to retry."""
    code = "unavailable"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def default_message(self):
        return "Data store unavailable"


class PartialFailure(EngineError):
    """
    A multi-step write stopped after some steps were applied.

    ``applied_steps`` lists the steps that took effect so the caller can tell
    "order recorded, stock not yet applied" apart from a full success.
    """
    code = "partial_failure"

    def __init__(self, message=None, applied_steps=None, failed_step=None, **details):
        self.applied_steps = list(applied_steps or [])
        self.failed_step = failed_step
        super().__init__(message, **details)

    def default_message(self):
        return f"Operation failed at step '{self.failed_step}' after {self.applied_steps}"

    def to_dict(self):
        data = super().to_dict()
        data["applied_steps"] = self.applied_steps
        data["failed_step"] = self.failed_step
        return data


class IngredientNotFound(NotFound):
    code = "ingredient_not_found"

    def __init__(self, ingredient_id, message=None):
        self.ingredient_id = ingredient_id
        super().__init__(message or f"Ingredient '{ingredient_id}' not found")


class RecipeNotFound(NotFound):
    code = "recipe_not_found"

    def __init__(self, recipe_id, message=None):
        self.recipe_id = recipe_id
        super().__init__(message or f"Recipe '{recipe_id}' not found")


class OrderNotFound(NotFound):
    code = "order_not_found"

    def __init__(self, order_id, message=None):
        self.order_id = order_id
        super().__init__(message or f"Order '{order_id}' not found")


class InsufficientStockError(InvalidArgument):
    """Raised under the 'reject' negative-stock policy."""
    code = "insufficient_stock"

    def __init__(self, ingredient, requested, available, message=None):
        self.ingredient = ingredient
        self.requested = requested
        self.available = available
        if message is None:
            message = (
                f"Insufficient stock for {ingredient.name}. "
                f"Required: {requested}, Available: {available}"
            )
        super().__init__(message)


def engine_exception_handler(exc, context):
    """
    Render EngineError subclasses as JSON with their own status code.
    Everything else goes through DRF's default handler.
    """
    if isinstance(exc, EngineError):
        request = context.get('request')
        path = request.path if request else ''
        if exc.http_status >= 500:
            logger.error(f"Engine error on {path}: {exc.__class__.__name__}: {exc}")
        else:
            logger.info(f"Rejected request on {path}: {exc.code}: {exc}")
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
