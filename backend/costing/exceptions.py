"""
Custom exceptions for the recipe graph.
"""
from rest_framework import status

from core_backend.exceptions import EngineError


class GraphError(EngineError):
    """Base exception for malformed bill-of-materials graphs. Not retryable."""
    code = "graph_error"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def default_message(self):
        return "Invalid recipe graph"


class CyclicRecipeError(GraphError):
    """Raised when a recipe reaches itself through its components."""
    code = "cyclic_recipe"

    def __init__(self, path, message=None):
        self.path = list(path)
        if message is None:
            message = f"Cyclic recipe dependency detected: {' -> '.join(str(p) for p in self.path)}"
        super().__init__(message)


class RecipeDepthExceededError(GraphError):
    """Raised when sub-recipe nesting goes deeper than COSTING_MAX_BOM_DEPTH."""
    code = "recipe_depth_exceeded"

    def __init__(self, recipe_id, max_depth, message=None):
        self.recipe_id = recipe_id
        self.max_depth = max_depth
        if message is None:
            message = f"Recipe '{recipe_id}' nests sub-recipes deeper than {max_depth} levels"
        super().__init__(message)
