"""
Bill-of-materials cost resolver.

Walks the recipe component graph depth-first and returns, for N portions of
a recipe, the total usage of every leaf ingredient (in that ingredient's
usage unit) and the total loss-adjusted material cost.

Supports sub-recipes (e.g. a "set" containing two portions of a burger,
where the burger itself uses a sauce prep recipe).

The graph is loaded once per operation into keyed maps (BOMGraph) so that
resolving many order lines or a whole sales window never re-queries or
re-scans components per node.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from django.conf import settings

from core_backend.exceptions import IngredientNotFound, InvalidArgument, RecipeNotFound
from costing.exceptions import CyclicRecipeError, RecipeDepthExceededError
from costing.models import ComponentType, Ingredient, Recipe, RecipeComponent
from costing.services.unit_cost import cost_per_usage_unit

logger = logging.getLogger(__name__)

DEFAULT_MAX_BOM_DEPTH = 10


@dataclass
class BOMResolution:
    """Leaf ingredient usage (usage units, keyed by ingredient id) and total material cost."""
    usage: Dict[int, Decimal] = field(default_factory=dict)
    total_cost: Decimal = Decimal("0")

    def add_usage(self, ingredient_id, quantity, cost):
        self.usage[ingredient_id] = self.usage.get(ingredient_id, Decimal("0")) + quantity
        self.total_cost += cost

    def merge(self, other: "BOMResolution"):
        for ingredient_id, quantity in other.usage.items():
            self.usage[ingredient_id] = self.usage.get(ingredient_id, Decimal("0")) + quantity
        self.total_cost += other.total_cost
        return self


@dataclass
class IngredientCostLine:
    """One leaf ingredient in a recipe cost breakdown."""
    ingredient_id: int
    ingredient_name: str
    quantity: Decimal  # usage units
    usage_unit: str
    unit_cost: Decimal  # per usage unit, loss-adjusted
    extended_cost: Decimal


@dataclass
class RecipeCostBreakdown:
    """Complete cost breakdown for N portions of a recipe."""
    recipe_id: int
    recipe_name: str
    quantity: Decimal
    selling_price: Decimal
    total_cost: Decimal
    margin_amount: Optional[Decimal]
    margin_percent: Optional[Decimal]
    ingredients: List[IngredientCostLine] = field(default_factory=list)


class BOMGraph:
    """
    Keyed, in-memory view of one store's recipe graph.

    - recipes: recipe id -> Recipe
    - components: parent recipe id -> [RecipeComponent]
    - ingredients: ingredient id -> Ingredient
    """

    def __init__(self, recipes: Iterable[Recipe], components: Iterable[RecipeComponent], ingredients: Iterable[Ingredient]):
        self.recipes = {recipe.id: recipe for recipe in recipes}
        self.ingredients = {ingredient.id: ingredient for ingredient in ingredients}
        self.components = defaultdict(list)
        for component in components:
            self.components[component.recipe_id].append(component)

    @classmethod
    def for_store(cls, store):
        """Load the full recipe graph for a store in three queries."""
        return cls(
            recipes=Recipe.all_objects.filter(store=store),
            components=RecipeComponent.objects.filter(recipe__store=store),
            ingredients=Ingredient.all_objects.filter(store=store),
        )

    def components_of(self, recipe_id) -> List[RecipeComponent]:
        return self.components.get(recipe_id, [])

    def get_recipe(self, recipe_id) -> Recipe:
        try:
            return self.recipes[recipe_id]
        except KeyError:
            raise RecipeNotFound(recipe_id)

    def get_ingredient(self, ingredient_id) -> Ingredient:
        try:
            return self.ingredients[ingredient_id]
        except KeyError:
            raise IngredientNotFound(ingredient_id)


class BOMResolver:
    """
    Resolves ingredient usage and material cost through the recipe graph.

    Cycle handling: the ids of the recipes on the current path are tracked,
    and reaching one of them again raises CyclicRecipeError. A recipe that
    appears on two separate branches (a shared prep item) is not a cycle.
    Nesting deeper than COSTING_MAX_BOM_DEPTH raises RecipeDepthExceededError.
    """

    def __init__(self, store=None, graph: Optional[BOMGraph] = None, max_depth: Optional[int] = None):
        if graph is None:
            if store is None:
                raise ValueError("BOMResolver needs a store or a preloaded graph")
            graph = BOMGraph.for_store(store)
        self.store = store
        self.graph = graph
        self.max_depth = max_depth if max_depth is not None else getattr(
            settings, 'COSTING_MAX_BOM_DEPTH', DEFAULT_MAX_BOM_DEPTH
        )
        self._unit_costs: Dict[int, Decimal] = {}

    def unit_cost(self, ingredient_id) -> Decimal:
        """Loss-adjusted cost per usage unit, computed once per ingredient."""
        if ingredient_id not in self._unit_costs:
            ingredient = self.graph.get_ingredient(ingredient_id)
            self._unit_costs[ingredient_id] = cost_per_usage_unit(
                ingredient.purchase_price,
                ingredient.conversion_factor,
                ingredient.loss_rate,
            )
        return self._unit_costs[ingredient_id]

    def resolve_usage_and_cost(self, root_recipe_id, quantity) -> BOMResolution:
        """
        Usage and cost of ``quantity`` portions of a recipe.

        Args:
            root_recipe_id: The recipe to resolve.
            quantity: Number of portions (>= 0).

        Returns:
            BOMResolution with usage in each ingredient's usage unit.

        Raises:
            RecipeNotFound, IngredientNotFound, InvalidArgument, GraphError
        """
        quantity = self._validate_quantity(quantity)
        self.graph.get_recipe(root_recipe_id)

        result = BOMResolution()
        self._walk(root_recipe_id, quantity, (), result)
        return result

    def resolve_many(self, lines: Iterable[Tuple[int, Decimal]]) -> BOMResolution:
        """Resolve several (recipe_id, quantity) pairs against the same graph and merge them."""
        combined = BOMResolution()
        for recipe_id, quantity in lines:
            combined.merge(self.resolve_usage_and_cost(recipe_id, quantity))
        return combined

    def _walk(self, recipe_id, parent_quantity: Decimal, path: tuple, result: BOMResolution):
        if recipe_id in path:
            raise CyclicRecipeError(path + (recipe_id,))

        # path holds every ancestor, so its length is the nesting depth
        if len(path) > self.max_depth:
            raise RecipeDepthExceededError(path[0], self.max_depth)

        path = path + (recipe_id,)

        for component in self.graph.components_of(recipe_id):
            child_total = component.quantity * parent_quantity

            if component.item_type == ComponentType.INGREDIENT:
                result.add_usage(
                    component.ingredient_id,
                    child_total,
                    child_total * self.unit_cost(component.ingredient_id),
                )
            else:
                self.graph.get_recipe(component.sub_recipe_id)
                self._walk(component.sub_recipe_id, child_total, path, result)

    @staticmethod
    def _validate_quantity(quantity) -> Decimal:
        try:
            quantity = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidArgument(f"Invalid quantity: {quantity!r}")
        if not quantity.is_finite():
            raise InvalidArgument(f"Quantity must be a finite number, got {quantity}")
        if quantity < 0:
            raise InvalidArgument(f"Quantity cannot be negative, got {quantity}")
        return quantity

    def cost_breakdown(self, recipe_id, quantity=Decimal("1")) -> RecipeCostBreakdown:
        """
        Per-ingredient cost breakdown with margin against the selling price.

        Margin is only computed for recipes with a selling price.
        """
        recipe = self.graph.get_recipe(recipe_id)
        resolution = self.resolve_usage_and_cost(recipe_id, quantity)
        quantity = self._validate_quantity(quantity)

        lines = []
        for ingredient_id, used in resolution.usage.items():
            ingredient = self.graph.get_ingredient(ingredient_id)
            unit_cost = self.unit_cost(ingredient_id)
            lines.append(IngredientCostLine(
                ingredient_id=ingredient_id,
                ingredient_name=ingredient.name,
                quantity=used,
                usage_unit=ingredient.usage_unit,
                unit_cost=unit_cost.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
                extended_cost=(used * unit_cost).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            ))
        lines.sort(key=lambda line: line.extended_cost, reverse=True)

        total_cost = resolution.total_cost.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        revenue = recipe.selling_price * quantity
        margin_amount = None
        margin_percent = None
        if revenue > 0:
            margin_amount = (revenue - total_cost).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            margin_percent = ((margin_amount / revenue) * 100).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )

        return RecipeCostBreakdown(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            quantity=quantity,
            selling_price=recipe.selling_price,
            total_cost=total_cost,
            margin_amount=margin_amount,
            margin_percent=margin_percent,
            ingredients=lines,
        )
