from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from stores.managers import StoreManager


class Ingredient(models.Model):
    """
    A purchasable raw material.

    Prices are per purchase unit (e.g. per kg); recipes consume it in usage
    units (e.g. g). ``conversion_factor`` is the number of usage units in one
    purchase unit.

    ``current_stock`` is a cached projection of the stock ledger in purchase
    units. It is only ever changed through StockLedgerService, and can be
    rebuilt from the ledger with ``manage.py rebuild_stock``.
    """
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='ingredients'
    )
    name = models.CharField(max_length=200)
    purchase_price = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Cost per purchase unit")
    )
    purchase_unit = models.CharField(
        max_length=20,
        help_text=_("Unit the ingredient is bought in, e.g. 'kg'")
    )
    usage_unit = models.CharField(
        max_length=20,
        help_text=_("Unit recipes consume it in, e.g. 'g'")
    )
    conversion_factor = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("1"),
        validators=[MinValueValidator(Decimal("0.0001"))],
        help_text=_("Usage units per one purchase unit (1 kg = 1000 g -> 1000)")
    )
    loss_rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("0.9999"))],
        help_text=_("Fraction lost to spoilage/trim before use, in [0, 1)")
    )
    current_stock = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Cached ledger balance in purchase units. May be negative.")
    )
    safety_stock = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Reorder threshold in purchase units")
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StoreManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Ingredient")
        verbose_name_plural = _("Ingredients")
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=Q(conversion_factor__gt=0),
                name='ingredient_conversion_factor_positive'
            ),
        ]
        indexes = [
            models.Index(fields=['store', 'name']),
        ]

    def __str__(self):
        return f"{self.name} ({self.purchase_unit})"

    @property
    def unit_cost(self):
        """Cost per usage unit, loss-adjusted."""
        from costing.services.unit_cost import cost_per_usage_unit
        return cost_per_usage_unit(self.purchase_price, self.conversion_factor, self.loss_rate)

    @property
    def is_below_safety_stock(self):
        return self.current_stock < self.safety_stock


class Recipe(models.Model):
    """
    A menu item or a sub-recipe (prep item such as a sauce or dough).

    Components may reference other recipes, forming a bill-of-materials graph.
    """
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='recipes'
    )
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100, blank=True)
    selling_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        help_text=_("Menu price per portion. Zero for prep items that are not sold.")
    )
    is_sub_recipe = models.BooleanField(
        default=False,
        help_text=_("Prep item produced in batches and used by other recipes")
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StoreManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        ordering = ['name']
        indexes = [
            models.Index(fields=['store', 'name']),
        ]

    def __str__(self):
        return self.name


class ComponentType(models.TextChoices):
    INGREDIENT = "ingredient", _("Ingredient")
    RECIPE = "recipe", _("Sub-recipe")


class RecipeComponent(models.Model):
    """
    One edge of the bill-of-materials graph.

    ``quantity`` is how much of the child one portion of the parent consumes:
    usage units for an ingredient child, portions for a sub-recipe child.
    The model does not prevent cycles; the resolver rejects them.
    """
    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        related_name='components',
        help_text=_("The parent recipe")
    )
    item_type = models.CharField(
        max_length=20,
        choices=ComponentType.choices,
    )
    ingredient = models.ForeignKey(
        Ingredient,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='used_in',
    )
    sub_recipe = models.ForeignKey(
        Recipe,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='used_in',
    )
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
    )

    class Meta:
        verbose_name = _("Recipe Component")
        verbose_name_plural = _("Recipe Components")
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(item_type=ComponentType.INGREDIENT, ingredient__isnull=False, sub_recipe__isnull=True)
                    | Q(item_type=ComponentType.RECIPE, sub_recipe__isnull=False, ingredient__isnull=True)
                ),
                name='component_item_matches_type'
            ),
        ]
        indexes = [
            models.Index(fields=['recipe']),
        ]

    def __str__(self):
        child = self.ingredient if self.item_type == ComponentType.INGREDIENT else self.sub_recipe
        return f"{self.quantity} x {child} in {self.recipe}"

    @property
    def item_id(self):
        if self.item_type == ComponentType.INGREDIENT:
            return self.ingredient_id
        return self.sub_recipe_id
