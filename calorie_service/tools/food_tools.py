from typing import Any, Dict, Optional

from core.exceptions import NotFoundError, ToolExecutionError
from repositories.food import UserFoodRepository, FoodEntryRepository
from services.nutrition import daily_context, entry_calories
from tools.base import ToolContext, ToolOutcome, SideEffect, SideEffectKind


def _number(value: Any, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ToolExecutionError(f"Invalid number for {field}: {value!r}")


def _with_daily_context(ctx: ToolContext, message: str) -> str:
    return f"{message}\n\n{daily_context(ctx.db, ctx.user_id, ctx.target_date)}"


def _supplied(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def create_food(
    ctx: ToolContext,
    name: str,
    calories_per_100g: float,
    protein_per_100g: float,
    carbs_per_100g: float,
    fat_per_100g: float,
    fiber_per_100g: float,
    salt_per_100g: float,
    default_grams: Optional[float] = None,
    comments: Optional[str] = None,
) -> ToolOutcome:
    """
    Add a new food to the user's food database. Use this when the food doesn't exist in the database yet.

    Args:
        name: Name of the food
        calories_per_100g: Calories per 100g
        protein_per_100g: Protein in grams per 100g
        carbs_per_100g: Carbohydrates in grams per 100g
        fat_per_100g: Fat in grams per 100g
        fiber_per_100g: Fiber in grams per 100g
        salt_per_100g: Salt in grams per 100g
        default_grams: Default portion size in grams (optional)
        comments: Additional notes like portion descriptions or brand info (optional, you can leave it empty)
    """
    name = (name or "").strip()
    if not name:
        raise ToolExecutionError("Food name is required.")

    existing = UserFoodRepository.get_by_name(ctx.db, ctx.user_id, name)
    if existing:
        raise ToolExecutionError(
            f'"{name}" already exists in your food database (ID: {existing.id}). '
            "Use update_food or add_food_entry with that ID."
        )

    values = {
        "calories_per_100g": calories_per_100g,
        "protein_per_100g": protein_per_100g,
        "carbs_per_100g": carbs_per_100g,
        "fat_per_100g": fat_per_100g,
        "fiber_per_100g": fiber_per_100g,
        "salt_per_100g": salt_per_100g,
    }
    fields = {key: _number(value, key) for key, value in values.items()}
    fields["default_grams"] = _number(default_grams, "default_grams") if default_grams else None
    fields["comments"] = comments or None

    food = UserFoodRepository.create(ctx.db, ctx.user_id, name=name, **fields)
    return ToolOutcome(
        result_text=(
            f'Added "{food.name}" to your food database.\n'
            f"Food ID: {food.id}. You can now use add_food_entry with this ID."
        ),
        side_effect=SideEffect(SideEffectKind.USER_FOOD_CREATED, food.to_dict()),
    )


def update_food(
    ctx: ToolContext,
    food_id: str,
    name: Optional[str] = None,
    calories_per_100g: Optional[float] = None,
    protein_per_100g: Optional[float] = None,
    carbs_per_100g: Optional[float] = None,
    fat_per_100g: Optional[float] = None,
    fiber_per_100g: Optional[float] = None,
    salt_per_100g: Optional[float] = None,
    default_grams: Optional[float] = None,
    comments: Optional[str] = None,
) -> ToolOutcome:
    """
    Update an existing food in the user's food database. Use the food ID from the database. Only the supplied fields change.

    Args:
        food_id: The ID of the food to update
        name: New name (optional)
        calories_per_100g: Calories per 100g (optional)
        protein_per_100g: Protein in grams per 100g (optional)
        carbs_per_100g: Carbohydrates in grams per 100g (optional)
        fat_per_100g: Fat in grams per 100g (optional)
        fiber_per_100g: Fiber in grams per 100g (optional)
        salt_per_100g: Salt in grams per 100g (optional)
        default_grams: Default portion size in grams (optional)
        comments: Additional notes (optional)
    """
    food = UserFoodRepository.get_for_user(ctx.db, food_id, ctx.user_id)
    if not food:
        raise NotFoundError("Food not found in database.")

    nutrients = _supplied({
        "calories_per_100g": calories_per_100g,
        "protein_per_100g": protein_per_100g,
        "carbs_per_100g": carbs_per_100g,
        "fat_per_100g": fat_per_100g,
        "fiber_per_100g": fiber_per_100g,
        "salt_per_100g": salt_per_100g,
        "default_grams": default_grams,
    })
    changes = {key: _number(value, key) for key, value in nutrients.items()}
    if name is not None and name.strip():
        changes["name"] = name.strip()
    if comments is not None:
        changes["comments"] = comments or None

    if not changes:
        return ToolOutcome(result_text=f'No changes made to "{food.name}".')

    food = UserFoodRepository.update(ctx.db, food, changes)
    return ToolOutcome(
        result_text=f'Updated "{food.name}" in your food database.',
        side_effect=SideEffect(SideEffectKind.USER_FOOD_UPDATED, food.to_dict()),
    )


def delete_food(ctx: ToolContext, food_id: str) -> ToolOutcome:
    """
    Delete a food from the user's food database. Log entries that use this food are removed too.

    Args:
        food_id: The ID of the food to delete
    """
    food = UserFoodRepository.get_for_user(ctx.db, food_id, ctx.user_id)
    if not food:
        raise NotFoundError("Food not found in database.")

    name = food.name
    UserFoodRepository.delete(ctx.db, food)
    return ToolOutcome(
        result_text=_with_daily_context(ctx, f'Deleted "{name}" from your food database.'),
        side_effect=SideEffect(SideEffectKind.USER_FOOD_DELETED, food_id),
    )


def add_food_entry(ctx: ToolContext, user_food_id: str, grams: float) -> ToolOutcome:
    """
    Add a food entry to the user's daily log. The food must already exist in the database - use its ID.

    Args:
        user_food_id: The ID of the food from the user's database
        grams: Amount consumed in grams
    """
    food = UserFoodRepository.get_for_user(ctx.db, user_food_id, ctx.user_id)
    if not food:
        raise NotFoundError("Food not found in database. Please create it first using create_food.")

    amount = _number(grams, "grams")
    if amount <= 0:
        raise ToolExecutionError("grams must be greater than zero.")

    entry = FoodEntryRepository.create(ctx.db, ctx.user_id, food.id, amount, ctx.target_date)
    message = f"Added {amount:g}g of {food.name} ({entry_calories(food, amount)} kcal) to your log."
    return ToolOutcome(
        result_text=_with_daily_context(ctx, message),
        side_effect=SideEffect(SideEffectKind.FOOD_ADDED, entry.to_dict()),
    )


def edit_food_entry(
    ctx: ToolContext,
    entry_id: str,
    grams: Optional[float] = None,
    calories_per_100g: Optional[float] = None,
    protein_per_100g: Optional[float] = None,
    carbs_per_100g: Optional[float] = None,
    fat_per_100g: Optional[float] = None,
    fiber_per_100g: Optional[float] = None,
    salt_per_100g: Optional[float] = None,
) -> ToolOutcome:
    """
    Edit an existing food entry. Can change the amount consumed and/or update the nutritional information of the underlying food.

    Args:
        entry_id: The ID of the food entry to edit
        grams: New amount in grams (optional)
        calories_per_100g: Updated calories per 100g (optional)
        protein_per_100g: Updated protein in grams per 100g (optional)
        carbs_per_100g: Updated carbohydrates in grams per 100g (optional)
        fat_per_100g: Updated fat in grams per 100g (optional)
        fiber_per_100g: Updated fiber in grams per 100g (optional)
        salt_per_100g: Updated salt in grams per 100g (optional)
    """
    entry = FoodEntryRepository.get_for_user(ctx.db, entry_id, ctx.user_id)
    if not entry:
        raise NotFoundError("Food entry not found.")

    supplied = _supplied({
        "calories_per_100g": calories_per_100g,
        "protein_per_100g": protein_per_100g,
        "carbs_per_100g": carbs_per_100g,
        "fat_per_100g": fat_per_100g,
        "fiber_per_100g": fiber_per_100g,
        "salt_per_100g": salt_per_100g,
    })
    nutrition_updates = {key: _number(value, key) for key, value in supplied.items()}
    new_grams = _number(grams, "grams") if grams is not None else None
    if new_grams is not None and new_grams <= 0:
        raise ToolExecutionError("grams must be greater than zero.")

    food_name = entry.user_food.name
    old_grams = entry.grams

    if nutrition_updates:
        UserFoodRepository.update(ctx.db, entry.user_food, nutrition_updates)
    if new_grams is not None:
        entry = FoodEntryRepository.update_grams(ctx.db, entry, new_grams)

    if nutrition_updates and new_grams is not None:
        message = f'Updated "{food_name}" (nutrition, {old_grams:g}g → {new_grams:g}g).'
    elif nutrition_updates:
        message = f'Updated "{food_name}" nutrition info.'
    elif new_grams is not None:
        message = f'Updated "{food_name}" ({old_grams:g}g → {new_grams:g}g).'
    else:
        return ToolOutcome(result_text=f'No changes made to "{food_name}".')

    return ToolOutcome(
        result_text=_with_daily_context(ctx, message),
        side_effect=SideEffect(SideEffectKind.FOOD_UPDATED, entry.to_dict()),
    )


def delete_food_entry(ctx: ToolContext, entry_id: str) -> ToolOutcome:
    """
    Delete a food entry from the day's log

    Args:
        entry_id: The ID of the food entry to delete
    """
    entry = FoodEntryRepository.get_for_user(ctx.db, entry_id, ctx.user_id)
    if not entry:
        raise NotFoundError("Food entry not found.")

    message = f"Deleted {entry.user_food.name} ({entry.grams:g}g) from your log."
    FoodEntryRepository.delete(ctx.db, entry)
    return ToolOutcome(
        result_text=_with_daily_context(ctx, message),
        side_effect=SideEffect(SideEffectKind.FOOD_DELETED, entry_id),
    )
