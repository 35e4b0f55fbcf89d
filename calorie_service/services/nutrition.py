from datetime import date
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from models.food import FoodEntry, UserFood
from repositories.food import FoodEntryRepository

NUTRIENTS = ("calories", "protein", "carbs", "fat", "fiber", "salt")


def entry_calories(food: UserFood, grams: float) -> int:
    return round(food.calories_per_100g * grams / 100)


def calculate_totals(entries: Iterable[FoodEntry]) -> Dict[str, float]:
    """Sum per-100g values scaled by the logged grams"""
    totals = {key: 0.0 for key in NUTRIENTS}
    for entry in entries:
        ratio = entry.grams / 100
        food = entry.user_food
        for key in NUTRIENTS:
            totals[key] += getattr(food, f"{key}_per_100g") * ratio
    return totals


def format_totals(totals: Dict[str, float]) -> str:
    return (
        f"Current daily totals: {round(totals['calories'])} calories, "
        f"{totals['protein']:.1f}g protein, {totals['carbs']:.1f}g carbs, "
        f"{totals['fat']:.1f}g fat, {totals['fiber']:.1f}g fiber, "
        f"{totals['salt']:.2f}g salt."
    )


def format_entries(entries: List[FoodEntry]) -> str:
    if not entries:
        return ""
    lines = [
        f"{index}. {entry.user_food.name} ({entry.grams:g}g, "
        f"{entry_calories(entry.user_food, entry.grams)} kcal) - Entry ID: {entry.id}"
        for index, entry in enumerate(entries, 1)
    ]
    return "Current food entries:\n" + "\n".join(lines)


def daily_context(db: Session, user_id: str, day: date) -> str:
    """Totals and entry list for the day, appended to log-changing tool results"""
    entries = FoodEntryRepository.list_for_day(db, user_id, day)
    text = format_totals(calculate_totals(entries))
    listing = format_entries(entries)
    if listing:
        text += "\n" + listing
    return text
