from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from models.food import UserFood, FoodEntry


class UserFoodRepository:
    """Repository for the per-user food database"""

    @staticmethod
    def get_for_user(db: Session, food_id: str, user_id: str) -> Optional[UserFood]:
        return db.query(UserFood)\
            .filter(UserFood.id == food_id, UserFood.user_id == user_id)\
            .first()

    @staticmethod
    def get_by_name(db: Session, user_id: str, name: str) -> Optional[UserFood]:
        return db.query(UserFood)\
            .filter(UserFood.user_id == user_id, UserFood.name == name)\
            .first()

    @staticmethod
    def list_recent(db: Session, user_id: str, limit: int = 50) -> List[UserFood]:
        """Most recently updated foods first"""
        return db.query(UserFood)\
            .filter(UserFood.user_id == user_id)\
            .order_by(UserFood.updated_at.desc())\
            .limit(limit)\
            .all()

    @staticmethod
    def create(db: Session, user_id: str, **fields: Any) -> UserFood:
        food = UserFood(user_id=user_id, **fields)
        db.add(food)
        db.commit()
        db.refresh(food)
        return food

    @staticmethod
    def update(db: Session, food: UserFood, changes: Dict[str, Any]) -> UserFood:
        """Apply only the supplied fields"""
        for field, value in changes.items():
            setattr(food, field, value)
        db.commit()
        db.refresh(food)
        return food

    @staticmethod
    def delete(db: Session, food: UserFood) -> None:
        db.delete(food)
        db.commit()


class FoodEntryRepository:
    """Repository for daily log entries"""

    @staticmethod
    def get_for_user(db: Session, entry_id: str, user_id: str) -> Optional[FoodEntry]:
        return db.query(FoodEntry)\
            .options(joinedload(FoodEntry.user_food))\
            .filter(FoodEntry.id == entry_id, FoodEntry.user_id == user_id)\
            .first()

    @staticmethod
    def list_for_day(db: Session, user_id: str, day: date) -> List[FoodEntry]:
        return db.query(FoodEntry)\
            .options(joinedload(FoodEntry.user_food))\
            .filter(FoodEntry.user_id == user_id, FoodEntry.date == day)\
            .order_by(FoodEntry.timestamp.asc())\
            .all()

    @staticmethod
    def create(db: Session, user_id: str, user_food_id: str, grams: float, day: date) -> FoodEntry:
        entry = FoodEntry(user_id=user_id, user_food_id=user_food_id, grams=grams, date=day)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def update_grams(db: Session, entry: FoodEntry, grams: float) -> FoodEntry:
        entry.grams = grams
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def delete(db: Session, entry: FoodEntry) -> None:
        db.delete(entry)
        db.commit()
